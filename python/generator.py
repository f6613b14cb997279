"""
Procedural level generation entry point.

One attempt runs shape -> feature passes -> solver -> build -> verify ->
portals. Any failure throws the attempt away and retries with fresh
randomness until the retry budget runs out.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from dataclasses import replace

from generator_config import DEFAULT_CONFIG, GeneratorConfig, WorldElement
from level_builder import build_level, count_required_visits, placement_rows, verify_level
from obstacles import Placement, add_brambles, add_dirt, add_ice, add_rivers, add_stones
from portals import place_portals
from shapes import generate_shape
from solver import find_hamiltonian_path
from tile_types import Level
from traversal import Board

logger = logging.getLogger(__name__)

__all__ = ["GeneratorConfig", "WorldElement", "generate_level", "solver_budget"]


def solver_budget(config: GeneratorConfig, required: int) -> int:
    """Search steps allowed for one attempt, scaled by puzzle size."""
    return min(config.max_solver_iterations, config.iterations_per_tile * required)


def sample_portal_pairs(config: GeneratorConfig, rng: random.Random) -> int:
    """Fixed ``portal_pairs`` if set; otherwise one, two or three pairs at 50/35/15 %."""
    if config.portal_pairs is not None:
        return config.portal_pairs
    roll = rng.random()
    if roll < 0.5:
        return 1
    if roll < 0.85:
        return 2
    return 3


def place_features(
    placement: Placement,
    config: GeneratorConfig,
    elements: frozenset[WorldElement],
    rng: random.Random,
) -> None:
    """Run the feature passes in their fixed order."""
    add_brambles(placement, config.bramble_chance, rng)
    add_stones(placement, config.stone_chance, rng)
    if WorldElement.RIVERS in elements:
        add_rivers(placement, config, rng)
    if WorldElement.ICE in elements:
        add_ice(placement, config.ice_chance, config.ice_cluster_size, rng)
    dirt_chance = config.dirt_chance
    if WorldElement.DIRT in elements:
        dirt_chance *= config.dirt_boost
    add_dirt(placement, min(1.0, dirt_chance), rng)


def _attempt(
    config: GeneratorConfig,
    elements: frozenset[WorldElement],
    rng: random.Random,
) -> Level | None:
    shape = generate_shape(config, rng)
    placement = Placement.from_footprint(shape.footprint)
    place_features(placement, config, elements, rng)

    required = placement.required_visits()
    if required < config.min_required:
        logger.debug("_attempt: only %d required visits", required)
        return None

    board = Board.from_rows(placement_rows(placement), flow=placement.flow)
    budget = solver_budget(config, len(placement.required))
    result = find_hamiltonian_path(board, sorted(placement.grass), rng, budget)
    if not result.solved:
        logger.debug("_attempt: solver %s", result.status.value)
        return None

    level = build_level(placement, shape.rooms, result.path)
    if not verify_level(level, config.min_required):
        return None

    if WorldElement.FAIRY in elements:
        pairs = sample_portal_pairs(config, rng)
        portals = place_portals(
            Board.from_level(level),
            level.start,
            pairs,
            rng,
            min_distance=config.portal_min_distance,
            max_iterations=budget,
            min_required=config.min_required,
        )
        if portals is not None and portals.pairs:
            level = replace(level, grid=portals.board.tiles, solution=portals.solution.path)
            if not verify_level(level, config.min_required):
                logger.debug("_attempt: portals left required tiles out of reach")
                return None
        else:
            logger.debug("_attempt: no portal pairs placed")

    return level


def generate_level(
    config: GeneratorConfig | None = None,
    elements: Iterable[WorldElement] = (),
    rng: random.Random | None = None,
) -> Level | None:
    """
    Generate a solvable level.

    Args:
        config: Generation knobs; DEFAULT_CONFIG when None
        elements: Optional mechanics to enable
        rng: Source of randomness; a fresh unseeded instance when None

    Returns:
        A verified level with its solution, or None when every attempt
        within ``config.max_retries`` failed
    """
    config = config or DEFAULT_CONFIG
    rng = rng or random.Random()
    enabled = frozenset(elements)

    for attempt in range(config.max_retries):
        level = _attempt(config, enabled, rng)
        if level is not None:
            logger.info(
                "generate_level: %dx%d level after %d attempt(s), %d required visits",
                level.width, level.height, attempt + 1, count_required_visits(level.grid),
            )
            return level

    logger.warning("generate_level: gave up after %d attempts", config.max_retries)
    return None

"""
Fairy-ring placement on an already solvable board.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from generator_config import MIN_REQUIRED_VISITS, RUNTIME_SOLVER_CAP
from solver import SolveResult, required_visits, solve
from tile_types import PORTAL_TYPES, Position, TileType
from traversal import Board, is_connected_with_jumps, is_obstacle, is_walkable

logger = logging.getLogger(__name__)

# Candidate pairs sampled per portal colour
PAIR_SAMPLES = 24

# Candidate pairs actually re-verified per portal colour
PAIR_ATTEMPTS = 6


@dataclass(frozen=True)
class PortalPlacement:
    """Board after placement plus a solution that still works on it."""

    board: Board
    solution: SolveResult
    pairs: tuple[tuple[Position, Position], ...]


def _sample_pairs(
    cells: list[Position], min_distance: int, rng: random.Random
) -> list[tuple[Position, Position]]:
    """Random candidate pairs, those at least ``min_distance`` apart first."""
    if len(cells) < 2:
        return []
    pairs = []
    for _ in range(PAIR_SAMPLES):
        first, second = rng.sample(cells, 2)
        pairs.append((first, second))
    pairs.sort(key=lambda pair: pair[0].manhattan(pair[1]) < min_distance)
    return pairs


def _still_valid(board: Board, min_required: int) -> bool:
    remaining = required_visits(board)
    if sum(remaining.values()) < min_required:
        return False
    obstacles = {p for p in board.positions() if is_obstacle(board, p)}
    bridges = {p for p in board.positions() if is_walkable(board, p) and p not in remaining}
    return is_connected_with_jumps(set(remaining), obstacles, bridges)


def place_portals(
    board: Board,
    start: Position,
    pairs: int,
    rng: random.Random,
    min_distance: int = 4,
    max_iterations: int = RUNTIME_SOLVER_CAP,
    min_required: int = MIN_REQUIRED_VISITS,
) -> PortalPlacement | None:
    """
    Turn pairs of grass tiles into fairy rings, one colour at a time.

    Each pair is kept only if the required tiles stay connected, the
    required-visit floor holds and a path from ``start`` still exists;
    otherwise it is rolled back and placement stops there.

    Args:
        board: Solvable board to decorate; not modified
        start: Player start, never turned into a portal
        pairs: Number of portal pairs wanted (at most one per colour)
        rng: Source of randomness
        min_distance: Preferred Manhattan distance between partners
        max_iterations: Solver budget for each re-verification
        min_required: Required-visit floor

    Returns:
        The placement, or None when not even the original board re-solves
    """
    solution = solve(board, start, rng, max_iterations)
    if not solution.solved:
        return None

    placed: list[tuple[Position, Position]] = []
    for portal_type in PORTAL_TYPES[:pairs]:
        cells = [
            p for p in board.positions()
            if p != start and board.tile_at(p) == TileType.GRASS
        ]
        committed = False
        for first, second in _sample_pairs(cells, min_distance, rng)[:PAIR_ATTEMPTS]:
            trial = board.with_tiles({first: portal_type, second: portal_type})
            if not _still_valid(trial, min_required):
                continue
            result = solve(trial, start, rng, max_iterations)
            if result.solved:
                board, solution = trial, result
                placed.append((first, second))
                committed = True
                break

        if not committed:
            logger.debug("place_portals: no valid %s pair, stopping", portal_type.value)
            break

    return PortalPlacement(board, solution, tuple(placed))

"""
Connectivity-preserving feature placement.

Each pass proposes a change to the working sets, applies it tentatively,
and keeps it only if every required cell is still reachable from every
other one (jumps allowed, earlier bridges walkable) and the required-count
floor holds. A rejected proposal is rolled back tile for tile.
"""

from __future__ import annotations

import logging
import math
import random
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from generator_config import MIN_BRAMBLE_REQUIRED, MIN_REQUIRED_VISITS, GeneratorConfig
from tile_types import DIRECTIONS, Direction, Position, TileType
from traversal import is_connected_with_jumps

logger = logging.getLogger(__name__)

# Seeds tried per ice tile wanted before giving up
ICE_ATTEMPTS_PER_TILE = 10


@dataclass
class Placement:
    """
    Working sets for one generation attempt.

    ``required`` holds every cell the player must visit (grass and dirt);
    dirt cells are additionally listed in ``dirt``. Stones, water and ice
    are bridges: walkable, never required.
    """

    footprint: frozenset[Position]
    required: set[Position]
    brambles: set[Position] = field(default_factory=set)
    stones: set[Position] = field(default_factory=set)
    water: set[Position] = field(default_factory=set)
    flow: dict[Position, Direction] = field(default_factory=dict)
    ice: set[Position] = field(default_factory=set)
    dirt: set[Position] = field(default_factory=set)

    @classmethod
    def from_footprint(cls, footprint: Iterable[Position]) -> Placement:
        cells = frozenset(footprint)
        return cls(cells, set(cells))

    @property
    def bridges(self) -> set[Position]:
        return self.stones | self.water | self.ice

    @property
    def grass(self) -> set[Position]:
        return self.required - self.dirt

    def required_visits(self) -> int:
        return len(self.required) + len(self.dirt)

    def is_connected(self) -> bool:
        return is_connected_with_jumps(self.required, self.brambles, self.bridges)

    def tile_at(self, pos: Position) -> TileType:
        """Tile type a cell will be rasterized as."""
        if pos not in self.footprint:
            return TileType.VOID
        if pos in self.brambles:
            return TileType.BRAMBLE
        if pos in self.stones:
            return TileType.STONE
        if pos in self.water:
            return TileType.WATER
        if pos in self.ice:
            return TileType.ICE
        if pos in self.dirt:
            return TileType.DIRT
        return TileType.GRASS


def convert_if_connected(
    placement: Placement,
    cells: Iterable[Position],
    target: set[Position],
    floor: int,
) -> bool:
    """
    Move required cells into ``target`` if connectivity and the floor survive.

    Returns:
        True if the change was committed; on False the sets are unchanged
    """
    moved = [c for c in cells if c in placement.required]
    added = [c for c in moved if c not in target]
    placement.required.difference_update(moved)
    target.update(added)

    if len(placement.required) >= floor and placement.is_connected():
        return True

    placement.required.update(moved)
    target.difference_update(added)
    return False


def _shuffled(cells: Iterable[Position], rng: random.Random) -> list[Position]:
    result = sorted(cells)
    rng.shuffle(result)
    return result


# =============================================================================
# Brambles and Stones
# =============================================================================


def add_brambles(placement: Placement, chance: float, rng: random.Random) -> int:
    """
    Turn up to ``floor(|footprint| * chance)`` cells into brambles.

    Returns:
        Number of brambles placed
    """
    target = math.floor(len(placement.footprint) * chance)
    placed = 0
    for cell in _shuffled(placement.required, rng):
        if placed >= target:
            break
        if convert_if_connected(placement, [cell], placement.brambles, MIN_BRAMBLE_REQUIRED):
            placed += 1
    logger.debug("add_brambles: placed %d of %d", placed, target)
    return placed


def add_stones(placement: Placement, chance: float, rng: random.Random) -> int:
    """Turn some grass into stone bridges, stopping once MIN_REQUIRED_VISITS remain."""
    target = math.floor(len(placement.required) * chance)
    placed = 0
    for cell in _shuffled(placement.grass, rng):
        if placed >= target or len(placement.required) <= MIN_REQUIRED_VISITS:
            break
        if convert_if_connected(placement, [cell], placement.stones, MIN_REQUIRED_VISITS):
            placed += 1
    logger.debug("add_stones: placed %d of %d", placed, target)
    return placed


# =============================================================================
# Rivers
# =============================================================================


def _trace_river(
    placement: Placement,
    start: Position,
    direction: Direction,
    length: int,
    rng: random.Random,
) -> list[Position]:
    """Walk over grass for up to ``length`` tiles, bending at most once."""
    path = [start]
    current = start
    can_bend = True

    for _ in range(1, length):
        nxt = current.step(direction)
        if nxt in placement.grass and nxt not in path:
            path.append(nxt)
            current = nxt
            continue
        if not can_bend:
            break

        bends = list(direction.perpendicular())
        rng.shuffle(bends)
        for bend in bends:
            bent = current.step(bend)
            if bent in placement.grass and bent not in path:
                path.append(bent)
                current = bent
                direction = bend
                can_bend = False
                break
        else:
            break

    return path


def _try_river(
    placement: Placement,
    start: Position,
    direction: Direction,
    config: GeneratorConfig,
    rng: random.Random,
) -> bool:
    length = rng.randint(config.river_min_length, config.river_max_length)
    path = _trace_river(placement, start, direction, length, rng)
    if len(path) < config.river_min_length:
        return False

    # The stone endpoint continues the river's final direction
    last_direction = path[-2].direction_to(path[-1]) if len(path) > 1 else direction
    stone = path[-1].step(last_direction)
    stone_is_grass = stone in placement.grass
    if not stone_is_grass and stone not in placement.stones:
        return False

    new_stones = [stone] if stone_is_grass else []
    placement.required.difference_update(path + new_stones)
    placement.water.update(path)
    placement.stones.update(new_stones)

    if len(placement.required) < config.min_required or not placement.is_connected():
        placement.water.difference_update(path)
        placement.stones.difference_update(new_stones)
        placement.required.update(path + new_stones)
        return False

    successors = path[1:] + [stone]
    for tile, successor in zip(path, successors):
        placement.flow[tile] = tile.direction_to(successor)
    return True


def add_rivers(placement: Placement, config: GeneratorConfig, rng: random.Random) -> int:
    """
    Carve rivers of water flowing into a stone.

    Rivers are skipped when ``river_chance`` is zero or with probability
    ``river_skip_chance``. Usually one river is carved, two with probability
    ``second_river_chance``.

    Returns:
        Number of rivers carved
    """
    if config.river_chance <= 0 or rng.random() < config.river_skip_chance:
        return 0

    wanted = 2 if rng.random() < config.second_river_chance else 1
    carved = 0
    for start in _shuffled(placement.grass, rng):
        if carved >= wanted:
            break
        if start not in placement.grass:
            continue
        directions = list(DIRECTIONS)
        rng.shuffle(directions)
        for direction in directions:
            if _try_river(placement, start, direction, config, rng):
                carved += 1
                break

    logger.debug("add_rivers: carved %d of %d", carved, wanted)
    return carved


# =============================================================================
# Ice and Dirt
# =============================================================================


def _grow_blob(
    placement: Placement,
    seed: Position,
    size: int,
    rng: random.Random,
) -> list[Position]:
    blob = [seed]
    queue = deque([seed])
    while queue and len(blob) < size:
        current = queue.popleft()
        neighbors = list(current.neighbors())
        rng.shuffle(neighbors)
        for neighbor in neighbors:
            if len(blob) >= size:
                break
            if neighbor in placement.grass and neighbor not in blob:
                blob.append(neighbor)
                queue.append(neighbor)
    return blob


def add_ice(
    placement: Placement,
    chance: float,
    cluster_size: int,
    rng: random.Random,
) -> int:
    """
    Grow ice blobs of up to ``cluster_size`` tiles, committing blob by blob.

    Returns:
        Number of ice tiles placed
    """
    target = math.floor(len(placement.required) * chance)
    placed = 0
    attempts = 0
    while placed < target and attempts < target * ICE_ATTEMPTS_PER_TILE:
        attempts += 1
        grass = placement.grass
        if not grass:
            break
        seed = rng.choice(sorted(grass))
        size = min(rng.randint(1, max(1, cluster_size)), target - placed)
        blob = _grow_blob(placement, seed, size, rng)
        if convert_if_connected(placement, blob, placement.ice, MIN_REQUIRED_VISITS):
            placed += len(blob)
        else:
            logger.debug("add_ice: blob of %d at %s rejected", len(blob), seed)
    return placed


def add_dirt(placement: Placement, chance: float, rng: random.Random) -> int:
    """Turn some grass into dirt. Dirt stays required, so connectivity is unaffected."""
    target = math.floor(len(placement.required) * chance)
    chosen = _shuffled(placement.grass, rng)[:target]
    placement.dirt.update(chosen)
    return len(chosen)

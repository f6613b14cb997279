"""
Tile traversal model: walkability, jumps and chained forced movement.

Everything here is a pure function of a Board snapshot. The solver replays
these rules while planning, so nothing may depend on hidden state or
randomness.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

from tile_types import (
    CONDITIONAL_TILES,
    DIRECTIONS,
    OBSTACLE_TILES,
    PORTAL_TYPES,
    WALKABLE_TILES,
    Direction,
    Grid,
    Level,
    Position,
    TileType,
    is_portal,
)

logger = logging.getLogger(__name__)

# How far a bounce pad tries to launch the player
MAX_BOUNCE_DISTANCE = 3

# Maximum number of chained effects resolved for a single move
MAX_CHAIN = 64


# Type alias for a conditional-walkability predicate
WalkPredicate = Callable[[Position], bool]


def _always(_: Position) -> bool:
    return True


def _never(_: Position) -> bool:
    return False


# Used for conditional tiles the caller supplies no predicate for
DEFAULT_CONDITIONS: dict[TileType, WalkPredicate] = {
    TileType.LILYPAD: _always,  # Not submerged
    TileType.TIDE: _always,  # Tide out
    TileType.SQUIRREL: _never,  # No acorn carried
    **{portal: _always for portal in PORTAL_TYPES},
}


# =============================================================================
# Board Snapshot
# =============================================================================


@dataclass(frozen=True)
class Board:
    """
    Immutable snapshot of everything movement depends on.

    Attributes:
        tiles: Dense rows of tile types, indexed tiles[y][x]
        flow: Water flow direction per water tile
        conditions: Walk predicates for conditional tiles, keyed by tile type
        occupied: Positions nobody may land on (e.g. another player)
    """

    tiles: Grid
    flow: Mapping[Position, Direction] = field(default_factory=dict)
    conditions: Mapping[TileType, WalkPredicate] = field(default_factory=dict)
    occupied: frozenset[Position] = frozenset()

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[TileType]],
        flow: Mapping[Position, Direction] | None = None,
        conditions: Mapping[TileType, WalkPredicate] | None = None,
        occupied: Iterable[Position] = (),
    ) -> Board:
        """
        Build a board from caller-owned rows, copying everything.

        Raises:
            ValueError: If the rows are not rectangular
        """
        tiles = tuple(tuple(row) for row in rows)
        if tiles:
            width = len(tiles[0])
            mismatched = [(y, len(row)) for y, row in enumerate(tiles) if len(row) != width]
            if mismatched:
                error_msg = (
                    f"Board rows must all have the same length\n"
                    f"  Expected: {width} tiles (from row 0)\n"
                    f"  Mismatched rows:\n"
                )
                for y, actual in mismatched:
                    error_msg += f"    Row {y}: {actual} tiles\n"
                raise ValueError(error_msg)
        return cls(tiles, dict(flow or {}), dict(conditions or {}), frozenset(occupied))

    @classmethod
    def from_level(
        cls,
        level: Level,
        conditions: Mapping[TileType, WalkPredicate] | None = None,
        occupied: Iterable[Position] = (),
    ) -> Board:
        return cls(level.grid, dict(level.water_flow), dict(conditions or {}), frozenset(occupied))

    @property
    def height(self) -> int:
        return len(self.tiles)

    @property
    def width(self) -> int:
        return len(self.tiles[0]) if self.tiles else 0

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def tile_at(self, pos: Position) -> TileType | None:
        """Tile at a position, or None when out of bounds."""
        if 0 <= pos.y < len(self.tiles):
            row = self.tiles[pos.y]
            if 0 <= pos.x < len(row):
                return row[pos.x]
        return None

    def flow_at(self, pos: Position) -> Direction | None:
        return self.flow.get(pos)

    def condition_holds(self, tile: TileType, pos: Position) -> bool:
        predicate = self.conditions.get(tile) or DEFAULT_CONDITIONS.get(tile, _always)
        return predicate(pos)

    def positions(self) -> Iterator[Position]:
        for y, row in enumerate(self.tiles):
            for x in range(len(row)):
                yield Position(x, y)

    def with_tiles(self, changes: Mapping[Position, TileType]) -> Board:
        """Copy of this board with some tiles replaced."""
        rows = [list(row) for row in self.tiles]
        for pos, tile in changes.items():
            rows[pos.y][pos.x] = tile
        return Board(tuple(tuple(row) for row in rows), self.flow, self.conditions, self.occupied)

    @cached_property
    def portal_partners(self) -> dict[Position, Position]:
        """Map each portal to the unique other portal of its colour."""
        by_type: dict[TileType, list[Position]] = {}
        for y, row in enumerate(self.tiles):
            for x, tile in enumerate(row):
                if is_portal(tile):
                    by_type.setdefault(tile, []).append(Position(x, y))

        partners: dict[Position, Position] = {}
        for positions in by_type.values():
            # Anything other than a proper pair has no unique match
            if len(positions) == 2:
                first, second = positions
                partners[first] = second
                partners[second] = first
        return partners


# =============================================================================
# Walkability
# =============================================================================


def is_walkable(board: Board, pos: Position) -> bool:
    """True for walkable tiles and conditional tiles whose predicate holds."""
    tile = board.tile_at(pos)
    if tile is None:
        return False
    if tile in WALKABLE_TILES:
        return True
    if tile in CONDITIONAL_TILES:
        return board.condition_holds(tile, pos)
    return False


def is_obstacle(board: Board, pos: Position) -> bool:
    """True for tiles that block entry but can be jumped over."""
    tile = board.tile_at(pos)
    if tile is None:
        return False
    if tile in OBSTACLE_TILES:
        return True
    if tile in CONDITIONAL_TILES:
        return not board.condition_holds(tile, pos)
    return False


def can_land(board: Board, pos: Position) -> bool:
    return pos not in board.occupied and is_walkable(board, pos)


def try_move(board: Board, pos: Position, direction: Direction) -> Position | None:
    """
    Find where a single move would land before any forced effect applies.

    Returns:
        The adjacent tile, the tile beyond a jumped obstacle, or None when the
        move is impossible
    """
    adjacent = pos.step(direction)
    if can_land(board, adjacent):
        return adjacent
    if is_obstacle(board, adjacent):
        jump = pos.step(direction, 2)
        if can_land(board, jump):
            return jump
    return None


# =============================================================================
# Forced Effects
# =============================================================================


class EffectKind(Enum):
    """Kind of forced movement a tile applies."""

    WATER_SLIDE = "water_slide"  # Follow the current
    ICE_SLIDE = "ice_slide"  # Keep going in the entry direction
    TELEPORT = "teleport"  # Jump to the matching portal
    BOUNCE = "bounce"  # Launched up to MAX_BOUNCE_DISTANCE ahead


@dataclass(frozen=True)
class Effect:
    """One forced effect: the tiles passed through, ending on the new stop."""

    kind: EffectKind
    path: tuple[Position, ...]
    direction: Direction  # Direction of travel on arrival

    @property
    def position(self) -> Position:
        return self.path[-1]


def _water_effect(board: Board, pos: Position) -> Effect | None:
    path: list[Position] = []
    seen = {pos}
    current = pos
    direction = board.flow_at(pos)

    while True:
        flow = board.flow_at(current)
        if flow is None:
            break
        nxt = current.step(flow)
        if board.tile_at(nxt) == TileType.WATER and nxt not in board.occupied:
            if nxt in seen:
                # Current loops back on itself
                break
            seen.add(nxt)
            path.append(nxt)
            current = nxt
            direction = flow
            continue
        if can_land(board, nxt):
            path.append(nxt)
            direction = flow
        break

    if not path or direction is None:
        return None
    return Effect(EffectKind.WATER_SLIDE, tuple(path), direction)


def _ice_effect(board: Board, pos: Position, direction: Direction) -> Effect | None:
    path: list[Position] = []
    current = pos
    while True:
        nxt = current.step(direction)
        if not can_land(board, nxt):
            break
        path.append(nxt)
        current = nxt
        if board.tile_at(nxt) != TileType.ICE:
            break
    if not path:
        return None
    return Effect(EffectKind.ICE_SLIDE, tuple(path), direction)


def _portal_effect(board: Board, pos: Position, direction: Direction) -> Effect | None:
    partner = board.portal_partners.get(pos)
    if partner is None or not can_land(board, partner):
        return None
    return Effect(EffectKind.TELEPORT, (partner,), direction)


def _bounce_effect(board: Board, pos: Position, direction: Direction) -> Effect | None:
    for distance in range(MAX_BOUNCE_DISTANCE, 0, -1):
        target = pos.step(direction, distance)
        if can_land(board, target):
            return Effect(EffectKind.BOUNCE, (target,), direction)
    return None


def step_effect(board: Board, pos: Position, direction: Direction) -> Effect | None:
    """
    Apply the forced effect of the tile at ``pos`` exactly once.

    Args:
        board: The board snapshot
        pos: The tile the player currently stands on
        direction: Direction the player was travelling when arriving

    Returns:
        The effect, or None when the tile has no effect or the effect is
        blocked immediately
    """
    tile = board.tile_at(pos)
    if tile == TileType.WATER:
        return _water_effect(board, pos)
    if tile == TileType.ICE:
        return _ice_effect(board, pos, direction)
    if is_portal(tile):
        return _portal_effect(board, pos, direction)
    if tile == TileType.BOUNCE_PAD:
        return _bounce_effect(board, pos, direction)
    return None


def resolve_path(
    board: Board,
    landing: Position,
    direction: Direction,
    max_chain: int = MAX_CHAIN,
) -> list[Position]:
    """
    Follow every forced effect starting from a landing tile.

    Chains compose (ice into water, anything into a portal). A teleport ends
    the chain, and so does revisiting a (position, direction) state.

    Args:
        board: The board snapshot
        landing: Tile the move landed on
        direction: Direction of the move
        max_chain: Maximum number of effects to follow

    Returns:
        Every stop along the way, starting with ``landing``; the last entry is
        where the player ends up
    """
    path = [landing]
    current = landing
    seen: set[tuple[Position, Direction]] = {(landing, direction)}

    for _ in range(max_chain):
        effect = step_effect(board, current, direction)
        if effect is None:
            return path
        path.extend(effect.path)
        current = effect.position
        direction = effect.direction
        if effect.kind == EffectKind.TELEPORT:
            return path
        state = (current, direction)
        if state in seen:
            return path
        seen.add(state)

    logger.debug("resolve_path: chain from %s hit max_chain=%d", landing, max_chain)
    return path


def resolve_landing(
    board: Board,
    from_pos: Position,
    landing: Position,
    direction: Direction | None = None,
) -> Position:
    """
    Final resting tile after a move from ``from_pos`` lands on ``landing``.

    The direction defaults to the one pointing from ``from_pos`` to ``landing``.
    """
    if direction is None:
        direction = from_pos.direction_to(landing)
    return resolve_path(board, landing, direction)[-1]


def move_destination(board: Board, pos: Position, direction: Direction) -> Position | None:
    """Where a move ends after every forced effect, or None if it is impossible."""
    landing = try_move(board, pos, direction)
    if landing is None:
        return None
    return resolve_landing(board, pos, landing, direction)


# =============================================================================
# Reachability
# =============================================================================


def reachable_from(board: Board, start: Position) -> set[Position]:
    """All positions the player can come to rest on from ``start`` (no consumption)."""
    visited = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for direction in DIRECTIONS:
            destination = move_destination(board, current, direction)
            if destination is not None and destination not in visited:
                visited.add(destination)
                queue.append(destination)
    return visited


def reachable_neighbors(
    pos: Position,
    walkable: set[Position] | frozenset[Position],
    obstacles: set[Position] | frozenset[Position],
) -> list[Position]:
    """Adjacent walkable cells, or cells beyond an adjacent obstacle."""
    neighbors: list[Position] = []
    for direction in DIRECTIONS:
        adjacent = pos.step(direction)
        if adjacent in walkable:
            neighbors.append(adjacent)
        elif adjacent in obstacles:
            jump = pos.step(direction, 2)
            if jump in walkable:
                neighbors.append(jump)
    return neighbors


def is_connected_with_jumps(
    required: set[Position] | frozenset[Position],
    obstacles: set[Position] | frozenset[Position],
    bridges: set[Position] | frozenset[Position] = frozenset(),
) -> bool:
    """
    Check that every required cell is reachable from every other.

    Bridges are walkable but need not be visited. Used while placing
    features, before any slide semantics exist.
    """
    if not required:
        return True

    start = min(required)
    walkable = set(required) | set(bridges)
    visited = {start}
    found = 1
    queue = deque([start])

    while queue:
        current = queue.popleft()
        for neighbor in reachable_neighbors(current, walkable, obstacles):
            if neighbor not in visited:
                visited.add(neighbor)
                if neighbor in required:
                    found += 1
                queue.append(neighbor)

    return found == len(required)

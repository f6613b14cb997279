"""
Shared type definitions for the meadow puzzle system.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Direction(Enum):
    """Cardinal direction for movement and water flow."""

    UP = "up"  # Decreasing y
    DOWN = "down"  # Increasing y
    LEFT = "left"  # Decreasing x
    RIGHT = "right"  # Increasing x

    @property
    def delta(self) -> tuple[int, int]:
        return DIRECTION_DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    @property
    def is_vertical(self) -> bool:
        return self in (Direction.UP, Direction.DOWN)

    def perpendicular(self) -> tuple[Direction, Direction]:
        if self.is_vertical:
            return (Direction.LEFT, Direction.RIGHT)
        return (Direction.UP, Direction.DOWN)


# Water flow uses the same four directions
FlowDirection = Direction

DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

DIRECTIONS: tuple[Direction, ...] = tuple(Direction)


class TileType(Enum):
    """Every tile the board can hold. Visit progress is encoded in the type."""

    # Terrain
    GRASS = "grass"
    DIRT = "dirt"  # Needs two visits: dirt -> grass -> mushroom
    STONE = "stone"  # Permanent bridge, never consumed
    VOID = "void"  # Outside the play area

    # Obstacles and consumed markers (can be jumped over)
    BRAMBLE = "bramble"
    MUSHROOM = "mushroom"
    MUSHROOM_RED = "mushroom_red"
    MUSHROOM_BLUE = "mushroom_blue"
    SAND_MUSHROOM = "sand_mushroom"
    HONEY_MUSHROOM = "honey_mushroom"

    # Traversal-effect tiles
    WATER = "water"  # Slides along its flow direction
    ICE = "ice"  # Slides in the entry direction
    LILYPAD = "lilypad"  # Walkable unless submerged
    POND_WATER = "pond_water"
    BOUNCE_PAD = "bounce_pad"
    HONEY = "honey"
    TIDE = "tide"  # Walkable unless flooded
    SEA = "sea"
    ACORN = "acorn"
    SQUIRREL = "squirrel"  # Walkable once the player carries an acorn

    # Fairy rings, always placed in matched pairs
    PORTAL_PINK = "portal_pink"
    PORTAL_BLUE = "portal_blue"
    PORTAL_YELLOW = "portal_yellow"


PortalType = TileType

PORTAL_TYPES: tuple[TileType, ...] = (
    TileType.PORTAL_PINK,
    TileType.PORTAL_BLUE,
    TileType.PORTAL_YELLOW,
)

# Number of visits each required tile needs before it is fully consumed
REQUIRED_VISITS: dict[TileType, int] = {
    TileType.GRASS: 1,
    TileType.DIRT: 2,
    TileType.HONEY: 1,
    TileType.TIDE: 1,
}

# What a tile turns into when the player steps off it
CONSUMED_FORM: dict[TileType, TileType] = {
    TileType.GRASS: TileType.MUSHROOM,
    TileType.DIRT: TileType.GRASS,
    TileType.HONEY: TileType.HONEY_MUSHROOM,
    TileType.TIDE: TileType.SAND_MUSHROOM,
}

WALKABLE_TILES: frozenset[TileType] = frozenset(
    {
        TileType.GRASS,
        TileType.STONE,
        TileType.WATER,
        TileType.DIRT,
        TileType.ICE,
        TileType.BOUNCE_PAD,
        TileType.HONEY,
        TileType.ACORN,
    }
)

# Walkable only while their predicate holds; otherwise they act as obstacles
CONDITIONAL_TILES: frozenset[TileType] = frozenset(
    {TileType.LILYPAD, TileType.TIDE, TileType.SQUIRREL, *PORTAL_TYPES}
)

OBSTACLE_TILES: frozenset[TileType] = frozenset(
    {
        TileType.BRAMBLE,
        TileType.MUSHROOM,
        TileType.MUSHROOM_RED,
        TileType.MUSHROOM_BLUE,
        TileType.SAND_MUSHROOM,
        TileType.HONEY_MUSHROOM,
        TileType.POND_WATER,
        TileType.SEA,
    }
)


def is_required(tile: TileType | None) -> bool:
    """True for tiles the player must still visit."""
    return tile in REQUIRED_VISITS


def is_portal(tile: TileType | None) -> bool:
    return tile in PORTAL_TYPES


def consume(tile: TileType) -> TileType:
    """Apply one visit to a tile the player is leaving."""
    return CONSUMED_FORM.get(tile, tile)


# =============================================================================
# Positions and Level Definition Types
# =============================================================================


@dataclass(frozen=True, order=True)
class Position:
    """An integer grid coordinate."""

    x: int
    y: int

    def step(self, direction: Direction, distance: int = 1) -> Position:
        dx, dy = direction.delta
        return Position(self.x + dx * distance, self.y + dy * distance)

    def offset(self, dx: int, dy: int) -> Position:
        return Position(self.x + dx, self.y + dy)

    def neighbors(self) -> tuple[Position, ...]:
        return tuple(self.step(d) for d in DIRECTIONS)

    def manhattan(self, other: Position) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def direction_to(self, other: Position) -> Direction:
        """Direction of an orthogonal neighbour (or any cell on the same row/column)."""
        if other.x > self.x:
            return Direction.RIGHT
        if other.x < self.x:
            return Direction.LEFT
        if other.y > self.y:
            return Direction.DOWN
        return Direction.UP


@dataclass(frozen=True)
class Room:
    """Rectangle a shape was built from. Provenance only."""

    x: int
    y: int
    width: int
    height: int

    @property
    def center(self) -> Position:
        return Position(self.x + self.width // 2, self.y + self.height // 2)

    def cells(self) -> list[Position]:
        return [
            Position(x, y)
            for y in range(self.y, self.y + self.height)
            for x in range(self.x, self.x + self.width)
        ]

    def overlaps(self, other: Room, margin: int = 1) -> bool:
        """True when the rectangles overlap or sit closer than ``margin``."""
        return not (
            self.x + self.width + margin <= other.x
            or other.x + other.width + margin <= self.x
            or self.y + self.height + margin <= other.y
            or other.y + other.height + margin <= self.y
        )


Grid = tuple[tuple[TileType, ...], ...]


@dataclass(frozen=True)
class Level:
    """A generated or hand-written level. Never mutated once built."""

    name: str
    width: int
    height: int
    grid: Grid
    start: Position
    rooms: tuple[Room, ...] = ()
    water_flow: dict[Position, Direction] = field(default_factory=dict)
    solution: tuple[Position, ...] | None = None

    def tile_at(self, pos: Position) -> TileType | None:
        if 0 <= pos.x < self.width and 0 <= pos.y < self.height:
            return self.grid[pos.y][pos.x]
        return None

    def count(self, tile: TileType) -> int:
        return sum(row.count(tile) for row in self.grid)

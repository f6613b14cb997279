"""
Footprint generation: the set of cells a level is carved from.

Two families of shape exist. Overlapping rectangles give blobby L and T
shapes; rooms joined by one-tile corridors give chokepoints.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from generator_config import GeneratorConfig
from tile_types import Position, Room

logger = logging.getLogger(__name__)

# Rooms-and-corridors layout constants
ROOM_COUNT_RANGE = (2, 3)
ROOM_SIDE_RANGE = (3, 5)
ROOM_MARGIN = 2
ROOM_PLACEMENT_ATTEMPTS = 50


@dataclass(frozen=True)
class Shape:
    """A footprint and the rectangles it was built from."""

    footprint: frozenset[Position]
    rooms: tuple[Room, ...]


def sample_canvas(config: GeneratorConfig, rng: random.Random) -> tuple[int, int]:
    """Pick canvas width and height within the configured bounds."""
    width = rng.randint(config.min_width, config.max_width)
    height = rng.randint(config.min_height, config.max_height)
    return width, height


def _fill(cells: set[Position], room: Room) -> None:
    cells.update(room.cells())


def overlapping_shape(
    config: GeneratorConfig,
    rng: random.Random,
    canvas: tuple[int, int] | None = None,
) -> Shape:
    """
    Union of rectangles, each one anchored on a cell already in the shape.

    Args:
        config: Rectangle count bounds are read from here
        rng: Source of randomness
        canvas: (width, height) to build within; sampled when None

    Returns:
        The shape; always at least 3x3 cells
    """
    width, height = canvas if canvas is not None else sample_canvas(config, rng)
    cells: set[Position] = set()
    rooms: list[Room] = []

    count = rng.randint(config.min_rectangles, config.max_rectangles)

    base_width = rng.randint(3, max(3, width - 2))
    base_height = rng.randint(3, max(3, height - 2))
    base = Room(
        rng.randint(0, max(0, width - base_width)),
        rng.randint(0, max(0, height - base_height)),
        base_width,
        base_height,
    )
    _fill(cells, base)
    rooms.append(base)

    for _ in range(1, count):
        anchor = rng.choice(sorted(cells))
        rect_width = rng.randint(2, max(2, width - 3))
        rect_height = rng.randint(2, max(2, height - 3))

        x = max(0, anchor.x - rng.randint(0, rect_width - 1))
        y = max(0, anchor.y - rng.randint(0, rect_height - 1))
        room = Room(x, y, min(rect_width, width - x), min(rect_height, height - y))

        _fill(cells, room)
        rooms.append(room)

    return Shape(frozenset(cells), tuple(rooms))


def _corridor_cells(start: Room, end: Room, horizontal_first: bool) -> list[Position]:
    """L-shaped one-tile corridor between the facing edges of two rooms."""
    if start.center.x < end.center.x:
        from_edge_x, to_edge_x = start.x + start.width - 1, end.x
    else:
        from_edge_x, to_edge_x = start.x, end.x + end.width - 1

    if start.center.y < end.center.y:
        from_edge_y, to_edge_y = start.y + start.height - 1, end.y
    else:
        from_edge_y, to_edge_y = start.y, end.y + end.height - 1

    cells: list[Position] = []
    if horizontal_first:
        row = start.center.y
        for x in range(min(from_edge_x, to_edge_x), max(from_edge_x, to_edge_x) + 1):
            cells.append(Position(x, row))
        for y in range(min(row, end.center.y), max(row, end.center.y) + 1):
            cells.append(Position(to_edge_x, y))
    else:
        column = start.center.x
        for y in range(min(from_edge_y, to_edge_y), max(from_edge_y, to_edge_y) + 1):
            cells.append(Position(column, y))
        for x in range(min(column, end.center.x), max(column, end.center.x) + 1):
            cells.append(Position(x, to_edge_y))
    return cells


def _place_room(
    rooms: list[Room],
    width: int,
    height: int,
    room_width: int,
    room_height: int,
    rng: random.Random,
) -> Room | None:
    """A spot at least ROOM_MARGIN away from every placed room, or None."""
    for _ in range(ROOM_PLACEMENT_ATTEMPTS):
        candidate = Room(
            rng.randint(0, max(0, width - room_width)),
            rng.randint(0, max(0, height - room_height)),
            room_width,
            room_height,
        )
        if not any(other.overlaps(candidate, ROOM_MARGIN) for other in rooms):
            return candidate
    return None


def corridor_shape(
    config: GeneratorConfig,
    rng: random.Random,
    canvas: tuple[int, int] | None = None,
) -> Shape:
    """
    Separate rooms joined in placement order by L-shaped corridors.

    Each room is placed by rejection sampling so it keeps ROOM_MARGIN cells
    away from earlier rooms. The first room always lands; a later room that
    finds no spot is dropped.
    """
    width, height = canvas if canvas is not None else sample_canvas(config, rng)
    cells: set[Position] = set()
    rooms: list[Room] = []

    for _ in range(rng.randint(*ROOM_COUNT_RANGE)):
        room_width = rng.randint(*ROOM_SIDE_RANGE)
        room_height = rng.randint(*ROOM_SIDE_RANGE)

        room = _place_room(rooms, width, height, room_width, room_height, rng)
        if room is None:
            logger.debug("corridor_shape: no room for %dx%d, dropped", room_width, room_height)
            continue

        _fill(cells, room)
        rooms.append(room)

    for start, end in zip(rooms, rooms[1:]):
        cells.update(_corridor_cells(start, end, rng.random() > 0.5))

    # Rooms may overhang a small canvas; keep the footprint on it
    footprint = frozenset(p for p in cells if 0 <= p.x < width and 0 <= p.y < height)
    return Shape(footprint, tuple(rooms))


def generate_shape(config: GeneratorConfig, rng: random.Random) -> Shape:
    """Pick a shape family with ``corridor_chance`` and build it."""
    canvas = sample_canvas(config, rng)
    if rng.random() < config.corridor_chance:
        return corridor_shape(config, rng, canvas)
    return overlapping_shape(config, rng, canvas)

"""
Turning a committed placement into an origin-based Level, and checking it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from generator_config import MIN_REQUIRED_VISITS
from obstacles import Placement
from oracle import is_stuck
from solver import required_visits
from tile_types import REQUIRED_VISITS, Grid, Level, Position, Room, TileType
from traversal import Board, reachable_from

logger = logging.getLogger(__name__)


def count_required_visits(grid: Iterable[Sequence[TileType]]) -> int:
    """Total visits still needed across a grid (dirt counts twice)."""
    return sum(REQUIRED_VISITS.get(tile, 0) for row in grid for tile in row)


def rasterize(placement: Placement) -> tuple[Grid, Position]:
    """
    Dense grid over the footprint's bounding box.

    Returns:
        (grid, origin) where origin is the top-left footprint corner that
        became (0, 0). Cells outside the footprint are VOID.
    """
    if not placement.footprint:
        raise ValueError("Cannot rasterize an empty footprint")

    min_x = min(p.x for p in placement.footprint)
    min_y = min(p.y for p in placement.footprint)
    max_x = max(p.x for p in placement.footprint)
    max_y = max(p.y for p in placement.footprint)

    grid = tuple(
        tuple(placement.tile_at(Position(x, y)) for x in range(min_x, max_x + 1))
        for y in range(min_y, max_y + 1)
    )
    return grid, Position(min_x, min_y)


def placement_rows(placement: Placement) -> list[list[TileType]]:
    """Rows covering the placement in its own coordinates, from (0, 0)."""
    max_x = max((p.x for p in placement.footprint), default=-1)
    max_y = max((p.y for p in placement.footprint), default=-1)
    return [
        [placement.tile_at(Position(x, y)) for x in range(max_x + 1)]
        for y in range(max_y + 1)
    ]


def build_level(
    placement: Placement,
    rooms: Iterable[Room],
    solution: Sequence[Position],
    name: str = "Generated",
) -> Level:
    """
    Build a Level whose coordinates all start at the origin.

    The start is the first solution position. Rooms, water-flow keys and the
    solution path are shifted by the same offset as the grid.
    """
    if not solution:
        raise ValueError("Cannot build a level without a solution path")

    grid, origin = rasterize(placement)

    def rebase(pos: Position) -> Position:
        return pos.offset(-origin.x, -origin.y)

    return Level(
        name=name,
        width=len(grid[0]),
        height=len(grid),
        grid=grid,
        start=rebase(solution[0]),
        rooms=tuple(Room(r.x - origin.x, r.y - origin.y, r.width, r.height) for r in rooms),
        water_flow={rebase(pos): direction for pos, direction in placement.flow.items()},
        solution=tuple(rebase(pos) for pos in solution),
    )


def verify_level(level: Level, min_required: int = MIN_REQUIRED_VISITS) -> bool:
    """
    Check a built level before it is handed out.

    The start must be an in-bounds grass tile and enough required visits
    must exist. Every required tile must also be reachable from the start
    on the fresh board, and the start must not already read as stuck.
    Slides can need consumed tiles to stop where the solver stopped, so a
    solvable level can still fail the last two checks.
    """
    if level.tile_at(level.start) != TileType.GRASS:
        logger.debug("verify_level: start %s is not grass", level.start)
        return False
    required = count_required_visits(level.grid)
    if required < min_required:
        logger.debug("verify_level: only %d required visits", required)
        return False

    board = Board.from_level(level)
    unreached = set(required_visits(board)) - reachable_from(board, level.start)
    if unreached:
        logger.debug(
            "verify_level: %d required tile(s) unreachable from %s", len(unreached), level.start
        )
        return False
    if is_stuck(level.grid, level.start, level.water_flow):
        logger.debug("verify_level: stuck at start %s", level.start)
        return False
    return True

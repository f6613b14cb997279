"""
Runtime queries on a live board: stuck detection, solvability and hints.

Every function takes the live grid and player position as plain data and
works on its own copy, so callers can keep mutating their state freely.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from generator_config import RUNTIME_SOLVER_CAP
from solver import SolveResult, SolveStatus, required_visits, solve
from tile_types import DIRECTIONS, Direction, Grid, Position, TileType, consume, is_required
from traversal import Board, WalkPredicate, move_destination, reachable_from, resolve_path, try_move

logger = logging.getLogger(__name__)

# Moves revealed by a single hint
HINT_LENGTH = 3

LiveGrid = Sequence[Sequence[TileType]]


class HintKind(Enum):
    """What a hint tells the player to do."""

    MOVES = "moves"  # Follow these moves
    UNDO = "undo"  # The current state is a dead end
    UNSURE = "unsure"  # Search budget ran out
    DONE = "done"  # Nothing left to visit


@dataclass(frozen=True)
class Hint:
    """
    Attributes:
        kind: Kind of hint
        moves: Suggested moves (MOVES only)
        positions: Resting position after each suggested move for MOVES;
            the tiles around the player to undo towards for UNDO
    """

    kind: HintKind
    moves: tuple[Direction, ...] = ()
    positions: tuple[Position, ...] = ()


@dataclass(frozen=True)
class MoveOutcome:
    """Result of applying one legal move to a live grid."""

    grid: Grid
    position: Position
    path: tuple[Position, ...]  # Every stop from the landing to ``position``
    won: bool


def _live_board(
    grid: LiveGrid,
    player: Position,
    flow: Mapping[Position, Direction] | None,
    conditions: Mapping[TileType, WalkPredicate] | None,
    occupied: Iterable[Position],
) -> Board:
    board = Board.from_rows(grid, flow, conditions, occupied)
    if not board.in_bounds(player):
        error_msg = (
            f"Player position is outside the grid\n"
            f"  Player: ({player.x}, {player.y})\n"
            f"  Grid: {board.width}x{board.height}"
        )
        raise ValueError(error_msg)
    return board


def _left_behind(board: Board, player: Position) -> Board:
    """The board as it will look once the player steps off its tile."""
    tile = board.tile_at(player)
    if is_required(tile):
        return board.with_tiles({player: consume(tile)})
    return board


def _won(board: Board, player: Position) -> bool:
    remaining = required_visits(board)
    return sum(remaining.values()) == 1 and remaining.get(player) == 1


def has_won(grid: LiveGrid, player: Position) -> bool:
    """Exactly one required visit remains and the player stands on it."""
    return _won(Board.from_rows(grid), player)


def is_stuck(
    grid: LiveGrid,
    player: Position,
    flow: Mapping[Position, Direction] | None = None,
    conditions: Mapping[TileType, WalkPredicate] | None = None,
    occupied: Iterable[Position] = (),
) -> bool:
    """
    Cheap dead-end check: can every remaining required tile still be reached?

    The player's own tile counts as already visited, so a grass tile under
    the player is treated as the mushroom it becomes on leaving. Nothing
    else is consumed during the search, so this can say "not stuck" for a
    lost position. On boards with slides or portals it can also say "stuck"
    for a winnable one: a consumed tile at the end of an ice run makes the
    next slide stop short, and that stop may be the only way in.

    Raises:
        ValueError: If the player is outside the grid
    """
    board = _live_board(grid, player, flow, conditions, occupied)
    if _won(board, player):
        return False

    view = _left_behind(board, player)
    remaining = required_visits(view)
    if not remaining:
        return False

    reached = reachable_from(view, player)
    unreachable = [p for p in remaining if p != player and p not in reached]
    if player in remaining:
        # Dirt under the player needs a way back onto it
        returns = any(
            move_destination(view, pos, direction) == player
            for pos in reached
            for direction in DIRECTIONS
        )
        if not returns:
            unreachable.append(player)

    if unreachable:
        logger.debug("is_stuck: %d required tile(s) unreachable from %s", len(unreachable), player)
    return bool(unreachable)


def is_solvable(
    grid: LiveGrid,
    player: Position,
    flow: Mapping[Position, Direction] | None = None,
    conditions: Mapping[TileType, WalkPredicate] | None = None,
    occupied: Iterable[Position] = (),
    rng: random.Random | None = None,
    max_iterations: int = RUNTIME_SOLVER_CAP,
) -> SolveResult:
    """Bounded solve from the player's position; CAPPED means "unsure"."""
    board = _live_board(grid, player, flow, conditions, occupied)
    return solve(board, player, rng, max_iterations)


def _undo_targets(board: Board, player: Position) -> tuple[Position, ...]:
    return tuple(
        neighbor
        for neighbor in player.neighbors()
        if board.in_bounds(neighbor) and board.tile_at(neighbor) != TileType.VOID
    )


def hint(
    grid: LiveGrid,
    player: Position,
    flow: Mapping[Position, Direction] | None = None,
    conditions: Mapping[TileType, WalkPredicate] | None = None,
    occupied: Iterable[Position] = (),
    rng: random.Random | None = None,
    max_iterations: int = RUNTIME_SOLVER_CAP,
    hint_length: int = HINT_LENGTH,
) -> Hint:
    """
    Suggest what to do next.

    Args:
        grid: Live tile rows
        player: Player position
        flow: Water flow per water tile
        conditions: Walk predicates for conditional tiles
        occupied: Positions nobody may land on
        rng: Shuffles the solver's move order
        max_iterations: Solver budget
        hint_length: Number of moves to reveal

    Returns:
        DONE when nothing is left to do, UNDO with the tiles around the
        player when stuck or proven unsolvable, MOVES with the next few
        moves when a solution was found, and UNSURE when the budget ran out
    """
    board = _live_board(grid, player, flow, conditions, occupied)
    remaining = required_visits(board)
    if not remaining or _won(board, player):
        return Hint(HintKind.DONE)

    if is_stuck(grid, player, flow, conditions, occupied):
        return Hint(HintKind.UNDO, positions=_undo_targets(board, player))

    result = solve(board, player, rng, max_iterations)
    match result.status:
        case SolveStatus.SOLVED:
            return Hint(
                HintKind.MOVES,
                moves=result.moves[:hint_length],
                positions=result.path[1 : hint_length + 1],
            )
        case SolveStatus.CAPPED:
            return Hint(HintKind.UNSURE)
        case SolveStatus.UNSOLVABLE:
            return Hint(HintKind.UNDO, positions=_undo_targets(board, player))


def apply_move(
    grid: LiveGrid,
    player: Position,
    direction: Direction,
    flow: Mapping[Position, Direction] | None = None,
    conditions: Mapping[TileType, WalkPredicate] | None = None,
    occupied: Iterable[Position] = (),
) -> MoveOutcome | None:
    """
    Advance a live grid by one move.

    The tile being left is consumed first, then the move lands and every
    forced effect resolves.

    Returns:
        The new grid, position and win flag, or None if the move is illegal
        (in which case nothing is consumed)
    """
    board = _live_board(grid, player, flow, conditions, occupied)
    after = _left_behind(board, player)
    landing = try_move(after, player, direction)
    if landing is None:
        return None

    path = resolve_path(after, landing, direction)
    destination = path[-1]
    return MoveOutcome(after.tiles, destination, tuple(path), _won(after, destination))

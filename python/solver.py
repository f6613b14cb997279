"""
Bounded randomized search for a path that visits every required tile.

The search replays the real movement rules from ``traversal`` on an overlay
board whose required tiles show their consumption progress, so jumps,
slides, teleports and bounces all behave exactly as they do in play.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from generator_config import RUNTIME_SOLVER_CAP
from tile_types import (
    DIRECTIONS,
    REQUIRED_VISITS,
    Direction,
    Position,
    TileType,
    consume,
    is_required,
)
from traversal import Board, move_destination

logger = logging.getLogger(__name__)


class SolveStatus(Enum):
    """Outcome of a bounded search."""

    SOLVED = "solved"
    UNSOLVABLE = "unsolvable"  # Search space exhausted
    CAPPED = "capped"  # Iteration budget spent, result unknown


@dataclass(frozen=True)
class SolveResult:
    """
    Attributes:
        status: How the search ended
        path: Resting positions from the start onwards (empty unless solved)
        moves: Direction of each move, one fewer than ``path``
        iterations: Search steps spent
    """

    status: SolveStatus
    path: tuple[Position, ...] = ()
    moves: tuple[Direction, ...] = ()
    iterations: int = 0

    @property
    def solved(self) -> bool:
        return self.status == SolveStatus.SOLVED


def required_visits(board: Board) -> dict[Position, int]:
    """Visits still needed per required tile."""
    return {
        pos: REQUIRED_VISITS[tile]
        for pos in board.positions()
        if is_required(tile := board.tile_at(pos))
    }


def is_complete(remaining: Mapping[Position, int]) -> bool:
    return all(count == 0 for count in remaining.values())


@dataclass(frozen=True)
class _SearchBoard(Board):
    """Board that shows each required tile as consumed by its spent visits."""

    remaining: dict[Position, int] = field(default_factory=dict)

    def tile_at(self, pos: Position) -> TileType | None:
        tile = super().tile_at(pos)
        left = self.remaining.get(pos)
        if tile is None or left is None:
            return tile
        for _ in range(REQUIRED_VISITS.get(tile, 0) - left):
            tile = consume(tile)
        return tile


class _Budget:
    """Iteration counter shared across several searches."""

    def __init__(self, limit: int):
        self.limit = limit
        self.used = 0

    def spend(self) -> bool:
        self.used += 1
        return self.used <= self.limit


@dataclass
class _Frame:
    position: Position
    moves: list[tuple[Direction, Position]]
    visited: bool  # Arriving here spent a required visit
    saved_bridges: frozenset[Position]
    next_index: int = 0


def _candidate_moves(
    board: Board, pos: Position, rng: random.Random
) -> list[tuple[Direction, Position]]:
    moves = []
    for direction in DIRECTIONS:
        destination = move_destination(board, pos, direction)
        if destination is not None and destination != pos:
            moves.append((direction, destination))
    rng.shuffle(moves)
    return moves


def _search(board: Board, start: Position, rng: random.Random, budget: _Budget) -> SolveStatus | SolveResult:
    if not board.in_bounds(start):
        raise ValueError(
            f"Search start {start} is outside the {board.width}x{board.height} board"
        )

    remaining = required_visits(board)
    view = _SearchBoard(board.tiles, board.flow, board.conditions, board.occupied, remaining)
    outstanding = sum(remaining.values())

    path = [start]
    moves: list[Direction] = []

    start_visited = remaining.get(start, 0) > 0
    if start_visited:
        remaining[start] -= 1
        outstanding -= 1
    # Bridges seen since the last required visit
    bridges: set[Position] = set() if start_visited else {start}

    if outstanding == 0:
        return SolveResult(SolveStatus.SOLVED, tuple(path), (), budget.used)

    stack = [_Frame(start, _candidate_moves(view, start, rng), start_visited, frozenset())]

    while stack:
        if not budget.spend():
            return SolveStatus.CAPPED

        frame = stack[-1]
        if frame.next_index >= len(frame.moves):
            stack.pop()
            if frame.visited:
                remaining[frame.position] += 1
                outstanding += 1
            bridges = set(frame.saved_bridges)
            if stack:
                path.pop()
                moves.pop()
            continue

        direction, destination = frame.moves[frame.next_index]
        frame.next_index += 1

        counts = remaining.get(destination, 0) > 0
        if not counts and destination in bridges:
            continue

        saved = frozenset(bridges)
        if counts:
            remaining[destination] -= 1
            outstanding -= 1
            bridges = set()
        else:
            bridges.add(destination)

        path.append(destination)
        moves.append(direction)
        if outstanding == 0:
            return SolveResult(SolveStatus.SOLVED, tuple(path), tuple(moves), budget.used)

        stack.append(_Frame(destination, _candidate_moves(view, destination, rng), counts, saved))

    return SolveStatus.UNSOLVABLE


def solve(
    board: Board,
    start: Position,
    rng: random.Random | None = None,
    max_iterations: int = RUNTIME_SOLVER_CAP,
) -> SolveResult:
    """
    Search for a path from ``start`` that spends every required visit.

    A visit is spent on arrival, including at the start. Dirt needs both of
    its visits before the board counts as complete.

    Args:
        board: Board snapshot; not modified
        start: Player position
        rng: Shuffles move order; a fresh unseeded instance when None
        max_iterations: Search steps before giving up with CAPPED

    Returns:
        SOLVED with the path and moves, UNSOLVABLE, or CAPPED

    Raises:
        ValueError: If ``start`` is out of bounds
    """
    budget = _Budget(max_iterations)
    outcome = _search(board, start, rng or random.Random(), budget)
    if isinstance(outcome, SolveResult):
        logger.debug("solve: solved from %s in %d iterations", start, outcome.iterations)
        return outcome
    logger.debug("solve: %s from %s after %d iterations", outcome.value, start, budget.used)
    return SolveResult(outcome, iterations=min(budget.used, budget.limit))


def find_hamiltonian_path(
    board: Board,
    starts: Iterable[Position],
    rng: random.Random | None = None,
    max_iterations: int = RUNTIME_SOLVER_CAP,
) -> SolveResult:
    """
    Try start candidates in random order under one shared iteration budget.

    Returns:
        The first solution found, CAPPED once the budget runs out, or
        UNSOLVABLE when every start was exhausted
    """
    rng = rng or random.Random()
    candidates = list(starts)
    rng.shuffle(candidates)
    budget = _Budget(max_iterations)

    for start in candidates:
        outcome = _search(board, start, rng, budget)
        if isinstance(outcome, SolveResult):
            logger.info(
                "find_hamiltonian_path: solved from %s, %d moves, %d iterations",
                start, len(outcome.moves), outcome.iterations,
            )
            return outcome
        if outcome == SolveStatus.CAPPED:
            logger.info("find_hamiltonian_path: capped at %d iterations", budget.limit)
            return SolveResult(SolveStatus.CAPPED, iterations=budget.limit)

    logger.info("find_hamiltonian_path: no path from %d starts", len(candidates))
    return SolveResult(SolveStatus.UNSOLVABLE, iterations=budget.used)

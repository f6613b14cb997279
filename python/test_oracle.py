"""Tests for oracle module."""

import random

import pytest

from level_parser import parse_rows
from oracle import HintKind, apply_move, has_won, hint, is_solvable, is_stuck
from solver import SolveStatus, solve
from tile_types import Direction, Position, TileType
from traversal import Board


def rows(definition: str) -> list[list[TileType]]:
    """Mutable rows, the way a live game keeps its board."""
    return [list(row) for row in parse_rows(definition).grid]


class TestHasWon:
    """Tests for the win condition."""

    def test_last_tile_under_player(self) -> None:
        """Winning means standing on the only remaining required tile."""
        assert has_won(rows("MMG"), Position(2, 0))
        assert not has_won(rows("MMG"), Position(0, 0))

    def test_dirt_is_not_done(self) -> None:
        """A dirt tile needs two more visits, so standing on it is not a win."""
        assert not has_won(rows("MMD"), Position(2, 0))

    def test_other_grass_left(self) -> None:
        """Two grass tiles left is not a win."""
        assert not has_won(rows("GMG"), Position(2, 0))


class TestIsStuck:
    """Tests for dead-end detection."""

    def test_fresh_board(self) -> None:
        """An open board is not stuck."""
        assert not is_stuck(rows("GGG|GGG"), Position(0, 0))

    def test_unreachable_grass(self) -> None:
        """Grass behind a void is unreachable."""
        assert is_stuck(rows("GG_G"), Position(0, 0))

    def test_dirt_under_player_needs_return(self) -> None:
        """Dirt under a trapped player can never get its second visit."""
        assert is_stuck(rows("DB"), Position(0, 0))

    def test_dirt_with_way_back(self) -> None:
        """Dirt under the player is fine if the player can come back."""
        assert not is_stuck(rows("DG"), Position(0, 0))

    def test_won_is_not_stuck(self) -> None:
        """A won board is not stuck."""
        assert not is_stuck(rows("MG"), Position(1, 0))

    def test_player_out_of_bounds(self) -> None:
        """A player outside the grid is an error."""
        with pytest.raises(ValueError, match="outside the grid"):
            is_stuck(rows("GG"), Position(3, 0))

    def test_ice_stop_needs_consumption(self) -> None:
        """A stop that only exists once the ice run's end is consumed reads as stuck."""
        grid = rows("@IIG|__G_")
        assert is_stuck(grid, Position(0, 0))

        result = is_solvable(grid, Position(0, 0), rng=random.Random(0))
        assert result.status == SolveStatus.SOLVED
        assert result.path == (
            Position(0, 0), Position(3, 0), Position(1, 0), Position(2, 0), Position(2, 1),
        )

    def test_input_not_mutated(self) -> None:
        """The caller's grid is left alone."""
        grid = rows("GBG")
        is_stuck(grid, Position(0, 0))
        assert grid == rows("GBG")


class TestIsSolvable:
    """Tests for bounded solvability."""

    def test_solvable(self) -> None:
        """A row of grass is solvable."""
        result = is_solvable(rows("GGG"), Position(0, 0), rng=random.Random(0))
        assert result.status == SolveStatus.SOLVED

    def test_unsolvable(self) -> None:
        """A T junction from an arm is unsolvable."""
        result = is_solvable(rows("GGG|_G_"), Position(0, 0), rng=random.Random(0))
        assert result.status == SolveStatus.UNSOLVABLE

    def test_capped(self) -> None:
        """A tiny budget gives an unsure answer."""
        result = is_solvable(rows("GGGG|GGGG|GGGG"), Position(0, 0), rng=random.Random(0), max_iterations=1)
        assert result.status == SolveStatus.CAPPED


class TestHint:
    """Tests for hints."""

    def test_moves(self) -> None:
        """A solvable board reveals the next moves."""
        result = hint(rows("GGGG"), Position(0, 0), rng=random.Random(0), hint_length=2)
        assert result.kind == HintKind.MOVES
        assert result.moves == (Direction.RIGHT, Direction.RIGHT)
        assert result.positions == (Position(1, 0), Position(2, 0))

    def test_done(self) -> None:
        """Nothing left to visit gives DONE."""
        assert hint(rows("MMG"), Position(2, 0)).kind == HintKind.DONE
        assert hint(rows("SS"), Position(0, 0)).kind == HintKind.DONE

    def test_stuck_gives_undo(self) -> None:
        """A stuck board suggests undoing towards a neighbour."""
        result = hint(rows("GG_G"), Position(0, 0))
        assert result.kind == HintKind.UNDO
        assert result.positions == (Position(1, 0),)

    def test_unsolvable_gives_undo(self) -> None:
        """A reachable but unsolvable board also suggests undoing."""
        result = hint(rows("GGG|_G_"), Position(0, 0), rng=random.Random(0))
        assert result.kind == HintKind.UNDO
        assert result.positions == (Position(1, 0),)

    def test_capped_gives_unsure(self) -> None:
        """Running out of budget gives UNSURE."""
        result = hint(rows("GGGG|GGGG|GGGG"), Position(0, 0), rng=random.Random(0), max_iterations=1)
        assert result.kind == HintKind.UNSURE


class TestApplyMove:
    """Tests for advancing a live grid."""

    def test_jump_and_win(self) -> None:
        """Jumping the bramble consumes the start and wins."""
        outcome = apply_move(rows("GBG"), Position(0, 0), Direction.RIGHT)
        assert outcome is not None
        assert outcome.position == Position(2, 0)
        assert outcome.grid[0][0] == TileType.MUSHROOM
        assert outcome.won

    def test_illegal_move(self) -> None:
        """An impossible move returns None and consumes nothing."""
        grid = rows("G_G")
        assert apply_move(grid, Position(0, 0), Direction.RIGHT) is None
        assert grid == rows("G_G")

    def test_dirt_becomes_grass(self) -> None:
        """Leaving dirt turns it into grass."""
        outcome = apply_move(rows("DG"), Position(0, 0), Direction.RIGHT)
        assert outcome is not None
        assert outcome.grid[0][0] == TileType.GRASS
        assert not outcome.won

    def test_slide_path(self) -> None:
        """Currents carry the player and every stop is reported."""
        parsed = parse_rows("G>>S")
        outcome = apply_move(parsed.grid, Position(0, 0), Direction.RIGHT, parsed.flow)
        assert outcome is not None
        assert outcome.position == Position(3, 0)
        assert outcome.path == (Position(1, 0), Position(2, 0), Position(3, 0))

    def test_stone_is_not_consumed(self) -> None:
        """Leaving a stone leaves it a stone."""
        outcome = apply_move(rows("SG"), Position(0, 0), Direction.RIGHT)
        assert outcome is not None
        assert outcome.grid[0][0] == TileType.STONE

    def test_solver_moves_replay_to_win(self) -> None:
        """Moves found by the solver win when applied for real."""
        parsed = parse_rows("GGGG|GBGG|GGGG")
        result = solve(Board.from_rows(parsed.grid), Position(0, 0), random.Random(3), 50000)
        assert result.solved

        grid, position = parsed.grid, Position(0, 0)
        outcome = None
        for direction, expected in zip(result.moves, result.path[1:]):
            outcome = apply_move(grid, position, direction)
            assert outcome is not None
            assert outcome.position == expected
            grid, position = outcome.grid, outcome.position
        assert outcome is not None and outcome.won

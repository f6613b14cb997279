"""Tests for generator and generator_config modules."""

import random

import pytest

from generator import generate_level, sample_portal_pairs, solver_budget
from generator_config import DEFAULT_CONFIG, GeneratorConfig, WorldElement
from level_builder import count_required_visits, verify_level
from oracle import apply_move, is_stuck
from solver import required_visits
from tile_types import PORTAL_TYPES, Direction, Level, TileType
from traversal import Board, reachable_from

SMALL = GeneratorConfig().with_overrides(max_width=9, max_height=9)


def replay_solution(level: Level) -> bool:
    """Walk the stored solution with real moves and report whether it wins."""
    assert level.solution is not None
    grid, position, won = level.grid, level.start, False
    for target in level.solution[1:]:
        for direction in Direction:
            outcome = apply_move(grid, position, direction, level.water_flow)
            if outcome is not None and outcome.position == target:
                break
        else:
            return False
        grid, position, won = outcome.grid, outcome.position, outcome.won
    return won


def tiles_of(level: Level, tile: TileType) -> int:
    return level.count(tile)


# =============================================================================
# Test Configuration
# =============================================================================


class TestGeneratorConfig:
    """Tests for the config dataclass."""

    def test_defaults(self) -> None:
        """Defaults match the classic meadow settings."""
        assert (DEFAULT_CONFIG.min_width, DEFAULT_CONFIG.max_width) == (8, 12)
        assert (DEFAULT_CONFIG.min_height, DEFAULT_CONFIG.max_height) == (8, 12)
        assert DEFAULT_CONFIG.bramble_chance == 0.12
        assert DEFAULT_CONFIG.stone_chance == 0.08
        assert (DEFAULT_CONFIG.river_min_length, DEFAULT_CONFIG.river_max_length) == (2, 4)
        assert DEFAULT_CONFIG.max_retries == 100

    def test_with_overrides(self) -> None:
        """Overrides replace only the named knobs."""
        config = DEFAULT_CONFIG.with_overrides(bramble_chance=0.3, max_retries=5)
        assert config.bramble_chance == 0.3
        assert config.max_retries == 5
        assert config.stone_chance == DEFAULT_CONFIG.stone_chance
        assert DEFAULT_CONFIG.bramble_chance == 0.12

    def test_unknown_knob(self) -> None:
        """Unknown knob names are rejected with the offending name."""
        with pytest.raises(ValueError, match="Unknown generator config knob") as exc_info:
            DEFAULT_CONFIG.with_overrides(bramble_chanse=0.3)
        assert "bramble_chanse" in str(exc_info.value)

    def test_inverted_bounds(self) -> None:
        """A minimum above its maximum is rejected with both knobs named."""
        with pytest.raises(ValueError, match="Inverted generator config bounds") as exc_info:
            DEFAULT_CONFIG.with_overrides(min_width=13)
        assert "min_width=13 > max_width=12" in str(exc_info.value)

    def test_inverted_bounds_on_construction(self) -> None:
        """Every inverted pair is reported, not just the first."""
        with pytest.raises(ValueError) as exc_info:
            GeneratorConfig(min_rectangles=4, river_min_length=5, river_max_length=3)
        error_msg = str(exc_info.value)
        assert "min_rectangles=4 > max_rectangles=3" in error_msg
        assert "river_min_length=5 > river_max_length=3" in error_msg

    def test_solver_budget(self) -> None:
        """The budget scales with required tiles up to the cap."""
        assert solver_budget(DEFAULT_CONFIG, 4) == 20000
        assert solver_budget(DEFAULT_CONFIG, 20) == 50000

    def test_portal_pairs(self) -> None:
        """A fixed pair count wins; otherwise one to three pairs are sampled."""
        assert sample_portal_pairs(DEFAULT_CONFIG.with_overrides(portal_pairs=2), random.Random(0)) == 2
        rng = random.Random(0)
        samples = {sample_portal_pairs(DEFAULT_CONFIG, rng) for _ in range(200)}
        assert samples == {1, 2, 3}


# =============================================================================
# Test Generation
# =============================================================================


class TestGenerateLevel:
    """Tests for whole-level generation."""

    def test_levels_are_valid(self) -> None:
        """Generated levels verify, start on grass and replay to a win."""
        for seed in range(3):
            level = generate_level(SMALL, rng=random.Random(seed))
            assert level is not None
            assert verify_level(level)
            assert level.tile_at(level.start) == TileType.GRASS
            assert count_required_visits(level.grid) >= 8
            assert level.solution is not None
            assert level.solution[0] == level.start
            assert replay_solution(level)

    def test_required_reachable_from_start(self) -> None:
        """Every required tile is reachable from the start before any consumption."""
        for seed in range(3):
            level = generate_level(SMALL, [WorldElement.RIVERS], rng=random.Random(seed))
            assert level is not None
            board = Board.from_level(level)
            assert set(required_visits(board)) <= reachable_from(board, level.start)

    def test_not_stuck_after_generation(self) -> None:
        """A fresh level is never reported stuck."""
        for seed in range(3):
            level = generate_level(SMALL, [WorldElement.DIRT], rng=random.Random(seed))
            assert level is not None
            assert not is_stuck(level.grid, level.start, level.water_flow)

    def test_slide_worlds_reach_everything(self) -> None:
        """Ice and portal levels reach every required tile and are not stuck at the start."""
        cases = [
            (SMALL.with_overrides(ice_chance=0.3), [WorldElement.ICE, WorldElement.RIVERS], 37),
            (SMALL.with_overrides(ice_chance=0.3), [WorldElement.ICE], 4),
            (SMALL.with_overrides(portal_pairs=2), [WorldElement.FAIRY], 6),
            (SMALL, [WorldElement.ICE, WorldElement.FAIRY], 9),
        ]
        for config, elements, seed in cases:
            level = generate_level(config, elements, rng=random.Random(seed))
            assert level is not None
            board = Board.from_level(level)
            assert set(required_visits(board)) <= reachable_from(board, level.start)
            assert not is_stuck(level.grid, level.start, level.water_flow)
            assert replay_solution(level)

    def test_elements_gate_features(self) -> None:
        """Water and ice only appear when their element is enabled."""
        level = generate_level(SMALL, rng=random.Random(8))
        assert level is not None
        assert tiles_of(level, TileType.WATER) == 0
        assert tiles_of(level, TileType.ICE) == 0
        assert not any(tiles_of(level, portal) for portal in PORTAL_TYPES)

    def test_rivers_have_currents(self) -> None:
        """Every water tile has a flow direction."""
        config = SMALL.with_overrides(river_skip_chance=0.0)
        level = generate_level(config, [WorldElement.RIVERS], rng=random.Random(2))
        assert level is not None
        for pos in Board.from_level(level).positions():
            if level.tile_at(pos) == TileType.WATER:
                assert pos in level.water_flow

    def test_ice_levels_replay(self) -> None:
        """Levels with ice still replay to a win."""
        config = SMALL.with_overrides(ice_chance=0.15)
        level = generate_level(config, [WorldElement.ICE], rng=random.Random(1))
        assert level is not None
        assert replay_solution(level)

    def test_fairy_levels(self) -> None:
        """Portals come in pairs and the stored solution still wins."""
        config = SMALL.with_overrides(portal_pairs=1)
        level = generate_level(config, [WorldElement.FAIRY], rng=random.Random(3))
        assert level is not None
        for portal in PORTAL_TYPES:
            assert tiles_of(level, portal) in (0, 2)
        assert level.tile_at(level.start) == TileType.GRASS
        assert replay_solution(level)

    def test_exhausted_retries(self) -> None:
        """No attempts means no level."""
        assert generate_level(SMALL.with_overrides(max_retries=0), rng=random.Random(0)) is None

    def test_seeded_generation_repeats(self) -> None:
        """The same seed gives the same level."""
        first = generate_level(SMALL, rng=random.Random(5))
        second = generate_level(SMALL, rng=random.Random(5))
        assert first == second

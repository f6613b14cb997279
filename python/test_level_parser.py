"""Tests for level_parser module."""

import pytest

from level_parser import parse_level, parse_levels, parse_rows
from tile_types import Direction, Position, TileType


class TestParseRows:
    """Tests for the single-definition parser."""

    def test_simple_grid(self) -> None:
        """Parse a grid with grass, bramble and stone."""
        parsed = parse_rows("GB|SG")
        assert parsed.width == 2
        assert parsed.height == 2
        assert parsed.grid == (
            (TileType.GRASS, TileType.BRAMBLE),
            (TileType.STONE, TileType.GRASS),
        )

    def test_water_flow(self) -> None:
        """Arrow characters are water with a current."""
        parsed = parse_rows("G>v|W<^")
        assert parsed.grid[0][1] == TileType.WATER
        assert parsed.grid[1][0] == TileType.WATER
        assert parsed.flow == {
            Position(1, 0): Direction.RIGHT,
            Position(2, 0): Direction.DOWN,
            Position(1, 1): Direction.LEFT,
            Position(2, 1): Direction.UP,
        }

    def test_start_marker(self) -> None:
        """'@' is grass and records the start."""
        parsed = parse_rows("G@")
        assert parsed.grid[0][1] == TileType.GRASS
        assert parsed.starts == (Position(1, 0),)

    def test_all_tile_characters(self) -> None:
        """Every documented character maps to a tile."""
        parsed = parse_rows("GDS_BMrush|WILOHT=AQ1")
        assert parsed.grid[0] == (
            TileType.GRASS, TileType.DIRT, TileType.STONE, TileType.VOID, TileType.BRAMBLE,
            TileType.MUSHROOM, TileType.MUSHROOM_RED, TileType.MUSHROOM_BLUE,
            TileType.SAND_MUSHROOM, TileType.HONEY_MUSHROOM,
        )
        assert parsed.grid[1] == (
            TileType.WATER, TileType.ICE, TileType.LILYPAD, TileType.BOUNCE_PAD,
            TileType.HONEY, TileType.TIDE, TileType.SEA, TileType.ACORN,
            TileType.SQUIRREL, TileType.PORTAL_PINK,
        )

    def test_whitespace_around_rows(self) -> None:
        """Whitespace around rows is ignored."""
        parsed = parse_rows("""
            GG |
            GG
        """)
        assert parsed.height == 2
        assert parsed.width == 2

    def test_invalid_character(self) -> None:
        """Unknown characters raise with their location."""
        with pytest.raises(ValueError) as exc_info:
            parse_rows("GG|GX", "broken")

        error_msg = str(exc_info.value)
        assert "Invalid character 'X'" in error_msg
        assert "broken" in error_msg
        assert "Row 1, column 1" in error_msg

    def test_inconsistent_row_lengths(self) -> None:
        """Rows of different lengths raise with the offending rows."""
        with pytest.raises(ValueError) as exc_info:
            parse_rows("GGG|GG")

        error_msg = str(exc_info.value)
        assert "Inconsistent row lengths" in error_msg
        assert "Row 1: 2 tiles" in error_msg

    def test_empty_definition(self) -> None:
        """An empty definition is rejected."""
        with pytest.raises(ValueError, match="Empty level definition"):
            parse_rows("   ")


class TestParseLevel:
    """Tests for parsing whole levels."""

    def test_level_fields(self) -> None:
        """A parsed level carries its name, size, start and currents."""
        level = parse_level("@>S|GGG", "river")
        assert level.name == "river"
        assert (level.width, level.height) == (3, 2)
        assert level.start == Position(0, 0)
        assert level.water_flow == {Position(1, 0): Direction.RIGHT}
        assert level.solution is None

    def test_missing_start(self) -> None:
        """A level needs a start marker."""
        with pytest.raises(ValueError, match="exactly one start marker"):
            parse_level("GG|GG")

    def test_duplicate_start(self) -> None:
        """Two start markers are rejected with both positions."""
        with pytest.raises(ValueError) as exc_info:
            parse_level("@G|G@")
        assert "(0, 0), (1, 1)" in str(exc_info.value)


class TestParseLevels:
    """Tests for level sheets."""

    def test_multiple_levels(self) -> None:
        """Each line is a named level."""
        levels = parse_levels("""
        first: @GG|GBG
        second: @>S
        """)
        assert set(levels) == {"first", "second"}
        assert levels["first"].height == 2
        assert levels["second"].water_flow == {Position(1, 0): Direction.RIGHT}

    def test_missing_colon(self) -> None:
        """Lines without a name separator are rejected."""
        with pytest.raises(ValueError, match="Expected format"):
            parse_levels("@GG")

    def test_duplicate_names(self) -> None:
        """Level names must be unique."""
        with pytest.raises(ValueError, match="Duplicate level name 'a'"):
            parse_levels("a: @G\na: G@")

    def test_empty_name(self) -> None:
        """A line needs a name before the colon."""
        with pytest.raises(ValueError, match="Empty level name"):
            parse_levels(": @G")

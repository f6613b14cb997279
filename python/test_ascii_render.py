"""Tests for ascii_render module."""

import re

from ascii_render import format_level, format_rows, render_board, render_level, render_levels_flow, tile_char
from level_parser import parse_level
from tile_types import Direction, Position, TileType

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return ANSI.sub("", text)


class TestFormat:
    """Tests for plain definitions."""

    def test_round_trip(self) -> None:
        """Formatting a parsed level gives back its definition."""
        definition = "@G>S|GBvI|_123"
        assert format_level(parse_level(definition)) == definition

    def test_separator(self) -> None:
        """Rows can be joined with newlines for display."""
        level = parse_level("@G|GG")
        assert format_level(level, separator="\n") == "@G\nGG"

    def test_start_on_non_grass(self) -> None:
        """A start on a non-grass tile keeps the tile's character."""
        grid = ((TileType.STONE, TileType.GRASS),)
        assert format_rows(grid, start=Position(0, 0)) == "SG"

    def test_tile_char(self) -> None:
        """Still water is W; flowing water shows its current."""
        assert tile_char(TileType.WATER) == "W"
        assert tile_char(TileType.WATER, Direction.LEFT) == "<"
        assert tile_char(TileType.GRASS) == "G"


class TestRenderBoard:
    """Tests for coloured boards."""

    def test_box_and_player(self) -> None:
        """The board is boxed, titled and shows the player."""
        level = parse_level("@GG|GBG", "tiny")
        lines = [strip_ansi(line) for line in render_board(level.grid, level.start, title="tiny")]
        assert len(lines) == 4
        assert "tiny" in lines[0]
        assert lines[1].startswith("│")
        assert lines[1].endswith("│")
        assert " P " in lines[1]
        assert " B " in lines[2]
        assert all(len(line) == 3 * 3 + 2 for line in lines)

    def test_void_is_blank(self) -> None:
        """Void cells render as blanks."""
        level = parse_level("@_G")
        line = strip_ansi(render_board(level.grid, cell_width=1)[1])
        assert line == "│G G│"

    def test_render_level_uses_start(self) -> None:
        """render_level puts the player on the start by default."""
        level = parse_level("G@", "start")
        text = strip_ansi(render_level(level))
        assert "│ G  P │" in text

    def test_flow_layout(self) -> None:
        """Several levels are laid out side by side."""
        levels = [parse_level("@G", "one"), parse_level("@GG|GGG", "two")]
        text = strip_ansi(render_levels_flow(levels, terminal_width=80))
        first_line = text.split("\n")[0]
        assert "one" in first_line
        assert "two" in first_line

    def test_flow_wraps(self) -> None:
        """Levels that do not fit move to the next row."""
        levels = [parse_level("@GGGG", "one"), parse_level("@GGGG", "two")]
        text = strip_ansi(render_levels_flow(levels, terminal_width=20))
        lines = text.split("\n")
        assert "one" in lines[0]
        assert "two" not in lines[0]
        assert any("two" in line for line in lines[1:])

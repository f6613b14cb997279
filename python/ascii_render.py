"""
ASCII rendering for meadow levels.

Provides two rendering approaches:
1. Plain definitions - the same one-character-per-tile text level_parser reads
2. Coloured boards - boxed, coloured grids for terminals, in flow layout
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

import simple_chalk as chalk  # type: ignore[import-untyped]

from level_parser import FLOW_CHARS, START_CHAR, TILE_CHARS
from tile_types import Direction, Level, Position, TileType

logger = logging.getLogger(__name__)

# Tile type -> definition character (first character wins, so '@' never shows)
TILE_GLYPHS: dict[TileType, str] = {}
for _char, _tile in TILE_CHARS.items():
    if _char != START_CHAR:
        TILE_GLYPHS.setdefault(_tile, _char)

FLOW_GLYPHS: dict[Direction, str] = {direction: char for char, direction in FLOW_CHARS.items()}

TILE_COLORS: dict[TileType, Callable[[str], str]] = {
    TileType.GRASS: chalk.greenBright,
    TileType.DIRT: chalk.yellow,
    TileType.STONE: chalk.white,
    TileType.BRAMBLE: chalk.green,
    TileType.MUSHROOM: chalk.red,
    TileType.MUSHROOM_RED: chalk.red,
    TileType.MUSHROOM_BLUE: chalk.blue,
    TileType.SAND_MUSHROOM: chalk.yellowBright,
    TileType.HONEY_MUSHROOM: chalk.yellowBright,
    TileType.WATER: chalk.blueBright,
    TileType.ICE: chalk.cyan,
    TileType.LILYPAD: chalk.green,
    TileType.POND_WATER: chalk.blue,
    TileType.BOUNCE_PAD: chalk.magenta,
    TileType.HONEY: chalk.yellowBright,
    TileType.TIDE: chalk.yellow,
    TileType.SEA: chalk.blue,
    TileType.ACORN: chalk.redBright,
    TileType.SQUIRREL: chalk.redBright,
    TileType.PORTAL_PINK: chalk.magenta,
    TileType.PORTAL_BLUE: chalk.blueBright,
    TileType.PORTAL_YELLOW: chalk.yellowBright,
}


def tile_char(tile: TileType, flow: Direction | None = None) -> str:
    """Definition character for a tile; flowing water shows its current."""
    if tile == TileType.WATER and flow is not None:
        return FLOW_GLYPHS[flow]
    return TILE_GLYPHS[tile]


# =============================================================================
# Plain Definitions
# =============================================================================


def format_rows(
    grid: Sequence[Sequence[TileType]],
    flow: Mapping[Position, Direction] | None = None,
    start: Position | None = None,
    separator: str = "|",
) -> str:
    """
    Text definition of a grid that parse_rows reads back.

    A grass start is written as '@'; any other tile under ``start`` keeps
    its own character.
    """
    flow = flow or {}
    lines = []
    for y, row in enumerate(grid):
        chars = []
        for x, tile in enumerate(row):
            pos = Position(x, y)
            if pos == start and tile == TileType.GRASS:
                chars.append(START_CHAR)
            else:
                chars.append(tile_char(tile, flow.get(pos)))
        lines.append("".join(chars))
    return separator.join(lines)


def format_level(level: Level, separator: str = "|") -> str:
    return format_rows(level.grid, level.water_flow, level.start, separator)


# =============================================================================
# Coloured Boards
# =============================================================================


def render_board(
    grid: Sequence[Sequence[TileType]],
    player: Position | None = None,
    flow: Mapping[Position, Direction] | None = None,
    title: str = "",
    cell_width: int = 3,
    marks: Iterable[Position] = (),
) -> list[str]:
    """
    Render a grid as a boxed, coloured character display.

    Args:
        grid: Tile rows
        player: Optional position to highlight as the player
        flow: Water flow per water tile
        title: Shown centred in the top border
        cell_width: Characters per cell (default 3)
        marks: Positions to highlight as hints

    Returns:
        List of strings representing the rendered lines
    """
    flow = flow or {}
    marked = set(marks)
    cols = len(grid[0]) if grid else 0
    border_width = 2  # left and right borders
    grid_width = cols * cell_width + border_width

    lines: list[str] = []

    label = f" {title} " if title else ""
    if label and len(label) <= grid_width - 2:
        title_start = (grid_width - len(label)) // 2
        lines.append(
            "┌"
            + "─" * (title_start - 1)
            + label
            + "─" * (grid_width - title_start - len(label) - 1)
            + "┐"
        )
    else:
        lines.append("┌" + "─" * (grid_width - 2) + "┐")

    for y, row in enumerate(grid):
        line_parts = ["│"]
        for x, tile in enumerate(row):
            pos = Position(x, y)
            if pos == player:
                char = "P"
            elif tile == TileType.VOID:
                char = " "
            else:
                char = tile_char(tile, flow.get(pos))

            content = char if cell_width == 1 else char.center(cell_width)

            if pos == player:
                content = chalk.bgWhite.black(content)
            elif pos in marked:
                content = chalk.bgYellow.black(content)
            else:
                content = TILE_COLORS.get(tile, lambda s: s)(content)
            line_parts.append(content)

        line_parts.append("│")
        lines.append("".join(line_parts))

    lines.append("└" + "─" * (grid_width - 2) + "┘")
    return lines


def render_level(
    level: Level,
    player: Position | None = None,
    cell_width: int = 3,
    marks: Iterable[Position] = (),
) -> str:
    """Render a level with the player at ``player`` (its start by default)."""
    lines = render_board(
        level.grid,
        level.start if player is None else player,
        level.water_flow,
        level.name,
        cell_width,
        marks,
    )
    return "\n".join(lines)


def render_levels_flow(
    levels: Sequence[Level],
    terminal_width: int = 120,
    cell_width: int = 3,
) -> str:
    """
    Render several levels in flow layout (multiple levels per row).

    Args:
        levels: Levels to render, each at its start position
        terminal_width: Maximum width for layout (default 120)
        cell_width: Characters per cell (default 3)

    Returns:
        Rendered string with all levels in flow layout
    """
    rendered = [
        render_board(level.grid, level.start, level.water_flow, level.name, cell_width)
        for level in levels
    ]
    # ANSI codes make len() useless for layout, so use the grid geometry
    widths = [level.width * cell_width + 2 for level in levels]

    output_lines: list[str] = []
    spacing = 2  # spaces between levels

    row: list[int] = []
    row_width = 0
    for index, width in enumerate(widths):
        needed = width + (spacing if row else 0)
        if row and row_width + needed > terminal_width:
            _flush_row([rendered[i] for i in row], [widths[i] for i in row], output_lines, spacing)
            row = []
            row_width = 0
            needed = width
        row.append(index)
        row_width += needed

    if row:
        _flush_row([rendered[i] for i in row], [widths[i] for i in row], output_lines, spacing)

    logger.debug("render_levels_flow: %d levels in %d lines", len(levels), len(output_lines))
    return "\n".join(output_lines)


def _flush_row(
    boards: list[list[str]],
    widths: list[int],
    output_lines: list[str],
    spacing: int,
) -> None:
    """Combine a row of rendered boards side by side."""
    height = max(len(board) for board in boards)
    for line_idx in range(height):
        parts = [
            board[line_idx] if line_idx < len(board) else " " * width
            for board, width in zip(boards, widths)
        ]
        output_lines.append((" " * spacing).join(parts))
    output_lines.append("")

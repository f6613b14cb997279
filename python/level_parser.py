"""
Level parsing utilities.

Provides two parsing formats:
1. Single level: one character per tile, rows separated by |
2. Level sheet: one "name: definition" level per line
"""

from __future__ import annotations

from dataclasses import dataclass

from tile_types import Direction, Grid, Level, Position, TileType

__all__ = ["TILE_CHARS", "FLOW_CHARS", "ParsedRows", "parse_rows", "parse_level", "parse_levels"]

# Character -> tile type. '@' marks the start and is grass underneath.
TILE_CHARS: dict[str, TileType] = {
    "G": TileType.GRASS,
    "@": TileType.GRASS,
    "D": TileType.DIRT,
    "S": TileType.STONE,
    "_": TileType.VOID,
    "B": TileType.BRAMBLE,
    "M": TileType.MUSHROOM,
    "r": TileType.MUSHROOM_RED,
    "u": TileType.MUSHROOM_BLUE,
    "s": TileType.SAND_MUSHROOM,
    "h": TileType.HONEY_MUSHROOM,
    "W": TileType.WATER,
    "I": TileType.ICE,
    "L": TileType.LILYPAD,
    "~": TileType.POND_WATER,
    "O": TileType.BOUNCE_PAD,
    "H": TileType.HONEY,
    "T": TileType.TIDE,
    "=": TileType.SEA,
    "A": TileType.ACORN,
    "Q": TileType.SQUIRREL,
    "1": TileType.PORTAL_PINK,
    "2": TileType.PORTAL_BLUE,
    "3": TileType.PORTAL_YELLOW,
}

# Water with a current
FLOW_CHARS: dict[str, Direction] = {
    ">": Direction.RIGHT,
    "<": Direction.LEFT,
    "^": Direction.UP,
    "v": Direction.DOWN,
}

START_CHAR = "@"


@dataclass(frozen=True)
class ParsedRows:
    """Tiles, currents and start markers read from one definition."""

    grid: Grid
    flow: dict[Position, Direction]
    starts: tuple[Position, ...]

    @property
    def width(self) -> int:
        return len(self.grid[0]) if self.grid else 0

    @property
    def height(self) -> int:
        return len(self.grid)


def _valid_chars() -> str:
    return "".join(TILE_CHARS) + "".join(FLOW_CHARS)


def parse_rows(definition: str, name: str = "level") -> ParsedRows:
    """
    Parse a single-character-per-tile definition.

    Format:
    - Rows separated by |
    - Leading and trailing whitespace of each row is ignored
    - Tile characters:
      * G grass, @ grass with the player start, D dirt, S stone, _ void
      * B bramble, M mushroom (r red, u blue, s sand, h honey)
      * W still water, > < ^ v water flowing right/left/up/down
      * I ice, O bounce pad, H honey, L lily pad, ~ pond water
      * T tide sand, = sea, A acorn, Q squirrel
      * 1 2 3 pink/blue/yellow fairy rings

    Example:
        "G>>S|GBG_" creates a 4x2 level whose top row is grass, two water
        tiles flowing right, then stone.

    Args:
        definition: The level definition
        name: Used in error messages

    Returns:
        The parsed grid, water flow and every start marker found

    Raises:
        ValueError: On an unknown character, an empty definition or rows of
            different lengths
    """
    row_strings = [row.strip() for row in definition.strip().split("|")]
    if not any(row_strings):
        raise ValueError(f"Empty level definition for '{name}'")

    rows: list[tuple[TileType, ...]] = []
    flow: dict[Position, Direction] = {}
    starts: list[Position] = []

    for y, row_str in enumerate(row_strings):
        tiles: list[TileType] = []
        for x, char in enumerate(row_str):
            if char in FLOW_CHARS:
                tiles.append(TileType.WATER)
                flow[Position(x, y)] = FLOW_CHARS[char]
            elif char in TILE_CHARS:
                tiles.append(TILE_CHARS[char])
                if char == START_CHAR:
                    starts.append(Position(x, y))
            else:
                raise ValueError(
                    f"Invalid character '{char}' in level '{name}'\n"
                    f"  Row {y}, column {x}: \"{row_str}\"\n"
                    f"  Valid characters: {_valid_chars()}"
                )
        rows.append(tuple(tiles))

    cols = len(rows[0])
    mismatched = [(i, len(row)) for i, row in enumerate(rows) if len(row) != cols]
    if mismatched:
        error_msg = (
            f"Inconsistent row lengths in level '{name}'\n"
            f"  Expected: {cols} tiles (from row 0)\n"
            f"  Mismatched rows:\n"
        )
        for row_idx, actual_cols in mismatched:
            error_msg += f"    Row {row_idx}: {actual_cols} tiles - \"{row_strings[row_idx]}\"\n"
        error_msg += "  All rows must have the same number of tiles"
        raise ValueError(error_msg)

    return ParsedRows(tuple(rows), flow, tuple(starts))


def parse_level(definition: str, name: str = "Parsed") -> Level:
    """
    Parse a definition into a Level.

    Raises:
        ValueError: As parse_rows, or unless exactly one '@' start is present
    """
    parsed = parse_rows(definition, name)
    if len(parsed.starts) != 1:
        found = ", ".join(f"({p.x}, {p.y})" for p in parsed.starts) or "none"
        raise ValueError(
            f"Level '{name}' needs exactly one start marker '{START_CHAR}'\n"
            f"  Found: {found}"
        )
    return Level(
        name=name,
        width=parsed.width,
        height=parsed.height,
        grid=parsed.grid,
        start=parsed.starts[0],
        water_flow=parsed.flow,
    )


def parse_levels(definition: str) -> dict[str, Level]:
    """
    Parse a sheet of levels, one "name: definition" per line.

    Example:
        \"\"\"
        first: @GG|GBG
        second: @>S|GGG
        \"\"\"

    Raises:
        ValueError: On a malformed line, a duplicate name, or any error
            parse_level reports
    """
    levels: dict[str, Level] = {}
    lines = [line.strip() for line in definition.strip().split("\n") if line.strip()]

    for line_idx, line in enumerate(lines):
        if ":" not in line:
            raise ValueError(
                f"Invalid level definition on line {line_idx + 1}: '{line}'\n"
                f"  Expected format: 'name: level_definition'"
            )

        level_name, level_def = (part.strip() for part in line.split(":", 1))
        if not level_name:
            raise ValueError(f"Empty level name on line {line_idx + 1}: '{line}'")
        if level_name in levels:
            raise ValueError(
                f"Duplicate level name '{level_name}' on line {line_idx + 1}\n"
                f"  Level names must be unique"
            )

        levels[level_name] = parse_level(level_def, level_name)

    return levels

"""
Interactive demo for meadow levels.
Display a level and walk it with keyboard commands, asking for hints.
"""

import logging
import random
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render_board
from generator import WorldElement, generate_level
from level_parser import parse_level
from oracle import HintKind, apply_move, hint, is_stuck
from tile_types import Direction, Grid, Level, Position

KEY_DIRECTIONS: dict[str, Direction] = {
    "w": Direction.UP,
    "a": Direction.LEFT,
    "s": Direction.DOWN,
    "d": Direction.RIGHT,
}


class InteractiveDemo:
    """Interactive demo for walking a level."""

    def __init__(self, level: Level, rng: random.Random | None = None) -> None:
        self.level = level
        self.rng = rng or random.Random()
        self.console = Console()
        self.reset_level()

    def reset_level(self) -> None:
        """Reset the board to the level's initial state."""
        self.grid: Grid = self.level.grid
        self.player: Position = self.level.start
        self.marks: tuple[Position, ...] = ()
        self.moves = 0
        self.won = False
        self.status_message = "Level reset to its initial state"

    def generate_display(self) -> Panel:
        """Generate the current display with board and status."""
        board_text = "\n".join(
            render_board(self.grid, self.player, self.level.water_flow, self.level.name, marks=self.marks)
        )

        status = Text()
        status.append("Player Position: ", style="bold")
        status.append(f"({self.player.x}, {self.player.y})\n")
        status.append("Moves: ", style="bold")
        status.append(f"{self.moves}\n")
        status.append("Current Tile: ", style="bold")
        status.append(f"{self.grid[self.player.y][self.player.x].value}\n\n")

        # Convert ANSI-colored board text to Rich Text properly
        status.append(Text.from_ansi(board_text))
        status.append("\n\n")
        status.append("Keys:\n", style="bold cyan")
        status.append("  W/A/S/D - Move up/left/down/right\n")
        status.append("  H - Hint\n")
        status.append("  R - Reset level\n")
        status.append("  Q - Quit\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        border = "yellow" if self.won else "green"
        return Panel(status, title="Meadow Interactive Demo", border_style=border, width=80)

    def attempt_move(self, direction: Direction) -> None:
        """Attempt to move the player in the given direction."""
        if self.won:
            self.status_message = "Level already complete - press R to play again"
            return

        outcome = apply_move(self.grid, self.player, direction, self.level.water_flow)
        if outcome is None:
            self.status_message = f"✗ Cannot move {direction.value}"
            return

        self.grid = outcome.grid
        self.player = outcome.position
        self.marks = ()
        self.moves += 1
        self.won = outcome.won

        if self.won:
            self.status_message = f"✓ Level complete in {self.moves} moves!"
        elif is_stuck(self.grid, self.player, self.level.water_flow):
            self.status_message = "✗ Stuck - some grass can no longer be reached"
        else:
            self.status_message = f"✓ Moved {direction.value} to ({self.player.x}, {self.player.y})"

    def show_hint(self) -> None:
        """Ask the oracle what to do next."""
        result = hint(self.grid, self.player, self.level.water_flow, rng=self.rng)
        self.marks = result.positions
        match result.kind:
            case HintKind.MOVES:
                steps = ", ".join(direction.value for direction in result.moves)
                self.status_message = f"Hint: {steps}"
            case HintKind.UNDO:
                self.status_message = "Hint: this is a dead end, undo or reset"
            case HintKind.UNSURE:
                self.status_message = "Hint: not sure, the search ran out of time"
            case HintKind.DONE:
                self.status_message = "Hint: nothing left to do"

    def run(self) -> None:
        """Run the interactive demo with keyboard controls."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())

                    key = readchar.readkey().lower()

                    if key == "q":
                        self.status_message = "Quitting..."
                        live.update(self.generate_display())
                        break
                    elif key == "r":
                        self.reset_level()
                    elif key == "h":
                        self.show_hint()
                    elif key in KEY_DIRECTIONS:
                        self.attempt_move(KEY_DIRECTIONS[key])
                    else:
                        self.status_message = f"Unknown key: {repr(key)}"

            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    jump="@GGG|GBGG|GGBG|GGGG",
    river="@G>>S|GGGBG|GGGGG",
    portals="@GG1|GBGG|1GGG",
)


def main(level: Level) -> None:
    """Run the interactive demo on a level."""
    demo = InteractiveDemo(level)
    demo.run()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    if len(sys.argv) > 1 and sys.argv[1] in LAYOUTS:
        level = parse_level(LAYOUTS[sys.argv[1]], sys.argv[1])
    else:
        elements = [WorldElement(name) for name in sys.argv[1:]]
        generated = generate_level(elements=elements)
        if generated is None:
            print("ERROR: Could not generate a level")
            sys.exit(1)
        level = generated

    main(level)

"""
Demonstration script for the meadow level generator.
"""

import logging
import random
import sys

from ascii_render import format_level, render_level, render_levels_flow
from generator import GeneratorConfig, WorldElement, generate_level
from level_parser import parse_level
from oracle import hint, is_solvable, is_stuck


def demo(seed: int = 7) -> None:
    """Generate a few levels for each world and show them."""
    rng = random.Random(seed)
    worlds: dict[str, tuple[WorldElement, ...]] = {
        "meadow": (),
        "rivers": (WorldElement.RIVERS,),
        "dirt": (WorldElement.DIRT,),
        "ice": (WorldElement.ICE,),
        "fairy": (WorldElement.FAIRY,),
    }

    for world, elements in worlds.items():
        print("=" * 40)
        print(f"World: {world}")
        print("=" * 40)
        levels = []
        for _ in range(3):
            level = generate_level(elements=elements, rng=rng)
            if level is None:
                print("  (generation failed)")
                continue
            levels.append(level)
            print(f"  {format_level(level)}")
        if levels:
            print(render_levels_flow(levels))
        print()


def demo_hand_written() -> None:
    """Show the runtime oracle on a tiny hand-written level."""
    level = parse_level("@GGG|GBGG|GG>S|GGGG", "hand-written")
    print(render_level(level))
    print()

    result = is_solvable(level.grid, level.start, level.water_flow, rng=random.Random(1))
    print(f"Solvable: {result.status.value} after {result.iterations} iterations")
    print(f"Stuck: {is_stuck(level.grid, level.start, level.water_flow)}")

    first = hint(level.grid, level.start, level.water_flow, rng=random.Random(1))
    steps = ", ".join(direction.value for direction in first.moves)
    print(f"Hint: {first.kind.value} {steps}")
    print()


def demo_small_config() -> None:
    """Generate with a tighter config."""
    config = GeneratorConfig().with_overrides(max_width=9, max_height=9, bramble_chance=0.2)
    level = generate_level(config, rng=random.Random(3))
    if level is not None:
        print(render_level(level))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    demo(int(sys.argv[1]) if len(sys.argv) > 1 else 7)
    demo_hand_written()
    demo_small_config()

"""
Configuration for procedural level generation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum

# Fixed mechanics shared by the generator and the runtime oracle
MIN_REQUIRED_VISITS = 8  # Smallest meaningful puzzle
MIN_BRAMBLE_REQUIRED = 6  # Floor while brambles are still being placed
GENERATION_SOLVER_CAP = 50000
RUNTIME_SOLVER_CAP = 5000


# (minimum, maximum) knob pairs sampled with randint
_BOUNDS: tuple[tuple[str, str], ...] = (
    ("min_width", "max_width"),
    ("min_height", "max_height"),
    ("min_rectangles", "max_rectangles"),
    ("river_min_length", "river_max_length"),
)


class WorldElement(Enum):
    """Optional mechanics a world enables on top of the base meadow."""

    RIVERS = "rivers"  # Water currents ending in stones
    DIRT = "dirt"  # More two-visit dirt tiles
    ICE = "ice"  # Sliding ice blobs
    FAIRY = "fairy"  # Paired fairy-ring portals


@dataclass(frozen=True)
class GeneratorConfig:
    """
    Every tunable knob of level generation.

    Attributes:
        min_width: Smallest canvas width
        max_width: Largest canvas width
        min_height: Smallest canvas height
        max_height: Largest canvas height
        min_rectangles: Fewest overlapping rectangles per shape
        max_rectangles: Most overlapping rectangles per shape
        corridor_chance: Probability of a rooms-and-corridors shape
        bramble_chance: Fraction of the footprint to fill with brambles
        stone_chance: Fraction of grass to turn into stone bridges
        river_chance: Rivers are skipped entirely when this is zero
        river_min_length: Fewest water tiles per river
        river_max_length: Most water tiles per river
        river_skip_chance: Probability of a river-free level
        second_river_chance: Probability of trying for a second river
        ice_chance: Fraction of required tiles to turn into ice
        ice_cluster_size: Largest ice blob
        dirt_chance: Fraction of grass to turn into dirt
        dirt_boost: Dirt chance multiplier for dirt worlds
        portal_pairs: Fixed number of portal pairs; sampled when None
        portal_min_distance: Preferred Manhattan distance between partners
        min_required: Required-visit floor for a valid level
        max_solver_iterations: Solver budget cap per attempt
        iterations_per_tile: Solver budget per required tile
        max_retries: Generation attempts before giving up
    """

    min_width: int = 8
    max_width: int = 12
    min_height: int = 8
    max_height: int = 12
    min_rectangles: int = 2
    max_rectangles: int = 3
    corridor_chance: float = 0.6
    bramble_chance: float = 0.12
    stone_chance: float = 0.08
    river_chance: float = 0.06
    river_min_length: int = 2
    river_max_length: int = 4
    river_skip_chance: float = 0.5
    second_river_chance: float = 0.3
    ice_chance: float = 0.1
    ice_cluster_size: int = 3
    dirt_chance: float = 0.05
    dirt_boost: float = 3.0
    portal_pairs: int | None = None
    portal_min_distance: int = 4
    min_required: int = MIN_REQUIRED_VISITS
    max_solver_iterations: int = GENERATION_SOLVER_CAP
    iterations_per_tile: int = 5000
    max_retries: int = 100

    def __post_init__(self) -> None:
        inverted = [
            (low, high)
            for low, high in _BOUNDS
            if getattr(self, low) > getattr(self, high)
        ]
        if inverted:
            error_msg = "Inverted generator config bounds\n"
            for low, high in inverted:
                error_msg += f"  {low}={getattr(self, low)} > {high}={getattr(self, high)}\n"
            raise ValueError(error_msg)

    def with_overrides(self, **knobs: object) -> GeneratorConfig:
        """
        Copy of this config with some knobs replaced.

        Raises:
            ValueError: If a knob name is not a config field
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(knobs) - known)
        if unknown:
            error_msg = "Unknown generator config knob(s)\n"
            for name in unknown:
                error_msg += f"  {name!r}\n"
            error_msg += f"  Known knobs: {', '.join(sorted(known))}"
            raise ValueError(error_msg)
        return replace(self, **knobs)


DEFAULT_CONFIG = GeneratorConfig()

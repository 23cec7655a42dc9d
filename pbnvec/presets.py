"""Named parameter presets."""
from dataclasses import dataclass
from typing import Dict

from pbnvec.types import Complexity, PipelineConfig, InvalidParameter


@dataclass(frozen=True)
class Preset:
    """Pipeline settings plus rendering defaults for an audience."""
    n_colors: int
    complexity: Complexity
    min_region_size: int
    line_width: float
    number_size: int

    def to_config(self, **overrides) -> PipelineConfig:
        values = {
            "n_colors": self.n_colors,
            "complexity": self.complexity,
            "min_region_size": self.min_region_size,
        }
        values.update(overrides)
        return PipelineConfig(**values)


PRESETS: Dict[str, Preset] = {
    "kids": Preset(6, Complexity.LOW, 200, 3.0, 16),
    "teens": Preset(10, Complexity.MEDIUM, 150, 2.0, 14),
    "adults": Preset(14, Complexity.HIGH, 100, 1.5, 12),
    "expert": Preset(16, Complexity.EXTREME, 50, 1.0, 10),
}

DEFAULT_PRESET = "adults"


def get_preset(name: str) -> Preset:
    try:
        return PRESETS[name.lower()]
    except KeyError:
        raise InvalidParameter(
            f"Unknown preset {name!r}, expected one of: {', '.join(PRESETS)}"
        ) from None

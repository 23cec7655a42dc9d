"""Core types and exceptions for the paint-by-numbers pipeline."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

# Type aliases
ImageArray = np.ndarray
LabelMap = np.ndarray
Contour = np.ndarray
RGB = Tuple[int, int, int]

# Label map values
UNKNOWN = 0
BOUNDARY = -1

MIN_COLORS = 6
MAX_COLORS = 16
MIN_REGION_SIZE = 50
MAX_REGION_SIZE = 500


class Complexity(Enum):
    """Detail level, mapped to the marker erosion radius in pixels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def erosion_radius(self) -> int:
        return _EROSION_RADII[self]

    @classmethod
    def parse(cls, value) -> "Complexity":
        """Accept a Complexity or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(c.value for c in cls)
            raise InvalidParameter(
                f"Unknown complexity {value!r}, expected one of: {choices}"
            ) from None


_EROSION_RADII = {
    Complexity.LOW: 5,
    Complexity.MEDIUM: 3,
    Complexity.HIGH: 2,
    Complexity.EXTREME: 1,
}


@dataclass
class Point:
    """2D point with float coordinates."""
    x: float
    y: float


@dataclass
class BezierCurve:
    """Cubic bezier curve segment."""
    p0: Point
    p1: Point  # Control point
    p2: Point  # Control point
    p3: Point


@dataclass(frozen=True)
class PaletteEntry:
    """One palette color; ids are 1-based."""
    id: int
    rgb: RGB
    name: str
    hex: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rgb": list(self.rgb),
            "name": self.name,
            "hex": self.hex,
        }


@dataclass
class QuantizationResult:
    """Output of color quantization."""
    labels: LabelMap  # (H, W) int32 cluster index in [0, K)
    palette: List[PaletteEntry]
    inertia: float
    converged: bool = True


@dataclass
class MarkerResult:
    """Seed markers plus the seed id -> palette id mapping."""
    markers: LabelMap  # (H, W) int32, 0 = unknown
    marker_to_color: Dict[int, int] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.marker_to_color)


@dataclass(frozen=True, eq=False)
class Region:
    """A final region of the template."""
    id: int
    contour: Contour  # (N, 2) int32 array of (x, y), closed
    centroid: Tuple[float, float]
    area: float
    pixel_count: int
    color_id: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "contour": self.contour.tolist(),
            "centroid": {"x": self.centroid[0], "y": self.centroid[1]},
            "area": self.area,
            "pixel_count": self.pixel_count,
            "color_id": self.color_id,
        }


@dataclass
class SegmentationResult:
    """Final output handed to renderers and exporters."""
    regions: List[Region]
    palette: List[PaletteEntry]
    width: int
    height: int
    label_map: Optional[LabelMap] = None
    marker_to_color: Dict[int, int] = field(default_factory=dict)

    def color_for(self, region: Region) -> PaletteEntry:
        return self.palette[region.color_id - 1]

    def to_dict(self) -> dict:
        return {
            "regions": [r.to_dict() for r in self.regions],
            "palette": [p.to_dict() for p in self.palette],
            "width": self.width,
            "height": self.height,
        }


@dataclass
class PipelineConfig:
    """Configuration for the segmentation pipeline."""

    # Color quantization
    n_colors: int = 14
    n_init: int = 3
    max_iter: int = 100
    tol: float = 1e-4
    random_state: Optional[int] = None

    # Markers
    complexity: Complexity = Complexity.HIGH

    # Region filtering
    min_region_size: int = 100

    # Preprocessing
    max_dimension: Optional[int] = 1024
    denoise: bool = True

    # Contour smoothing
    simplify_tolerance: float = 2.0
    max_segment_length: Optional[float] = 10.0
    tension: float = 0.5

    def __post_init__(self):
        self.complexity = Complexity.parse(self.complexity)

    def validate(self) -> "PipelineConfig":
        """Check parameter ranges, raising InvalidParameter."""
        if not MIN_COLORS <= self.n_colors <= MAX_COLORS:
            raise InvalidParameter(
                f"n_colors must be in [{MIN_COLORS}, {MAX_COLORS}], got {self.n_colors}"
            )
        if not MIN_REGION_SIZE <= self.min_region_size <= MAX_REGION_SIZE:
            raise InvalidParameter(
                f"min_region_size must be in [{MIN_REGION_SIZE}, {MAX_REGION_SIZE}], "
                f"got {self.min_region_size}"
            )
        if self.n_init < 1 or self.max_iter < 1:
            raise InvalidParameter("n_init and max_iter must be >= 1")
        if self.max_dimension is not None and self.max_dimension < 1:
            raise InvalidParameter(f"max_dimension must be positive, got {self.max_dimension}")
        if self.simplify_tolerance < 0:
            raise InvalidParameter("simplify_tolerance must be >= 0")
        return self


class PaintByNumbersError(Exception):
    """Base exception for pipeline errors.

    ``stage`` names the pipeline stage the error came from, when known.
    """

    def __init__(self, message: str = "", stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"[{self.stage}] {message}"
        return message


class InvalidParameter(PaintByNumbersError, ValueError):
    """Bad color count, out-of-range setting or empty image."""
    pass


class ConversionError(PaintByNumbersError):
    """Color space or channel layout mismatch."""
    pass


class NoMarkersError(PaintByNumbersError):
    """Marker construction produced no seeds."""
    pass


class SegmentationFailure(PaintByNumbersError):
    """Watershed or region extraction failed."""
    pass


class ClusteringNonConvergence(UserWarning):
    """K-means hit its iteration cap; the best result so far is used."""
    pass

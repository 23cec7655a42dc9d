"""pbnvec: paint-by-numbers templates from raster images.

Color quantization in Lab space, per-color watershed markers, marker
watershed with single-pixel boundaries, and smoothed region outlines.
"""
from pbnvec.types import (
    Complexity,
    PaletteEntry,
    Region,
    PipelineConfig,
    SegmentationResult,
    PaintByNumbersError,
    InvalidParameter,
    ConversionError,
    NoMarkersError,
    SegmentationFailure,
    ClusteringNonConvergence,
)
from pbnvec.pipeline import SegmentationPipeline, process_image

__version__ = "0.1.0"

__all__ = [
    "Complexity",
    "PaletteEntry",
    "Region",
    "PipelineConfig",
    "SegmentationResult",
    "SegmentationPipeline",
    "process_image",
    "PaintByNumbersError",
    "InvalidParameter",
    "ConversionError",
    "NoMarkersError",
    "SegmentationFailure",
    "ClusteringNonConvergence",
]

"""Per-image segmentation pipeline orchestrator."""
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Optional, Union

from pbnvec.types import (
    ImageArray,
    PipelineConfig,
    SegmentationResult,
    PaintByNumbersError,
    SegmentationFailure,
)
from pbnvec.raster_ingest import load_image, to_rgb
from pbnvec.preprocess import preprocess_image
from pbnvec.color_quantizer import quantize_colors
from pbnvec.marker_builder import build_markers
from pbnvec.watershed import segment
from pbnvec.region_extractor import extract_regions, apply_region_filter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


@contextmanager
def _stage(name: str):
    """Tag any error escaping the block with the stage name."""
    try:
        yield
    except FileNotFoundError:
        raise
    except PaintByNumbersError as e:
        if e.stage is None:
            e.stage = name
        raise
    except Exception as e:
        raise SegmentationFailure(f"{type(e).__name__}: {e}", stage=name) from e


class SegmentationPipeline:
    """Paint-by-numbers segmentation pipeline.

    Stages run strictly in sequence: preprocess, quantize, markers,
    watershed, regions. The pipeline keeps only its configuration, so one
    instance can serve any number of runs.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        """Initialize pipeline with configuration.

        Args:
            config: Pipeline configuration. Uses defaults if None.
        """
        self.config = config or PipelineConfig()

    def process(
        self,
        image: ImageArray,
        on_progress: Optional[ProgressCallback] = None
    ) -> SegmentationResult:
        """Segment an image into palette-tagged regions.

        Args:
            image: (H, W, 3) or (H, W, 4) uint8 image
            on_progress: Optional callback(percent, message), called
                between stages

        Returns:
            SegmentationResult; ``regions`` may be empty when every
            region fell below the minimum size

        Raises:
            InvalidParameter: If the configuration or image is invalid
            ConversionError: If the image channels cannot be converted
            NoMarkersError: If marker construction yields no seed
            SegmentationFailure: If any stage fails unexpectedly
        """
        config = self.config
        start_time = time.time()
        filtered = quantization = markers = label_map = None

        try:
            with _stage("config"):
                config.validate()

            self._report(on_progress, 0, "Preprocessing image...")
            with _stage("preprocess"):
                filtered = preprocess_image(
                    to_rgb(image), config.max_dimension, config.denoise
                )
            height, width = filtered.shape[:2]
            logger.info(f"Image: {width}x{height}")

            self._report(on_progress, 20, "Quantizing colors...")
            with _stage("quantize"):
                quantization = quantize_colors(
                    filtered,
                    config.n_colors,
                    n_init=config.n_init,
                    max_iter=config.max_iter,
                    tol=config.tol,
                    random_state=config.random_state,
                )

            self._report(on_progress, 40, "Creating markers...")
            with _stage("markers"):
                markers = build_markers(
                    quantization.labels, config.n_colors, config.complexity
                )

            self._report(on_progress, 60, "Applying watershed...")
            with _stage("watershed"):
                label_map = segment(filtered, markers.markers)

            self._report(on_progress, 80, "Extracting regions...")
            with _stage("regions"):
                regions = extract_regions(
                    label_map,
                    markers.marker_to_color,
                    config.min_region_size,
                    n_colors=config.n_colors,
                )
                final_map = apply_region_filter(label_map, regions)

            self._report(on_progress, 100, "Complete!")
            logger.info(
                f"Extracted {len(regions)} regions in {time.time() - start_time:.2f}s"
            )

            return SegmentationResult(
                regions=regions,
                palette=quantization.palette,
                width=width,
                height=height,
                label_map=final_map,
                marker_to_color=dict(markers.marker_to_color),
            )

        finally:
            # Drop intermediates so a failing run's traceback does not pin them
            filtered = quantization = markers = label_map = None

    @staticmethod
    def _report(callback: Optional[ProgressCallback], percent: int, message: str) -> None:
        logger.info(f"[{percent:3d}%] {message}")
        if callback:
            callback(percent, message)


def process_image(
    image_path: Union[str, Path],
    config: Optional[PipelineConfig] = None,
    on_progress: Optional[ProgressCallback] = None
) -> SegmentationResult:
    """Load an image file and run it through the pipeline.

    Convenience function for one-off processing.

    Example:
        >>> result = process_image("photo.jpg", PipelineConfig(n_colors=10))
        >>> len(result.palette)
        10
    """
    with _stage("ingest"):
        image = load_image(image_path)
    return SegmentationPipeline(config).process(image, on_progress)

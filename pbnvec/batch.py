"""Sequential batch processing of image files.

Images are processed one at a time in input order. A fatal error on
one image is recorded on its item and the batch moves on.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from pbnvec.types import PipelineConfig, PaintByNumbersError
from pbnvec.pipeline import SegmentationPipeline, ProgressCallback, _stage
from pbnvec.raster_ingest import load_image
from pbnvec.svg_export import generate_svg, generate_legend, save_svg

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.gif', '.tiff', '.webp'}

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
ERROR = "error"


def get_image_files(folder: Path, extensions: Optional[Set[str]] = None) -> List[Path]:
    """Get all image files from a folder, sorted by name."""
    if extensions is None:
        extensions = IMAGE_EXTENSIONS

    folder = Path(folder)
    if not folder.exists():
        raise FileNotFoundError(f"Input folder not found: {folder}")

    return sorted(
        p for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in extensions
    )


@dataclass
class BatchItem:
    """One queued image and its outcome."""
    path: Path
    status: str = PENDING
    error: Optional[str] = None
    svg_path: Optional[Path] = None
    legend_path: Optional[Path] = None
    region_count: int = 0
    color_count: int = 0


class BatchProcessor:
    """Queue of images processed strictly one after another."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        render_options: Optional[Dict] = None
    ):
        """
        Args:
            config: Pipeline configuration shared by every item
            render_options: Keyword arguments for generate_svg
        """
        self.config = config or PipelineConfig()
        self.render_options = render_options or {}
        self.items: List[BatchItem] = []
        self.is_processing = False

    def add_files(self, paths: Iterable[Union[str, Path]]) -> int:
        """Queue image files; other files are skipped. Returns count added."""
        added = 0
        for path in paths:
            path = Path(path)
            if path.suffix.lower() not in IMAGE_EXTENSIONS:
                logger.info(f"Skipping non-image file: {path}")
                continue
            self.items.append(BatchItem(path=path))
            added += 1
        return added

    def process(
        self,
        output_dir: Union[str, Path],
        on_item_complete: Optional[Callable[[BatchItem, int], None]] = None,
        on_progress: Optional[Callable[[int, int, int, str], None]] = None
    ) -> List[BatchItem]:
        """
        Process every queued image in order.

        Args:
            output_dir: Directory for ``<stem>_pbn.svg`` and ``<stem>_legend.svg``
            on_item_complete: Called with (item, index) when an item starts,
                finishes or fails
            on_progress: Called with (index, total, percent, message) for
                every pipeline stage

        Returns:
            Items that completed successfully, in input order

        Raises:
            RuntimeError: If called while already processing
        """
        if self.is_processing:
            raise RuntimeError("Batch processing already in progress")

        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        self.is_processing = True
        pipeline = SegmentationPipeline(self.config)
        total = len(self.items)
        completed = []

        try:
            for index, item in enumerate(self.items):
                item.status = PROCESSING
                item.error = None
                if on_item_complete:
                    on_item_complete(item, index)

                stage_callback = None
                if on_progress:
                    stage_callback = self._stage_callback(on_progress, index, total)

                try:
                    self._process_item(pipeline, item, output_dir, stage_callback)
                    item.status = COMPLETED
                    completed.append(item)
                except (PaintByNumbersError, OSError) as e:
                    logger.error(f"Error processing {item.path.name}: {e}")
                    item.status = ERROR
                    item.error = str(e)
                except Exception as e:
                    logger.exception(f"Unexpected error processing {item.path.name}")
                    item.status = ERROR
                    item.error = str(e)

                if on_item_complete:
                    on_item_complete(item, index)
        finally:
            self.is_processing = False

        return completed

    def _process_item(
        self,
        pipeline: SegmentationPipeline,
        item: BatchItem,
        output_dir: Path,
        on_progress: Optional[ProgressCallback]
    ) -> None:
        with _stage("ingest"):
            image = load_image(item.path)
        result = pipeline.process(image, on_progress)

        options = dict(self.render_options)
        options.setdefault("tolerance", self.config.simplify_tolerance)
        options.setdefault("max_segment_length", self.config.max_segment_length)
        options.setdefault("tension", self.config.tension)

        svg_path = output_dir / f"{item.path.stem}_pbn.svg"
        legend_path = output_dir / f"{item.path.stem}_legend.svg"
        save_svg(generate_svg(result, **options), svg_path)
        save_svg(generate_legend(result.palette), legend_path)

        item.svg_path = svg_path
        item.legend_path = legend_path
        item.region_count = len(result.regions)
        item.color_count = len(result.palette)

    @staticmethod
    def _stage_callback(on_progress, index: int, total: int) -> ProgressCallback:
        def callback(percent: int, message: str) -> None:
            on_progress(index, total, percent, message)
        return callback

    def status(self) -> Dict[str, int]:
        """Counts of items per status."""
        counts = {s: 0 for s in (PENDING, PROCESSING, COMPLETED, ERROR)}
        for item in self.items:
            counts[item.status] += 1
        counts["total"] = len(self.items)
        return counts

    def clear(self) -> None:
        """Empty the queue."""
        if self.is_processing:
            raise RuntimeError("Cannot clear queue while processing")
        self.items = []

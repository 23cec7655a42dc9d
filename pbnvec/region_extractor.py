"""Region extraction from the final watershed label map."""
import logging
from typing import Dict, List, Optional

import numpy as np
from scipy import ndimage

from pbnvec.types import LabelMap, Region, SegmentationFailure, UNKNOWN
from pbnvec.contour import trace_outer_contour, polygon_area, polygon_perimeter

logger = logging.getLogger(__name__)


def accumulate_labels(label_map: LabelMap) -> Dict[str, np.ndarray]:
    """
    Gather per-label statistics in a single pass over the label map.

    Args:
        label_map: (H, W) int map; values <= 0 are ignored

    Returns:
        Dict with arrays indexed by label: ``count``, ``sum_x``, ``sum_y``,
        and ``slices`` (bounding-box slices from find_objects, index
        label - 1, None for absent labels)
    """
    h, w = label_map.shape
    flat = label_map.ravel()
    positive = np.flatnonzero(flat > 0)

    if positive.size == 0:
        empty = np.zeros(1, dtype=np.float64)
        return {"count": empty.astype(np.int64), "sum_x": empty, "sum_y": empty, "slices": []}

    ids = flat[positive].astype(np.int64)
    ys, xs = np.divmod(positive, w)
    size = int(ids.max()) + 1

    return {
        "count": np.bincount(ids, minlength=size),
        "sum_x": np.bincount(ids, weights=xs.astype(np.float64), minlength=size),
        "sum_y": np.bincount(ids, weights=ys.astype(np.float64), minlength=size),
        "slices": ndimage.find_objects(np.maximum(label_map, 0)),
    }


def extract_regions(
    label_map: LabelMap,
    marker_to_color: Dict[int, int],
    min_region_size: int,
    n_colors: Optional[int] = None
) -> List[Region]:
    """
    Turn a watershed label map into Region records.

    Regions with fewer than ``min_region_size`` pixels are dropped, not
    merged. Each survivor's color comes straight from ``marker_to_color``.

    Args:
        label_map: (H, W) final label map (>= 1 region, <= 0 ignored)
        marker_to_color: Seed id -> 1-based palette id
        min_region_size: Minimum pixel count to keep a region
        n_colors: Palette size, used to validate color ids when given

    Returns:
        Regions ordered by id

    Raises:
        SegmentationFailure: If a label has no color or an invalid color
    """
    stats = accumulate_labels(label_map)
    counts = stats["count"]
    slices = stats["slices"]

    candidates = np.flatnonzero(counts)
    kept = candidates[counts[candidates] >= min_region_size]
    logger.info(
        f"Found {len(candidates)} labels, {len(kept)} with >= {min_region_size} pixels"
    )

    regions = []
    for label in kept:
        label = int(label)
        color_id = marker_to_color.get(label)
        if color_id is None:
            raise SegmentationFailure(f"Region {label} has no marker color")
        if color_id < 1 or (n_colors is not None and color_id > n_colors):
            raise SegmentationFailure(
                f"Region {label} maps to invalid color id {color_id}"
            )

        rows, cols = slices[label - 1]
        mask = label_map[rows, cols] == label
        contour = trace_outer_contour(mask, offset=(cols.start, rows.start))
        if len(contour) == 0:
            continue

        count = int(counts[label])
        centroid = (
            float(stats["sum_x"][label] / count),
            float(stats["sum_y"][label] / count),
        )

        regions.append(Region(
            id=label,
            contour=contour,
            centroid=centroid,
            area=polygon_area(contour),
            pixel_count=count,
            color_id=int(color_id),
        ))

    if not regions:
        logger.warning("No regions found; try a smaller minimum region size")

    return regions


def apply_region_filter(label_map: LabelMap, regions: List[Region]) -> LabelMap:
    """Copy of ``label_map`` with pixels of dropped labels set to UNKNOWN."""
    result = label_map.copy()
    kept = np.isin(label_map, [r.id for r in regions])
    result[(label_map > 0) & ~kept] = UNKNOWN
    return result


def region_stats(region: Region) -> dict:
    """Bounding box, size, perimeter and compactness of a region outline."""
    contour = region.contour
    min_x, min_y = (int(v) for v in contour.min(axis=0))
    max_x, max_y = (int(v) for v in contour.max(axis=0))
    perimeter = polygon_perimeter(contour)

    return {
        "bounding_box": (min_x, min_y, max_x, max_y),
        "width": max_x - min_x,
        "height": max_y - min_y,
        "perimeter": perimeter,
        "compactness": (4 * np.pi * region.area) / perimeter ** 2 if perimeter > 0 else 0.0,
    }

"""Marker-driven watershed segmentation with single-pixel boundaries."""
import logging

import numpy as np
from skimage.filters import sobel
from skimage.segmentation import watershed

from pbnvec.types import (
    ImageArray,
    LabelMap,
    NoMarkersError,
    SegmentationFailure,
    BOUNDARY,
)

logger = logging.getLogger(__name__)


def compute_relief(image: ImageArray) -> np.ndarray:
    """
    Gradient magnitude relief of a color image.

    Sobel magnitude is computed per channel and combined as the
    Euclidean norm across channels.

    Args:
        image: (H, W, C) or (H, W) image

    Returns:
        (H, W) float64 relief
    """
    image = np.asarray(image, dtype=np.float64)
    if image.ndim == 2:
        return sobel(image)

    channel_gradients = [sobel(image[..., c]) for c in range(image.shape[2])]
    return np.sqrt(np.sum(np.square(channel_gradients), axis=0))


def segment(image: ImageArray, markers: LabelMap) -> LabelMap:
    """
    Flood every seed simultaneously over the gradient relief.

    Pixels where two different floods meet get BOUNDARY instead of a
    region id, so adjacent regions are separated by exactly one line.

    Args:
        image: Filtered (H, W, 3) color image
        markers: (H, W) int32 seeds, 0 = unknown. Not modified.

    Returns:
        (H, W) int32 label map: seed ids, or BOUNDARY on collision lines

    Raises:
        NoMarkersError: If markers contain no seed
        SegmentationFailure: If shapes disagree or flooding fails
    """
    if image.shape[:2] != markers.shape:
        raise SegmentationFailure(
            f"Image shape {image.shape[:2]} does not match markers shape {markers.shape}"
        )

    if not np.any(markers > 0):
        raise NoMarkersError("No markers to flood from")

    relief = compute_relief(image)

    try:
        flooded = watershed(
            relief,
            markers=markers.astype(np.int32),
            connectivity=1,
            watershed_line=True,
        )
    except Exception as e:
        raise SegmentationFailure(f"Watershed flooding failed: {e}") from e

    label_map = flooded.astype(np.int32)
    label_map[label_map == 0] = BOUNDARY

    logger.info(
        f"Watershed complete: {int(np.count_nonzero(label_map == BOUNDARY))} boundary pixels"
    )

    return label_map


def boundary_mask(label_map: LabelMap) -> np.ndarray:
    """Boolean mask of collision-line pixels."""
    return label_map == BOUNDARY

"""Watershed seed construction from per-color connectivity.

Every seed is a connected component of one quantized color after
erosion, so each seed (and each final region) maps to exactly one
palette color. Blobs thinner than the erosion disk vanish entirely;
their pixels stay unknown and are absorbed by a neighbouring region
during flooding.
"""
import logging
from typing import Union

import cv2
import numpy as np
from scipy import ndimage

from pbnvec.types import (
    LabelMap,
    Complexity,
    MarkerResult,
    InvalidParameter,
    UNKNOWN,
)

logger = logging.getLogger(__name__)

# 8-connectivity
EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


def disk_kernel(radius: int) -> np.ndarray:
    """Elliptical structuring element of diameter 2*radius + 1."""
    size = 2 * radius + 1
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))


def erode_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    Erode a binary mask by a disk.

    Pixels outside the image do not erode the mask, so blobs touching
    the border keep their border pixels.

    Args:
        mask: Boolean (H, W) mask
        radius: Disk radius in pixels (0 = no erosion)

    Returns:
        Eroded boolean mask
    """
    if radius <= 0:
        return mask.copy()
    eroded = cv2.erode(mask.astype(np.uint8), disk_kernel(radius))
    return eroded > 0


def build_markers(
    labels: LabelMap,
    n_colors: int,
    complexity: Union[Complexity, str] = Complexity.HIGH
) -> MarkerResult:
    """
    Build watershed markers from a quantized label map.

    Args:
        labels: (H, W) cluster indices in [0, n_colors)
        n_colors: Number of palette colors K
        complexity: Detail level controlling the erosion radius

    Returns:
        MarkerResult with int32 markers (0 = unknown, >= 1 seed id) and
        the seed id -> 1-based palette id mapping

    Raises:
        InvalidParameter: If n_colors <= 0 or complexity is unknown
    """
    if n_colors <= 0:
        raise InvalidParameter(f"n_colors must be > 0, got {n_colors}")

    complexity = Complexity.parse(complexity)
    radius = complexity.erosion_radius

    markers = np.full(labels.shape, UNKNOWN, dtype=np.int32)
    marker_to_color = {}
    next_label = 1

    for color_idx in range(n_colors):
        mask = labels == color_idx
        if not mask.any():
            continue

        eroded = erode_mask(mask, radius)
        components, num_components = ndimage.label(eroded, structure=EIGHT_CONNECTED)
        if num_components == 0:
            logger.debug(f"Color {color_idx + 1} lost all seeds to erosion")
            continue

        seeded = components > 0
        markers[seeded] = components[seeded] + (next_label - 1)

        for marker_id in range(next_label, next_label + num_components):
            marker_to_color[marker_id] = color_idx + 1

        next_label += num_components

    logger.info(
        f"Created {next_label - 1} markers from {n_colors} colors "
        f"(complexity={complexity.value}, erosion={radius}px)"
    )

    return MarkerResult(markers=markers, marker_to_color=marker_to_color)

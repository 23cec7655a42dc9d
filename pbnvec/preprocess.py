"""Image preprocessing: downscaling and edge-preserving noise reduction."""
import logging
from typing import Optional

import cv2
import numpy as np

from pbnvec.types import ImageArray, InvalidParameter

logger = logging.getLogger(__name__)

BILATERAL_DIAMETER = 9
BILATERAL_SIGMA_COLOR = 75
BILATERAL_SIGMA_SPACE = 75


def resize_to_max_dimension(image: ImageArray, max_dimension: Optional[int]) -> ImageArray:
    """
    Downscale so the longest side is at most ``max_dimension``.

    Images already within bounds are returned unchanged. Aspect ratio is
    preserved and area interpolation is used for clean downsampling.
    """
    if max_dimension is None:
        return image

    h, w = image.shape[:2]
    if max(h, w) <= max_dimension:
        return image

    scale = max_dimension / max(h, w)
    new_w = max(1, int(w * scale))
    new_h = max(1, int(h * scale))
    logger.info(f"Resizing {w}x{h} -> {new_w}x{new_h}")

    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


def bilateral_filter(image: ImageArray) -> ImageArray:
    """Smooth noise while keeping color edges sharp."""
    return cv2.bilateralFilter(
        np.ascontiguousarray(image),
        BILATERAL_DIAMETER,
        BILATERAL_SIGMA_COLOR,
        BILATERAL_SIGMA_SPACE,
    )


def preprocess_image(
    image: ImageArray,
    max_dimension: Optional[int] = 1024,
    denoise: bool = True
) -> ImageArray:
    """
    Prepare an RGB image for quantization and segmentation.

    Args:
        image: (H, W, 3) uint8 RGB array
        max_dimension: Longest side after resizing (None keeps size)
        denoise: Apply the bilateral filter

    Returns:
        New (H', W', 3) uint8 array; the input is never modified
    """
    if image.size == 0 or image.ndim != 3:
        raise InvalidParameter("Cannot preprocess empty image")

    result = resize_to_max_dimension(image, max_dimension)

    if denoise:
        result = bilateral_filter(result)
    elif result is image:
        result = image.copy()

    return result

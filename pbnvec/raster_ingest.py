"""Raster image ingestion and channel normalisation."""
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image
from PIL import ImageOps

from pbnvec.types import ImageArray, ConversionError


def to_rgb(image: np.ndarray) -> ImageArray:
    """
    Convert an image array to 3-channel uint8 RGB.

    Greyscale is replicated across channels and RGBA is composited on
    white. Float images in [0, 1] are scaled to [0, 255].

    Args:
        image: Array of shape (H, W), (H, W, 1), (H, W, 3) or (H, W, 4)

    Returns:
        (H, W, 3) uint8 array

    Raises:
        ConversionError: If the channel layout is not supported
    """
    image = np.asarray(image)

    if image.ndim == 2:
        image = image[..., np.newaxis]

    if image.ndim != 3:
        raise ConversionError(f"Expected 2D or 3D array, got {image.ndim}D")

    if image.dtype != np.uint8:
        image = image.astype(np.float64)
        if image.size and image.max() <= 1.0:
            image = image * 255.0
        image = np.clip(np.round(image), 0, 255).astype(np.uint8)

    channels = image.shape[2]
    if channels == 1:
        return np.repeat(image, 3, axis=2)
    if channels == 3:
        return image
    if channels == 4:
        alpha = image[..., 3:4].astype(np.float64) / 255.0
        rgb = image[..., :3].astype(np.float64)
        composite = rgb * alpha + 255.0 * (1.0 - alpha)
        return np.clip(np.round(composite), 0, 255).astype(np.uint8)

    raise ConversionError(f"Expected 1, 3 or 4 channels, got {channels}")


def load_image(path: Union[str, Path]) -> ImageArray:
    """
    Load an image file as an RGB uint8 array.

    Args:
        path: Path to image file

    Returns:
        (H, W, 3) uint8 array

    Raises:
        FileNotFoundError: If file doesn't exist
        ConversionError: If file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ConversionError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)

            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                img = img.convert("RGBA")
            elif img.mode != "RGB":
                img = img.convert("RGB")

            return to_rgb(np.array(img))

    except (IOError, OSError) as e:
        raise ConversionError(f"Failed to load image {path}: {e}") from e

"""Color quantization using K-means clustering in Lab space."""
import logging
import warnings
from typing import List, Optional, Tuple

import numpy as np
from skimage.color import rgb2lab, lab2rgb
from sklearn.cluster import KMeans

from pbnvec.types import (
    ImageArray,
    PaletteEntry,
    QuantizationResult,
    InvalidParameter,
    ConversionError,
    ClusteringNonConvergence,
)

logger = logging.getLogger(__name__)


def rgb_to_lab(image: ImageArray) -> np.ndarray:
    """
    Convert sRGB to CIE Lab (D65 reference white).

    Args:
        image: RGB array, uint8 in [0, 255] or float in [0, 1]

    Returns:
        Lab array of the same spatial shape, float64
    """
    if image.dtype == np.uint8:
        image = image.astype(np.float64) / 255.0
    return rgb2lab(image, illuminant="D65")


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """Convert CIE Lab back to sRGB in [0, 1]."""
    return np.clip(lab2rgb(lab, illuminant="D65"), 0.0, 1.0)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Format an RGB triple as #rrggbb."""
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def hex_to_rgb(hex_string: str) -> Optional[Tuple[int, int, int]]:
    """Parse #rrggbb (leading # optional). Returns None if malformed."""
    value = hex_string.lstrip("#")
    if len(value) != 6:
        return None
    try:
        return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))
    except ValueError:
        return None


def get_color_name(r: int, g: int, b: int) -> str:
    """Coarse display name from brightness and the dominant channel."""
    high = max(r, g, b)
    low = min(r, g, b)
    brightness = (r + g + b) / 3

    if high - low < 30:
        if brightness < 50:
            return "Black"
        if brightness < 100:
            return "Dark Gray"
        if brightness < 180:
            return "Gray"
        if brightness < 230:
            return "Light Gray"
        return "White"

    if r > g and r > b:
        if g > 100 and b < 100:
            return "Yellow"
        if g < 100 and b > 100:
            return "Purple"
        return "Red" if r > 180 else "Dark Red"
    elif g > r and g > b:
        if b > 100 and r < 100:
            return "Cyan"
        if r > 100 and b < 100:
            return "Yellow"
        return "Green" if g > 180 else "Dark Green"
    else:
        if r > 100 and g < 100:
            return "Purple"
        if g > 100 and r < 100:
            return "Cyan"
        return "Blue" if b > 180 else "Dark Blue"


def _fit_best_kmeans(
    features: np.ndarray,
    n_colors: int,
    n_init: int,
    max_iter: int,
    tol: float,
    random_state: Optional[int]
) -> KMeans:
    """Run independent k-means++ attempts and keep the lowest inertia."""
    rng = np.random.RandomState(random_state)
    best = None

    for attempt in range(n_init):
        seed = int(rng.randint(np.iinfo(np.int32).max))
        kmeans = KMeans(
            n_clusters=n_colors,
            init="k-means++",
            n_init=1,
            max_iter=max_iter,
            tol=tol,
            random_state=seed,
        )
        kmeans.fit(features)
        logger.debug(
            f"K-means attempt {attempt + 1}/{n_init}: "
            f"inertia={kmeans.inertia_:.2f}, iterations={kmeans.n_iter_}"
        )

        if best is None or kmeans.inertia_ < best.inertia_:
            best = kmeans

    return best


def _average_palette(
    pixels: np.ndarray,
    labels: np.ndarray,
    centers_lab: np.ndarray
) -> np.ndarray:
    """Mean original RGB per cluster, one bincount pass per channel."""
    n_colors = len(centers_lab)
    counts = np.bincount(labels, minlength=n_colors).astype(np.float64)

    sums = np.stack([
        np.bincount(labels, weights=pixels[:, c].astype(np.float64), minlength=n_colors)
        for c in range(3)
    ], axis=1)

    palette = np.zeros((n_colors, 3), dtype=np.float64)
    used = counts > 0
    palette[used] = sums[used] / counts[used, np.newaxis]

    if not np.all(used):
        # Degenerate images leave clusters empty; use their centroids instead
        empty_lab = centers_lab[~used].reshape(1, -1, 3)
        palette[~used] = lab_to_rgb(empty_lab).reshape(-1, 3) * 255.0

    return np.clip(np.round(palette), 0, 255).astype(np.uint8)


def build_palette(colors: np.ndarray) -> List[PaletteEntry]:
    """Wrap an (K, 3) uint8 array as 1-based palette entries."""
    palette = []
    for i, color in enumerate(colors):
        r, g, b = (int(c) for c in color)
        palette.append(PaletteEntry(
            id=i + 1,
            rgb=(r, g, b),
            name=get_color_name(r, g, b),
            hex=rgb_to_hex(r, g, b),
        ))
    return palette


def quantize_colors(
    image: ImageArray,
    n_colors: int,
    n_init: int = 3,
    max_iter: int = 100,
    tol: float = 1e-4,
    random_state: Optional[int] = None
) -> QuantizationResult:
    """Quantize image colors using K-means clustering in Lab space.

    Clustering runs on perceptual Lab features so distances approximate
    perceived color difference, but each palette color is the average of
    the original RGB pixels assigned to it.

    Args:
        image: Input image (H, W, 3) uint8
        n_colors: Number of palette colors K
        n_init: Number of independent k-means++ attempts
        max_iter: Iteration cap per attempt
        tol: Convergence tolerance
        random_state: Seed for reproducible palettes (None = nondeterministic)

    Returns:
        QuantizationResult with an (H, W) int32 label map in [0, K)

    Raises:
        InvalidParameter: If n_colors <= 0 or the image is empty
        ConversionError: If the image is not 3-channel
    """
    if n_colors <= 0:
        raise InvalidParameter(f"n_colors must be > 0, got {n_colors}")

    if image.size == 0:
        raise InvalidParameter("Cannot quantize empty image")

    if image.ndim != 3 or image.shape[2] != 3:
        raise ConversionError(
            f"Expected (H, W, 3) RGB image, got shape {image.shape}"
        )

    h, w = image.shape[:2]
    if h * w < n_colors:
        raise InvalidParameter(
            f"Image has {h * w} pixels, fewer than n_colors={n_colors}"
        )

    try:
        lab = rgb_to_lab(image)
    except Exception as e:
        raise ConversionError(f"Lab conversion failed: {e}") from e

    features = lab.reshape(-1, 3).astype(np.float32)
    pixels = image.reshape(-1, 3)

    logger.info(f"Clustering {h * w} pixels into {n_colors} colors ({n_init} attempts)")
    kmeans = _fit_best_kmeans(features, n_colors, n_init, max_iter, tol, random_state)

    converged = kmeans.n_iter_ < max_iter
    if not converged:
        message = (
            f"K-means did not converge within {max_iter} iterations; "
            f"using best attempt (inertia={kmeans.inertia_:.2f})"
        )
        logger.warning(message)
        warnings.warn(message, ClusteringNonConvergence, stacklevel=2)

    labels = kmeans.labels_.astype(np.int32)
    colors = _average_palette(pixels, labels, kmeans.cluster_centers_)

    return QuantizationResult(
        labels=labels.reshape(h, w),
        palette=build_palette(colors),
        inertia=float(kmeans.inertia_),
        converged=converged,
    )


def render_quantized(result: QuantizationResult) -> ImageArray:
    """Paint each pixel with its palette color."""
    colors = np.array([entry.rgb for entry in result.palette], dtype=np.uint8)
    return colors[result.labels]

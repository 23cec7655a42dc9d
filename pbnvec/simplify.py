"""Contour simplification using the Douglas-Peucker algorithm."""
from typing import Optional

import cv2
import numpy as np

from pbnvec.types import Contour

# A spline corner bulges by roughly a twelfth of the squared spacing next to it
MIN_EDGE_PIECES = 6


def simplify_contour(contour: Contour, tolerance: float = 2.0) -> Contour:
    """Simplify a closed contour using Douglas-Peucker.

    Raw traced contours follow every pixel step. Points whose distance
    from the simplified outline stays under ``tolerance`` are dropped.

    Args:
        contour: Array of (x, y) points
        tolerance: Maximum perpendicular deviation in pixels

    Returns:
        Simplified contour (float64); contours with fewer than 3 points
        are returned unchanged
    """
    if len(contour) < 3 or tolerance <= 0:
        return contour

    simplified = cv2.approxPolyDP(
        np.asarray(contour, dtype=np.float32).reshape(-1, 1, 2),
        tolerance,
        closed=True
    )

    return simplified.reshape(-1, 2).astype(np.float64)


def densify_contour(contour: Contour, max_segment_length: Optional[float] = 10.0) -> Contour:
    """Insert evenly spaced points on edges longer than ``max_segment_length``.

    Keeps a spline through the vertices close to long straight edges.
    Shorter edges are still cut into up to ``MIN_EDGE_PIECES`` pieces no
    shorter than a pixel, which keeps corner overshoot small on small
    regions.
    """
    if max_segment_length is None or max_segment_length <= 0 or len(contour) < 3:
        return contour

    pts = np.asarray(contour, dtype=np.float64)
    nxt = np.roll(pts, -1, axis=0)
    lengths = np.linalg.norm(nxt - pts, axis=1)

    result = []
    for start, end, length in zip(pts, nxt, lengths):
        pieces = max(
            1,
            int(np.ceil(length / max_segment_length)),
            min(MIN_EDGE_PIECES, int(length)),
        )
        t = np.arange(pieces)[:, np.newaxis] / pieces
        result.append(start + (end - start) * t)

    return np.vstack(result)

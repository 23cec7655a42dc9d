"""Contour tracing and polygon geometry."""
from typing import List, Tuple

import cv2
import numpy as np

from pbnvec.types import Contour


def find_contours(mask: np.ndarray, offset: Tuple[int, int] = (0, 0)) -> List[Contour]:
    """Find the external contours of a binary mask.

    The mask is padded by one pixel so objects touching the edge are
    traced like any other.

    Args:
        mask: Binary mask (H, W), True/nonzero for object pixels
        offset: (x, y) added to every returned point

    Returns:
        List of (N, 2) int32 arrays of (x, y) points
    """
    padded = np.pad(mask.astype(np.uint8), 1, mode="constant")

    contours, _ = cv2.findContours(
        padded,
        cv2.RETR_EXTERNAL,  # External contours only
        cv2.CHAIN_APPROX_SIMPLE,
        offset=(int(offset[0]) - 1, int(offset[1]) - 1),
    )

    return [c.reshape(-1, 2).astype(np.int32) for c in contours]


def trace_outer_contour(mask: np.ndarray, offset: Tuple[int, int] = (0, 0)) -> Contour:
    """Trace the single outer boundary of a region mask.

    Holes are not traced. If the mask falls apart into several pieces
    the one enclosing the largest area is returned.

    Returns:
        (N, 2) int32 array, empty (0, 2) if the mask is empty
    """
    contours = find_contours(mask, offset)
    if not contours:
        return np.zeros((0, 2), dtype=np.int32)
    return max(contours, key=polygon_area)


def polygon_signed_area(contour: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise in y-up axes."""
    if len(contour) < 3:
        return 0.0
    pts = np.asarray(contour, dtype=np.float64)
    x = pts[:, 0]
    y = pts[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def polygon_area(contour: np.ndarray) -> float:
    return abs(polygon_signed_area(contour))


def polygon_perimeter(contour: np.ndarray) -> float:
    """Length of the closed polygon."""
    if len(contour) < 2:
        return 0.0
    pts = np.asarray(contour, dtype=np.float64)
    return float(np.sum(np.linalg.norm(np.roll(pts, -1, axis=0) - pts, axis=1)))


def offset_polygon(contour: np.ndarray, distance: float) -> np.ndarray:
    """Move every edge of a closed polygon outward by ``distance``.

    Vertices are placed on the intersection of the two shifted edges
    (miter join), so a traced pixel-centre outline offset by half a
    pixel lies on the pixel edges. Very sharp spikes are capped at
    twice ``distance`` along the bisector.

    Args:
        contour: (N, 2) array of (x, y) points, either orientation
        distance: Offset in pixels; negative values shrink the polygon

    Returns:
        (M, 2) float64 array, repeated consecutive points removed.
        Polygons with fewer than 3 distinct points or no area are
        returned without offset.
    """
    pts = np.asarray(contour, dtype=np.float64)
    if len(pts) >= 2:
        pts = pts[np.any(np.roll(pts, -1, axis=0) != pts, axis=1)]
    if len(pts) < 3:
        return pts

    signed = polygon_signed_area(pts)
    if signed == 0:
        return pts

    edges = np.roll(pts, -1, axis=0) - pts
    edges /= np.linalg.norm(edges, axis=1)[:, np.newaxis]
    # Right-hand normal points outward for positive signed area
    normals = np.column_stack([edges[:, 1], -edges[:, 0]]) * np.sign(signed)

    incoming = np.roll(normals, 1, axis=0)
    cos_turn = np.sum(incoming * normals, axis=1)
    scale = distance / np.maximum(1.0 + cos_turn, 0.5)

    return pts + (incoming + normals) * scale[:, np.newaxis]

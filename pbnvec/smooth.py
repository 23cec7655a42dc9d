"""Contour smoothing with closed Catmull-Rom splines.

Each Catmull-Rom segment is converted to an equivalent cubic Bezier so
the outline can be written directly as SVG path data.
"""
from typing import List, Optional

import numpy as np

from pbnvec.types import Contour, BezierCurve, Point
from pbnvec.simplify import simplify_contour, densify_contour
from pbnvec.contour import polygon_area, offset_polygon

DEFAULT_TENSION = 0.5

# Traced outlines run through pixel centres; the painted area ends half a pixel further out
PIXEL_EDGE_OFFSET = 0.5


def catmull_rom_to_bezier(points: Contour, tension: float = DEFAULT_TENSION) -> List[BezierCurve]:
    """Convert a closed point loop to cubic Bezier segments.

    Neighbour indices wrap around, so segment i runs from P[i] to P[i+1]
    with control points P[i] + (P[i+1] - P[i-1]) * tension / 3 and
    P[i+1] - (P[i+2] - P[i]) * tension / 3.

    Args:
        points: (N, 2) array of (x, y), N >= 3
        tension: 0 gives straight edges, 0.5 the standard smooth curve

    Returns:
        N Bezier curves forming a closed loop; empty for fewer than 3 points
    """
    pts = np.asarray(points, dtype=np.float64)
    n = len(pts)
    if n < 3:
        return []

    prev = np.roll(pts, 1, axis=0)
    nxt = np.roll(pts, -1, axis=0)
    nxt2 = np.roll(pts, -2, axis=0)

    k = tension / 3.0
    cp1 = pts + (nxt - prev) * k
    cp2 = nxt - (nxt2 - pts) * k

    return [
        BezierCurve(
            p0=Point(pts[i, 0], pts[i, 1]),
            p1=Point(cp1[i, 0], cp1[i, 1]),
            p2=Point(cp2[i, 0], cp2[i, 1]),
            p3=Point(nxt[i, 0], nxt[i, 1]),
        )
        for i in range(n)
    ]


def smooth_contour(
    contour: Contour,
    tolerance: float = 2.0,
    max_segment_length: Optional[float] = 10.0,
    tension: float = DEFAULT_TENSION
) -> List[BezierCurve]:
    """Simplify, widen, densify and convert a traced contour to Bezier curves.

    The simplified outline is moved out by half a pixel onto the pixel
    edges, so the curve encloses about as much area as the region has
    pixels.

    Returns an empty list when fewer than 3 points survive simplification.
    """
    simplified = simplify_contour(contour, tolerance)
    if len(simplified) < 3:
        return []
    outline = offset_polygon(simplified, PIXEL_EDGE_OFFSET)
    if len(outline) < 3:
        return []
    return catmull_rom_to_bezier(densify_contour(outline, max_segment_length), tension)


def format_number(x: float, precision: int = 2) -> str:
    """Format number with given precision, dropping trailing zeros."""
    formatted = f"{x:.{precision}f}"
    if '.' in formatted:
        formatted = formatted.rstrip('0').rstrip('.')
    if formatted == "-0":
        formatted = "0"
    return formatted


def polygon_path_data(points: Contour, precision: int = 2) -> str:
    """Straight-edged closed path, ``M x y L x y ... Z``."""
    if len(points) == 0:
        return ""
    fmt = lambda v: format_number(v, precision)
    commands = [f"M {fmt(points[0][0])} {fmt(points[0][1])}"]
    for x, y in points[1:]:
        commands.append(f"L {fmt(x)} {fmt(y)}")
    commands.append("Z")
    return " ".join(commands)


def bezier_path_data(curves: List[BezierCurve], precision: int = 2) -> str:
    """Closed cubic path, ``M x y C c1 c2 p ... Z``."""
    if not curves:
        return ""
    fmt = lambda v: format_number(v, precision)
    commands = [f"M {fmt(curves[0].p0.x)} {fmt(curves[0].p0.y)}"]
    for c in curves:
        commands.append(
            f"C {fmt(c.p1.x)} {fmt(c.p1.y)}, {fmt(c.p2.x)} {fmt(c.p2.y)}, "
            f"{fmt(c.p3.x)} {fmt(c.p3.y)}"
        )
    commands.append("Z")
    return " ".join(commands)


def contour_to_path_data(
    contour: Contour,
    tolerance: float = 2.0,
    max_segment_length: Optional[float] = 10.0,
    tension: float = DEFAULT_TENSION,
    precision: int = 2
) -> str:
    """SVG path data for a region outline.

    Degenerate outlines (fewer than 3 points after simplification) fall
    back to a straight-edged closed path.
    """
    if len(contour) == 0:
        return ""

    curves = smooth_contour(contour, tolerance, max_segment_length, tension)
    if curves:
        return bezier_path_data(curves, precision)

    return polygon_path_data(simplify_contour(contour, tolerance), precision)


def sample_bezier_path(curves: List[BezierCurve], samples_per_segment: int = 16) -> np.ndarray:
    """Evaluate the closed Bezier path at evenly spaced parameters.

    Returns:
        (len(curves) * samples_per_segment, 2) array of points
    """
    if not curves:
        return np.zeros((0, 2))

    t = np.arange(samples_per_segment, dtype=np.float64)[:, np.newaxis] / samples_per_segment
    b0 = (1 - t) ** 3
    b1 = 3 * t * (1 - t) ** 2
    b2 = 3 * t ** 2 * (1 - t)
    b3 = t ** 3

    samples = []
    for c in curves:
        p0 = np.array([c.p0.x, c.p0.y])
        p1 = np.array([c.p1.x, c.p1.y])
        p2 = np.array([c.p2.x, c.p2.y])
        p3 = np.array([c.p3.x, c.p3.y])
        samples.append(b0 * p0 + b1 * p1 + b2 * p2 + b3 * p3)

    return np.vstack(samples)


def bezier_path_area(curves: List[BezierCurve], samples_per_segment: int = 16) -> float:
    """Approximate area enclosed by a closed Bezier path."""
    return polygon_area(sample_bezier_path(curves, samples_per_segment))

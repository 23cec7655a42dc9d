"""Tests for contour simplification and densification."""
import numpy as np

from pbnvec.simplify import simplify_contour, densify_contour, MIN_EDGE_PIECES


def dense_square(side=20):
    """Closed square outline with a point on every pixel step."""
    top = [(x, 0) for x in range(side)]
    right = [(side, y) for y in range(side)]
    bottom = [(side - x, side) for x in range(side)]
    left = [(0, side - y) for y in range(side)]
    return np.array(top + right + bottom + left, dtype=np.int32)


class TestSimplifyContour:
    """Test Douglas-Peucker simplification."""

    def test_collinear_points_removed(self):
        """Test straight runs collapse to their corners."""
        simplified = simplify_contour(dense_square(), tolerance=1.0)

        corners = {tuple(int(v) for v in p) for p in simplified}
        assert corners == {(0, 0), (20, 0), (20, 20), (0, 20)}
        assert simplified.dtype == np.float64

    def test_small_wiggles_removed(self):
        """Test one-pixel zigzags under the tolerance are removed."""
        contour = dense_square(40).astype(np.float64)
        # One-pixel zigzag along the top edge
        top = contour[:, 1] == 0
        contour[top, 1] = np.where(np.arange(top.sum()) % 2 == 0, 0, 1)

        simplified = simplify_contour(contour, tolerance=2.0)

        assert len(simplified) <= 6

    def test_short_contour_unchanged(self):
        """Test contours under three points are returned as is."""
        contour = np.array([[0, 0], [5, 5]])
        assert simplify_contour(contour, tolerance=2.0) is contour

    def test_zero_tolerance_unchanged(self):
        """Test zero tolerance disables simplification."""
        contour = dense_square()
        assert simplify_contour(contour, tolerance=0) is contour


class TestDensifyContour:
    """Test point insertion on long edges."""

    square = np.array([[0, 0], [100, 0], [100, 100], [0, 100]], dtype=np.float64)

    def test_long_edges_split(self):
        """Test long edges are cut to the segment limit."""
        dense = densify_contour(self.square, max_segment_length=10.0)

        assert len(dense) == 40
        segments = np.linalg.norm(np.roll(dense, -1, axis=0) - dense, axis=1)
        assert segments.max() <= 10.0 + 1e-9

    def test_original_vertices_kept(self):
        """Test densification keeps every corner."""
        dense = densify_contour(self.square, max_segment_length=10.0)
        for corner in self.square:
            assert np.any(np.all(np.isclose(dense, corner), axis=1))

    def test_short_edges_untouched(self):
        """Test edges under a pixel are left alone."""
        small = self.square / 200.0
        np.testing.assert_allclose(densify_contour(small, 10.0), small)

    def test_short_edges_get_minimum_pieces(self):
        """Test an edge shorter than the segment limit is still split for smoothing."""
        square = self.square * 3 / 10
        dense = densify_contour(square, max_segment_length=10.0)

        assert len(dense) == 4 * MIN_EDGE_PIECES
        segments = np.linalg.norm(np.roll(dense, -1, axis=0) - dense, axis=1)
        np.testing.assert_allclose(segments, 30.0 / MIN_EDGE_PIECES)

    def test_tiny_edges_keep_whole_pixel_pieces(self):
        """Test pieces are never shorter than a pixel."""
        square = self.square * 3 / 100
        assert len(densify_contour(square, 10.0)) == 4 * 3

    def test_disabled(self):
        """Test a missing or zero limit disables densification."""
        assert densify_contour(self.square, None) is self.square
        assert densify_contour(self.square, 0) is self.square

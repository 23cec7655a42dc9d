"""End-to-end tests for the segmentation pipeline."""
import json

import numpy as np
import pytest
from PIL import Image

from pbnvec import (
    SegmentationPipeline,
    PipelineConfig,
    process_image,
    InvalidParameter,
    ConversionError,
    NoMarkersError,
)
from pbnvec.types import BOUNDARY
from conftest import make_blocks, make_checkerboard


def region_signature(result):
    return [
        (r.id, r.color_id, r.pixel_count, r.contour.tolist())
        for r in result.regions
    ]


class TestScenarios:
    """Behaviour on small synthetic images."""

    def test_uniform_image_single_region(self, uniform_image):
        """Test a flat image becomes one region of its color."""
        config = PipelineConfig(n_colors=6, min_region_size=50, random_state=0)
        result = SegmentationPipeline(config).process(uniform_image)

        # Degenerate palette: every entry is the same color
        assert len(result.palette) == 6
        for entry in result.palette:
            assert np.abs(np.array(entry.rgb, dtype=int) - [120, 180, 60]).max() <= 2
        assert len(result.regions) == 1

        region = result.regions[0]
        assert region.pixel_count == 100 * 100
        color = np.array(result.color_for(region).rgb, dtype=int)
        assert np.abs(color - [120, 180, 60]).max() <= 2
        assert (result.label_map == region.id).all()

    def test_checkerboard_one_region_per_tile(self, checkerboard):
        """Test each checkerboard tile becomes its own bounded region."""
        config = PipelineConfig(
            n_colors=6, complexity="medium", min_region_size=50,
            denoise=False, random_state=0,
        )
        result = SegmentationPipeline(config).process(checkerboard)
        label_map = result.label_map

        assert len(result.regions) == 100

        # Each region carries the color of the tile it covers
        for region in result.regions:
            cx, cy = (int(v) for v in region.centroid)
            assert result.color_for(region).rgb == tuple(int(v) for v in checkerboard[cy, cx])

        # Adjacent tiles are separated by a boundary line
        for tile in range(10):
            inner = slice(tile * 10 + 3, tile * 10 + 7)
            for edge in range(10, 100, 10):
                across = slice(edge - 3, edge + 3)
                assert (label_map[inner, across] == BOUNDARY).any(axis=1).all()
                assert (label_map[across, inner] == BOUNDARY).any(axis=0).all()

        # No two 4-adjacent pixels carry different region ids
        for a, b in ((label_map[:, :-1], label_map[:, 1:]),
                     (label_map[:-1, :], label_map[1:, :])):
            assert not ((a > 0) & (b > 0) & (a != b)).any()

    def test_thin_line_absorbed(self, diagonal_line_image):
        """Test a one-pixel line is absorbed by the background."""
        config = PipelineConfig(
            n_colors=6, complexity="extreme", min_region_size=50,
            denoise=False, random_state=0,
        )
        result = SegmentationPipeline(config).process(diagonal_line_image)

        assert len(result.regions) >= 1
        for region in result.regions:
            assert result.color_for(region).rgb == (255, 255, 255)

    def test_no_seeds_survive(self):
        """One-pixel tiles erode away completely at low complexity."""
        image = make_checkerboard(tiles=8, tile_size=1)
        config = PipelineConfig(
            n_colors=6, complexity="low", min_region_size=50,
            denoise=False, random_state=0,
        )

        with pytest.raises(NoMarkersError) as excinfo:
            SegmentationPipeline(config).process(image)

        assert excinfo.value.stage == "watershed"


class TestResultInvariants:
    """Properties every result satisfies."""

    @pytest.fixture
    def result(self, blocks_image):
        config = PipelineConfig(n_colors=8, min_region_size=50, random_state=5)
        return SegmentationPipeline(config).process(blocks_image)

    def test_colors_in_range(self, result):
        """Test region colors are valid palette ids."""
        for region in result.regions:
            assert 1 <= region.color_id <= 8
            assert result.marker_to_color[region.id] == region.color_id

    def test_minimum_size(self, result):
        """Test no region is smaller than the minimum."""
        assert all(r.pixel_count >= 50 for r in result.regions)

    def test_regions_match_label_map(self, result):
        """Test pixel counts agree with the label map."""
        for region in result.regions:
            assert np.count_nonzero(result.label_map == region.id) == region.pixel_count

    def test_dimensions(self, result, blocks_image):
        """Test the result keeps the input dimensions."""
        assert (result.height, result.width) == blocks_image.shape[:2]
        assert result.label_map.shape == blocks_image.shape[:2]

    def test_to_dict(self, result):
        """Test the result serializes to JSON."""
        data = json.loads(json.dumps(result.to_dict()))
        assert data["width"] == 96
        assert len(data["palette"]) == 8
        assert len(data["regions"]) == len(result.regions)


class TestDeterminism:
    """Seeded runs and pipeline reuse."""

    def test_seeded_runs_match(self, blocks_image):
        """Test seeded runs give identical results."""
        config = PipelineConfig(n_colors=8, random_state=7)
        a = SegmentationPipeline(config).process(blocks_image)
        b = SegmentationPipeline(config).process(blocks_image)

        assert a.palette == b.palette
        assert region_signature(a) == region_signature(b)

    def test_pipeline_reusable(self, blocks_image):
        """Test a pipeline gives the same result after other images."""
        pipeline = SegmentationPipeline(PipelineConfig(n_colors=8, random_state=7))
        other = make_blocks(seed=1)

        first = pipeline.process(blocks_image)
        pipeline.process(other)
        again = pipeline.process(blocks_image)

        assert first.palette == again.palette
        assert region_signature(first) == region_signature(again)

    def test_input_not_modified(self, blocks_image):
        """Test the input array is left untouched."""
        original = blocks_image.copy()
        SegmentationPipeline(PipelineConfig(n_colors=6, random_state=0)).process(blocks_image)
        np.testing.assert_array_equal(blocks_image, original)


class TestProgressAndErrors:
    """Progress reporting and stage-tagged errors."""

    def test_progress_sequence(self, uniform_image):
        """Test progress is reported at every stage."""
        calls = []
        config = PipelineConfig(n_colors=6, random_state=0)
        SegmentationPipeline(config).process(
            uniform_image, on_progress=lambda p, m: calls.append((p, m))
        )

        assert [p for p, _ in calls] == [0, 20, 40, 60, 80, 100]
        assert all(isinstance(m, str) and m for _, m in calls)

    @pytest.mark.parametrize("overrides", [
        {"n_colors": 3},
        {"n_colors": 17},
        {"min_region_size": 10},
        {"min_region_size": 600},
    ])
    def test_invalid_config(self, uniform_image, overrides):
        """Test out-of-range settings fail in the config stage."""
        pipeline = SegmentationPipeline(PipelineConfig(**overrides))

        with pytest.raises(InvalidParameter) as excinfo:
            pipeline.process(uniform_image)

        assert excinfo.value.stage == "config"
        assert str(excinfo.value).startswith("[config]")

    def test_invalid_complexity(self):
        """Test an unknown complexity is rejected on construction."""
        with pytest.raises(InvalidParameter):
            PipelineConfig(complexity="ultra")

    def test_too_few_pixels(self):
        """Test an image smaller than K fails in quantize."""
        image = np.zeros((2, 2, 3), dtype=np.uint8)
        config = PipelineConfig(n_colors=6, denoise=False)

        with pytest.raises(InvalidParameter) as excinfo:
            SegmentationPipeline(config).process(image)

        assert excinfo.value.stage == "quantize"

    def test_two_channel_input(self):
        """Test a two-channel array fails in preprocess."""
        image = np.zeros((10, 10, 2), dtype=np.uint8)

        with pytest.raises(ConversionError) as excinfo:
            SegmentationPipeline().process(image)

        assert excinfo.value.stage == "preprocess"

    def test_empty_input(self):
        """Test an empty array is rejected."""
        with pytest.raises(InvalidParameter):
            SegmentationPipeline().process(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_rgba_input(self, uniform_image):
        """Test RGBA input is accepted."""
        alpha = np.full((100, 100, 1), 255, dtype=np.uint8)
        image = np.concatenate([uniform_image, alpha], axis=2)
        config = PipelineConfig(n_colors=6, random_state=0)

        result = SegmentationPipeline(config).process(image)

        assert len(result.regions) == 1


class TestProcessImage:
    """File-based convenience entry point."""

    def test_process_file(self, image_file):
        """Test processing an image file."""
        result = process_image(image_file, PipelineConfig(n_colors=6, random_state=0))
        assert result.width == 96
        assert len(result.regions) > 0

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            process_image(tmp_path / "missing.png")

    def test_corrupt_file(self, tmp_path):
        """Test an undecodable file fails in ingest."""
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(ConversionError) as excinfo:
            process_image(path)

        assert excinfo.value.stage == "ingest"

    def test_greyscale_file(self, tmp_path):
        """Test a greyscale file is processed."""
        path = tmp_path / "grey.png"
        Image.fromarray(np.full((40, 40), 128, dtype=np.uint8)).save(path)

        result = process_image(path, PipelineConfig(n_colors=6, random_state=0))

        assert len(result.regions) == 1

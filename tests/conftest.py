"""Pytest configuration and fixtures."""

import numpy as np
import pytest
from PIL import Image

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
RED = (220, 30, 30)


def make_checkerboard(tiles: int = 10, tile_size: int = 10, colors=(BLACK, WHITE)) -> np.ndarray:
    """Two-color checkerboard, tiles x tiles squares of tile_size pixels."""
    size = tiles * tile_size
    yy, xx = np.mgrid[0:size, 0:size]
    parity = ((yy // tile_size) + (xx // tile_size)) % 2
    image = np.zeros((size, size, 3), dtype=np.uint8)
    image[parity == 0] = colors[0]
    image[parity == 1] = colors[1]
    return image


def make_diagonal_line(size: int = 100, margin: int = 5, line=RED, background=WHITE) -> np.ndarray:
    """Background with a 1-pixel-wide diagonal line."""
    image = np.zeros((size, size, 3), dtype=np.uint8)
    image[:] = background
    idx = np.arange(margin, size - margin)
    image[idx, idx] = line
    return image


def make_blocks(seed: int = 0, size: int = 96, block: int = 16) -> np.ndarray:
    """Blocky image of random flat colors."""
    rng = np.random.RandomState(seed)
    n = size // block
    colors = rng.randint(0, 256, (n, n, 3)).astype(np.uint8)
    return np.kron(colors, np.ones((block, block, 1), dtype=np.uint8))


@pytest.fixture
def uniform_image():
    """100x100 single-color image."""
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[:] = (120, 180, 60)
    return image


@pytest.fixture
def checkerboard():
    """100x100 black/white checkerboard with 10x10 tiles."""
    return make_checkerboard()


@pytest.fixture
def diagonal_line_image():
    """White 100x100 image with a red 1-pixel diagonal."""
    return make_diagonal_line()


@pytest.fixture
def blocks_image():
    """Blocky random-color test image."""
    return make_blocks()


@pytest.fixture
def image_file(tmp_path, blocks_image):
    """Blocky test image saved as PNG."""
    path = tmp_path / "blocks.png"
    Image.fromarray(blocks_image).save(path)
    return path

"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from generate_synthetic_sources import make_source


@pytest.fixture
def bright_source() -> Image.Image:
    return Image.new("RGB", (80, 80), (230, 230, 230))


@pytest.fixture
def dark_source() -> Image.Image:
    return Image.new("RGB", (80, 80), (5, 5, 5))


@pytest.fixture
def portrait_source() -> Image.Image:
    return make_source("portrait", 120, 160, "#FFD2A0")


@pytest.fixture
def split_source() -> Image.Image:
    """Left half black, right half white."""
    arr = np.zeros((100, 200, 3), dtype=np.uint8)
    arr[:, 100:] = 255
    return Image.fromarray(arr, "RGB")


@pytest.fixture
def make_samples():
    """Factory for (rows, cols, 4) sample grids of one opaque color."""

    def _make(rows: int, cols: int, rgb=(200, 200, 200)) -> np.ndarray:
        samples = np.zeros((rows, cols, 4), dtype=np.uint8)
        samples[:, :, :3] = rgb
        samples[:, :, 3] = 255
        return samples

    return _make

"""Shared fixtures: synthetic images and pinned generators."""
import io

import numpy as np
import pytest
from PIL import Image

from collage_shared.protocol import FeatureSet, RegionLabel, Temperature


def solid(width, height, rgb):
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[...] = rgb
    return arr


def checkerboard(width, height, cell=2):
    ys, xs = np.mgrid[0:height, 0:width]
    on = ((xs // cell) + (ys // cell)) % 2 == 1
    arr = np.where(on, 255, 0).astype(np.uint8)
    return np.stack([arr, arr, arr], axis=-1)


def split_dark_bright(width, height):
    arr = np.full((height, width, 3), 255, dtype=np.uint8)
    arr[:, : width // 2] = 0
    return arr


def png_bytes(arr):
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def cool_flat_features():
    return FeatureSet(
        dominant_color=(40, 80, 160),
        colorfulness=42.0,
        contrast=0.05,
        edge_density=0.03,
        entropy=3.0,
        hue=220.0,
        temperature=Temperature.COOL,
        mean_saturation=0.6,
        suggested_region=RegionLabel.CENTER,
    )


@pytest.fixture
def warm_busy_features():
    return FeatureSet(
        dominant_color=(200, 120, 60),
        colorfulness=57.25,
        contrast=0.3,
        edge_density=0.5,
        entropy=7.0,
        hue=25.0,
        temperature=Temperature.WARM,
        mean_saturation=0.7,
        suggested_region=RegionLabel.TOP_RIGHT,
    )

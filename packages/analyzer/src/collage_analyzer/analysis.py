"""
Single-pass feature extraction.

PixelBuffer -> luminance -> gradient -> statistics / region grid -> FeatureSet.
Each stage reads the previous stage's complete output; nothing is mutated
in place.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image

from collage_shared.files import load_image
from collage_shared.protocol import FeatureSet

from .gradient import sobel_gradient
from .pixels import MAX_WIDTH, PixelBuffer, sample_pixels, to_grayscale
from .regions import grid_occupancy, select_region
from .statistics import (
    colorfulness,
    contrast,
    dominant_color_mean,
    edge_density,
    entropy,
    hue_and_temperature,
)

logger = logging.getLogger(__name__)


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Seedable generator; None draws fresh OS entropy."""
    return np.random.default_rng(seed)


def extract_features(buffer: PixelBuffer, rng: np.random.Generator) -> FeatureSet:
    """Compute every feature from one snapshot."""
    gray = to_grayscale(buffer)
    grad = sobel_gradient(gray)

    hue, temperature, mean_sat = hue_and_temperature(buffer)
    masses = grid_occupancy(gray, grad)

    features = FeatureSet(
        dominant_color=dominant_color_mean(buffer),
        colorfulness=colorfulness(buffer),
        contrast=contrast(gray),
        edge_density=edge_density(grad),
        entropy=entropy(gray),
        hue=hue,
        temperature=temperature,
        mean_saturation=mean_sat,
        suggested_region=select_region(masses, rng),
    )

    logger.debug(
        "Features for %dx%d: colorfulness=%.3f, contrast=%.3f, edge_density=%.3f, "
        "entropy=%.3f, hue=%.1f (%s), region=%s",
        buffer.width, buffer.height, features.colorfulness, features.contrast,
        features.edge_density, features.entropy, features.hue,
        features.temperature.value, features.suggested_region.value,
    )
    return features


def analyze_image(
    source: Path | str | bytes | Image.Image,
    rng: np.random.Generator,
    max_width: int = MAX_WIDTH,
) -> tuple[PixelBuffer, FeatureSet]:
    """
    Decode (if needed), sample and analyze an image.

    Raises DecodeFailure: If the image cannot be decoded
    """
    img = source if isinstance(source, Image.Image) else load_image(source)
    buffer = sample_pixels(img, max_width=max_width)
    return buffer, extract_features(buffer, rng)

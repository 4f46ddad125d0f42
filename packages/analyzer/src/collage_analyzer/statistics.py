"""
Scalar image statistics used by the recommendation rules.

Every function here is total over a non-empty buffer: a 1x1 or a
solid-color image yields zeros rather than raising.
"""

from __future__ import annotations

import numpy as np

from collage_shared.protocol import Temperature

from .pixels import PixelBuffer

EDGE_THRESHOLD = 0.25
SATURATION_FLOOR = 0.1


def dominant_color_mean(buffer: PixelBuffer) -> tuple[int, int, int]:
    """Mean R, G, B over all pixels, rounded half-up."""
    means = buffer.rgb.reshape(-1, 3).mean(axis=0)
    r, g, b = (int(np.floor(m + 0.5)) for m in means)
    return r, g, b


def colorfulness(buffer: PixelBuffer) -> float:
    """
    Hasler-Susstrunk colorfulness.

    rg = |R - G|, yb = |0.5 (R + G) - B|
    C = sqrt(std_rg^2 + std_yb^2) + 0.3 sqrt(mean_rg^2 + mean_yb^2)
    """
    rgb = buffer.rgb
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    rg = np.abs(r - g)
    yb = np.abs(0.5 * (r + g) - b)

    std_root = np.sqrt(rg.std() ** 2 + yb.std() ** 2)
    mean_root = np.sqrt(rg.mean() ** 2 + yb.mean() ** 2)
    return float(std_root + 0.3 * mean_root)


def contrast(gray: np.ndarray) -> float:
    """Population std of luminance / 255, roughly [0, 0.5]."""
    return float(gray.astype(np.float64).std() / 255.0)


def edge_density(gradient: np.ndarray, threshold: float = EDGE_THRESHOLD) -> float:
    """Fraction of gradient samples strictly above threshold."""
    total = gradient.size
    if total == 0:
        return 0.0
    return float(np.count_nonzero(gradient > threshold) / total)


def entropy(gray: np.ndarray) -> float:
    """Shannon entropy (bits) of the 256-bin luminance histogram."""
    hist = np.bincount(gray.ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total == 0:
        return 0.0
    p = hist[hist > 0] / total
    h = float(-np.sum(p * np.log2(p)))
    # a single occupied bin gives -0.0
    return h if h > 0 else 0.0


def rgb_to_hsv(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized RGB (0..255) to hue degrees [0, 360), saturation and value in [0, 1].
    """
    norm = rgb.astype(np.float64) / 255.0
    rn, gn, bn = norm[..., 0], norm[..., 1], norm[..., 2]
    cmax = norm.max(axis=-1)
    cmin = norm.min(axis=-1)
    d = cmax - cmin

    hue = np.zeros_like(cmax)
    safe_d = np.where(d == 0, 1.0, d)
    red_max = (d != 0) & (cmax == rn)
    green_max = (d != 0) & (cmax == gn) & ~red_max
    blue_max = (d != 0) & ~red_max & ~green_max

    hue = np.where(red_max, 60.0 * np.fmod((gn - bn) / safe_d, 6.0), hue)
    hue = np.where(green_max, 60.0 * ((bn - rn) / safe_d + 2.0), hue)
    hue = np.where(blue_max, 60.0 * ((rn - gn) / safe_d + 4.0), hue)
    hue = np.where(hue < 0, hue + 360.0, hue)

    sat = np.where(cmax == 0, 0.0, d / np.where(cmax == 0, 1.0, cmax))
    return hue, sat, cmax


def is_warm_hue(hue: float) -> bool:
    # [30, 60] overlaps the first band on purpose; effective warm set is [0, 60] U (330, 360)
    return hue < 30 or hue > 330 or (30 <= hue <= 60)


def hue_and_temperature(buffer: PixelBuffer) -> tuple[float, Temperature, float]:
    """
    Mean hue and saturation over informative pixels (saturation > 0.1).

    Returns (hue, temperature, mean_saturation); (0.0, WARM, 0.0) when every
    pixel is near-gray.
    """
    hue, sat, _ = rgb_to_hsv(buffer.rgb)
    mask = sat > SATURATION_FLOOR
    n = int(np.count_nonzero(mask))

    mean_hue = float(hue[mask].mean()) if n else 0.0
    mean_sat = float(sat[mask].mean()) if n else 0.0
    temperature = Temperature.WARM if is_warm_hue(mean_hue) else Temperature.COOL
    return mean_hue, temperature, mean_sat

"""
Sobel edge-magnitude field.

Border pixels are left at zero; the field is normalized by its global
maximum so that edge thresholds do not depend on the image's contrast range.
"""

from __future__ import annotations

import cv2
import numpy as np


def sobel_gradient(gray: np.ndarray) -> np.ndarray:
    """
    Normalized hypot(Gx, Gy) over interior pixels.

    Returns float32 array in [0.0, 1.0], same shape as gray
    """
    h, w = gray.shape
    magnitude = np.zeros((h, w), dtype=np.float64)
    if h < 3 or w < 3:
        return magnitude.astype(np.float32)

    src = gray.astype(np.float64)
    gx = cv2.Sobel(src, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(src, cv2.CV_64F, 0, 1, ksize=3)

    magnitude[1:-1, 1:-1] = np.hypot(gx[1:-1, 1:-1], gy[1:-1, 1:-1])

    peak = magnitude.max()
    if peak <= 0:
        return np.zeros((h, w), dtype=np.float32)
    return (magnitude / peak).astype(np.float32)

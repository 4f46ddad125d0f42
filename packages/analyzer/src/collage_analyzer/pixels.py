"""
Pixel sampling and grayscale conversion.

A PixelBuffer is a read-only RGBA snapshot owned by one analysis pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

MAX_WIDTH = 1200

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """RGBA samples, shape (height, width, 4), uint8."""
    data: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> PixelBuffer:
        """
        Copy an HxW, HxWx3 or HxWx4 array into a new buffer.

        Raises ValueError: If the array has zero width or height
        """
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected HxW, HxWx3 or HxWx4 array, got {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError("Image has zero width or height")

        arr = np.clip(arr, 0, 255).astype(np.uint8)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)

        data = np.ascontiguousarray(arr).copy()
        data.flags.writeable = False
        return cls(data=data)

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        """R, G, B channels as float64, shape (height, width, 3)."""
        return self.data[..., :3].astype(np.float64)


def sample_pixels(image: Image.Image | np.ndarray, max_width: int = MAX_WIDTH) -> PixelBuffer:
    """
    Capture an RGBA snapshot, downscaling anything wider than max_width.
    """
    if isinstance(image, Image.Image):
        img = ImageOps.exif_transpose(image).convert("RGBA")
        rgba = np.array(img, dtype=np.uint8)
    else:
        rgba = PixelBuffer.from_array(image).data

    # Fully transparent pixels carry no color, as when read back off a canvas.
    clear = rgba[..., 3] == 0
    if clear.any():
        rgba = rgba.copy()
        rgba[clear, :3] = 0

    h, w = rgba.shape[:2]
    if w == 0 or h == 0:
        raise ValueError("Image has zero width or height")

    if max_width and w > max_width:
        scale = max_width / w
        new_w = max(1, round(w * scale))
        new_h = max(1, round(h * scale))
        rgba = cv2.resize(rgba, (new_w, new_h), interpolation=cv2.INTER_AREA)
        logger.debug("Downscaled %dx%d to %dx%d", w, h, new_w, new_h)

    return PixelBuffer.from_array(rgba)


def to_grayscale(buffer: PixelBuffer) -> np.ndarray:
    """
    Luminance L = round(0.299 R + 0.587 G + 0.114 B).

    Returns uint8 array of shape (height, width)
    """
    luma = buffer.rgb @ LUMA_WEIGHTS
    return np.clip(np.floor(luma + 0.5), 0, 255).astype(np.uint8)

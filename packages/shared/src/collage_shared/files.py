"""
Image decoding and data-URL helpers for the backend and CLI.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_IMG_EXTS: frozenset[str] = frozenset({".png", ".jpg", ".jpeg", ".webp"})

_DATA_URL_RE = re.compile(r"^data:(.*?);base64,(.*)$", re.DOTALL)


class DecodeFailure(ValueError):
    """Raised when image bytes or a data URL cannot be decoded."""


def split_data_url(data_url: str) -> tuple[str, bytes]:
    """Return (mime, payload) of a base64 data URL."""
    m = _DATA_URL_RE.match(data_url or "")
    if not m:
        raise DecodeFailure("Invalid data URL")
    mime = m.group(1) or "application/octet-stream"
    try:
        payload = base64.b64decode(m.group(2), validate=False)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Invalid base64 payload: {e}") from e
    return mime, payload


def to_data_url(payload: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def load_image(source: Path | str | bytes) -> Image.Image:
    """
    Decode an image file or raw bytes into an upright RGBA PIL image.

    Raises DecodeFailure: If the bytes are not a readable single-frame image
    """
    try:
        if isinstance(source, bytes):
            img = Image.open(io.BytesIO(source))
        else:
            img = Image.open(Path(source))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise DecodeFailure(f"Cannot decode image: {e}") from e

    n_frames = getattr(img, "n_frames", 1)
    if n_frames != 1:
        logger.debug("Multi-frame image, analyzing first frame only")
        img.seek(0)

    img = ImageOps.exif_transpose(img)
    if img.width == 0 or img.height == 0:
        raise DecodeFailure("Image has zero width or height")
    return img.convert("RGBA")


def decode_data_url(data_url: str) -> Image.Image:
    _, payload = split_data_url(data_url)
    return load_image(payload)


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_thumbnail(img: Image.Image, width: int = 220) -> Image.Image:
    """Scale to a fixed width, keeping aspect."""
    height = max(1, round(img.height * (width / img.width)))
    return img.resize((width, height), Image.Resampling.LANCZOS)

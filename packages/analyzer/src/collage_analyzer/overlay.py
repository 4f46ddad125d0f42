"""
Overlay archetype selection and placement.

The analyzer does not draw. It decides which overlay archetype a
recommendation set calls for, and where on the canvas the patch goes; a
rendering collaborator produces the pixels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Iterable

import numpy as np

from collage_shared.protocol import FeatureSet, RegionLabel


class OverlayKind(str, Enum):
    HALFTONE = "halftone"
    CHECKER = "checker"
    CMY = "cmy"
    TAPE_X = "tapex"
    PHOTOCOPY = "photocopy"


# First match wins, so a set mentioning both halftone and checker gets halftone.
_OVERLAY_PRIORITY: tuple[tuple[OverlayKind, tuple[str, ...]], ...] = (
    (OverlayKind.HALFTONE, ("halftone",)),
    (OverlayKind.CHECKER, ("checker",)),
    (OverlayKind.CMY, ("misregistration", "cmy")),
    (OverlayKind.TAPE_X, ("masking-tape", "tape x", "masking")),
    (OverlayKind.PHOTOCOPY, ("photocopy",)),
)

DEFAULT_OVERLAY = OverlayKind.CHECKER

# Top-left corner of the patch as fractions of canvas width, height.
ANCHORS: dict[RegionLabel, tuple[float, float]] = {
    RegionLabel.TOP_LEFT: (0.05, 0.08),
    RegionLabel.TOP_CENTER: (0.35, 0.08),
    RegionLabel.TOP_RIGHT: (0.65, 0.08),
    RegionLabel.MIDDLE_LEFT: (0.05, 0.38),
    RegionLabel.CENTER: (0.35, 0.38),
    RegionLabel.MIDDLE_RIGHT: (0.65, 0.38),
    RegionLabel.BOTTOM_LEFT: (0.05, 0.68),
    RegionLabel.BOTTOM_CENTER: (0.35, 0.68),
    RegionLabel.BOTTOM_RIGHT: (0.65, 0.68),
}

PATCH_FRACTION = (0.45, 0.25)
JITTER_FRACTION = 0.08
MAX_ROTATION_DEG = 6.0


def select_overlay(phrases: Iterable[str] | None) -> OverlayKind:
    text = " ".join(phrases or []).lower()
    for kind, needles in _OVERLAY_PRIORITY:
        if any(n in text for n in needles):
            return kind
    return DEFAULT_OVERLAY


@dataclass(frozen=True)
class OverlayPlacement:
    """Where a rendering collaborator should composite the patch."""
    kind: OverlayKind
    region: RegionLabel
    x: int
    y: int
    width: int
    height: int
    rotation_deg: float

    @property
    def rotation_rad(self) -> float:
        return math.radians(self.rotation_deg)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["kind"] = self.kind.value
        d["region"] = self.region.value
        return d


def place_overlay(
    kind: OverlayKind,
    region: RegionLabel | None,
    canvas_width: int,
    canvas_height: int,
    rng: np.random.Generator,
    patch_size: tuple[int, int] | None = None,
) -> OverlayPlacement:
    """
    Anchor the patch on the region, jitter by +-8% of the canvas and rotate
    by up to +-6 degrees. The origin is clamped so the patch stays inside.
    """
    region = region or RegionLabel.CENTER
    if patch_size is None:
        w = int(canvas_width * PATCH_FRACTION[0])
        h = int(canvas_height * PATCH_FRACTION[1])
    else:
        w, h = patch_size

    ax, ay = ANCHORS.get(region, ANCHORS[RegionLabel.CENTER])
    jx = rng.uniform(-JITTER_FRACTION, JITTER_FRACTION) * canvas_width
    jy = rng.uniform(-JITTER_FRACTION, JITTER_FRACTION) * canvas_height

    x = math.floor(canvas_width * ax + jx)
    y = math.floor(canvas_height * ay + jy)
    x = max(0, min(canvas_width - w, x))
    y = max(0, min(canvas_height - h, y))

    rotation = float(rng.uniform(-MAX_ROTATION_DEG, MAX_ROTATION_DEG))
    return OverlayPlacement(kind, region, x, y, w, h, rotation)


def diffusion_prompt(features: FeatureSet | None, phrases: Iterable[str] | None) -> str:
    """Text prompt asking an image generator for a matching cut-out."""
    base = " ; ".join(phrases or [])
    temp = features.temperature.value if features is not None else "neutral"
    return (
        f"{base}. collage paper cut-out, torn edges, matte texture, photographed on "
        f"plain white background, hard crisp silhouette, {temp} palette accent, "
        f"no drop shadow, high contrast"
    )


def edit_instruction(features: FeatureSet | None, phrases: list[str] | None) -> str:
    """Instruction for an image-edit model, restricted to the suggested region."""
    first = phrases[0] if phrases else "Add a small collage element in the suggested region."
    region = features.suggested_region.value if features is not None else RegionLabel.CENTER.value
    return (
        first.replace("**", "")
        + f" Only modify the {region} area; keep all other areas unchanged."
    )

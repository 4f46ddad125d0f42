"""
Wire types for the collage analyzer.

Message Flow:
    Client -> Backend: image (multipart file or imageDataURL), mode
    Backend -> Client: features (FeatureSet dict), recommendations, reasons
    Client -> Backend: decision (accept | skip)
    Backend -> Client: interactions CSV, history thumbnails

A FeatureSet serialized with to_dict()/to_json() and parsed back with
parse_feature_set()/FeatureSet.from_json() is equal to the original, so it
can be logged and replayed through the recommendation engine.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, asdict
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Literal, Any

PROTOCOL_VERSION: Literal[1] = 1

AnalyzeMode = Literal["general", "direct", "diffuse", "edit"]
ANALYZE_MODES: tuple[str, ...] = ("general", "direct", "diffuse", "edit")


class ProtocolError(Exception):
    """Raised when a message fails validation or version check."""
    pass


def validate_version(msg: dict[str, Any]) -> None:
    version = msg.get("v")
    if version is not None and version != PROTOCOL_VERSION:
        raise ProtocolError(
            f"Protocol version mismatch: expected {PROTOCOL_VERSION}."
        )


def to_fixed(value: float, digits: int) -> str:
    """Fixed-point text; exact halves round away from zero (0.0625 -> "0.063")."""
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


class Temperature(str, Enum):
    WARM = "warm"
    COOL = "cool"


class RegionLabel(str, Enum):
    """Named cells of the 3x3 partition, row-major."""
    TOP_LEFT = "top left"
    TOP_CENTER = "top center"
    TOP_RIGHT = "top right"
    MIDDLE_LEFT = "middle left"
    CENTER = "center"
    MIDDLE_RIGHT = "middle right"
    BOTTOM_LEFT = "bottom left"
    BOTTOM_CENTER = "bottom center"
    BOTTOM_RIGHT = "bottom right"


class Decision(str, Enum):
    ACCEPT = "accept"
    SKIP = "skip"


@dataclass(frozen=True)
class FeatureSet:
    """Visual statistics of one image snapshot."""
    dominant_color: tuple[int, int, int]
    colorfulness: float
    contrast: float
    edge_density: float
    entropy: float
    hue: float
    temperature: Temperature
    mean_saturation: float
    suggested_region: RegionLabel

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["dominant_color"] = list(self.dominant_color)
        d["temperature"] = self.temperature.value
        d["suggested_region"] = self.suggested_region.value
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "FeatureSet":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"FeatureSet is not valid JSON: {e}") from e
        return parse_feature_set(data)

    def summary(self) -> dict[str, str]:
        """Display-ready subset, in the order a results panel lists them."""
        return {
            "temperature": self.temperature.value,
            "colorfulness": to_fixed(self.colorfulness, 3),
            "contrast": to_fixed(self.contrast, 3),
            "edge_density": to_fixed(self.edge_density, 3),
            "entropy": to_fixed(self.entropy, 3),
            "suggested_region": self.suggested_region.value,
        }


_FEATURE_KEYS = (
    "dominant_color", "colorfulness", "contrast", "edge_density", "entropy",
    "hue", "temperature", "mean_saturation", "suggested_region",
)


def parse_feature_set(data: dict[str, Any] | None) -> FeatureSet:
    if not isinstance(data, dict):
        raise ProtocolError("FeatureSet payload must be an object.")

    missing = [k for k in _FEATURE_KEYS if k not in data]
    if missing:
        raise ProtocolError(f"FeatureSet is missing: {', '.join(missing)}")

    color = data["dominant_color"]
    if not isinstance(color, (list, tuple)) or len(color) != 3:
        raise ProtocolError("dominant_color must be an [r, g, b] triple.")

    try:
        return FeatureSet(
            dominant_color=(int(color[0]), int(color[1]), int(color[2])),
            colorfulness=float(data["colorfulness"]),
            contrast=float(data["contrast"]),
            edge_density=float(data["edge_density"]),
            entropy=float(data["entropy"]),
            hue=float(data["hue"]),
            temperature=Temperature(data["temperature"]),
            mean_saturation=float(data["mean_saturation"]),
            suggested_region=RegionLabel(data["suggested_region"]),
        )
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid FeatureSet field: {e}") from e


def parse_decision(value: Any) -> Decision:
    try:
        return Decision(value)
    except ValueError:
        raise ProtocolError(
            f"decision must be one of {[d.value for d in Decision]}, got {value!r}"
        ) from None


def parse_mode(value: Any) -> str:
    if value is None or value == "":
        return "general"
    if value not in ANALYZE_MODES:
        raise ProtocolError(f"Unknown analyze mode: {value!r}")
    return value


@dataclass
class DecisionRow:
    """One row of the interaction log."""
    timestamp: str
    decision: Decision
    prompts: str
    explanations: str

    def as_row(self) -> list[str]:
        return [self.timestamp, self.decision.value, self.prompts, self.explanations]


@dataclass
class EditRequest:
    """Client -> Backend body for the image-edit proxy."""
    image_data_url: str | None = None
    prompt: str | None = None
    mask_data_url: str | None = None
    steps: int = 28
    guidance: float = 4.0

    def validate(self) -> None:
        if not self.image_data_url or not self.prompt:
            raise ProtocolError("imageDataURL and prompt are required.")


@dataclass
class DiffusionRequest:
    """Client -> Backend body for the diffusion proxy."""
    prompt: str = "collage paper cut-out on white background"
    width: int = 512
    height: int = 384
    steps: int = 6
    guidance: float = 1.0
    model: str = "stabilityai/sd-turbo"

    def clamped(self) -> "DiffusionRequest":
        return DiffusionRequest(
            prompt=self.prompt,
            width=min(max(128, self.width), 768),
            height=min(max(128, self.height), 768),
            steps=min(max(1, self.steps), 12),
            guidance=min(max(0.0, self.guidance), 7.5),
            model=self.model,
        )

    def cache_key(self) -> str:
        return json.dumps(asdict(self), sort_keys=True)


def parse_edit_request(data: dict[str, Any] | None) -> EditRequest:
    if data is None:
        data = {}
    try:
        return EditRequest(
            image_data_url=data.get("imageDataURL"),
            prompt=data.get("prompt"),
            mask_data_url=data.get("maskDataURL"),
            steps=int(data.get("steps", 28)),
            guidance=float(data.get("guidance", 4)),
        )
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid edit request: {e}") from e


def parse_diffusion_request(data: dict[str, Any] | None) -> DiffusionRequest:
    if data is None:
        data = {}
    defaults = DiffusionRequest()
    try:
        return DiffusionRequest(
            prompt=str(data.get("prompt", defaults.prompt)),
            width=int(data.get("width", defaults.width)),
            height=int(data.get("height", defaults.height)),
            steps=int(data.get("steps", defaults.steps)),
            guidance=float(data.get("guidance", defaults.guidance)),
            model=str(data.get("model", defaults.model)),
        )
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid diffusion request: {e}") from e

"""
Analysis session: the single owner of the latest result.

Each analyze() call builds a new frozen AnalysisResult and replaces the
previous one whole (last write wins). Decisions copy the visible phrases
and hidden reasons out of the current result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import numpy as np

from collage_shared.protocol import Decision, DecisionRow, FeatureSet

from .analysis import extract_features
from .overlay import OverlayKind, OverlayPlacement, place_overlay, select_overlay
from .pixels import PixelBuffer
from .recommend import RecommendationSet, recommend

logger = logging.getLogger(__name__)


class InputMissing(LookupError):
    """Raised when an operation needs an analysis that does not exist yet."""

    def __init__(self, message: str = "Choose an image first."):
        super().__init__(message)


@dataclass(frozen=True)
class AnalysisResult:
    """Everything one analysis pass produced."""
    features: FeatureSet
    recommendations: RecommendationSet
    overlay: OverlayKind
    width: int
    height: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "features": self.features.to_dict(),
            "summary": self.features.summary(),
            "recommendations": self.recommendations.recommendations,
            "reasons": self.recommendations.reasons,
            "kinds": [k.value for k in self.recommendations.kinds],
            "overlay_kind": self.overlay.value,
            "width": self.width,
            "height": self.height,
        }


class AnalysisSession:
    """Holds the latest AnalysisResult and the generator used to build it."""

    def __init__(self, rng: np.random.Generator | None = None):
        self._rng = rng if rng is not None else np.random.default_rng()
        self._current: AnalysisResult | None = None

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    @property
    def current(self) -> AnalysisResult | None:
        return self._current

    def analyze(self, buffer: PixelBuffer) -> AnalysisResult:
        features = extract_features(buffer, self._rng)
        recs = recommend(features, self._rng)
        result = AnalysisResult(
            features=features,
            recommendations=recs,
            overlay=select_overlay(recs.recommendations),
            width=buffer.width,
            height=buffer.height,
        )
        self._current = result
        logger.info("Analysis complete: %s overlay in %s",
                    result.overlay.value, features.suggested_region.value)
        return result

    def place_overlay(self, patch_size: tuple[int, int] | None = None) -> OverlayPlacement:
        """
        Placement of the synthetic overlay for the current result.

        Raises InputMissing: If nothing has been analyzed
        """
        result = self.require()
        return place_overlay(
            result.overlay,
            result.features.suggested_region,
            result.width,
            result.height,
            self._rng,
            patch_size=patch_size,
        )

    def require(self) -> AnalysisResult:
        if self._current is None:
            raise InputMissing()
        return self._current

    def decide(self, decision: Decision, timestamp: datetime | None = None) -> DecisionRow:
        """
        Build a log row for accepting or skipping the current recommendations.

        Raises InputMissing: If there are no recommendations to decide on
        """
        result = self.require()
        if result.recommendations.is_empty():
            raise InputMissing("No recommendations to decide on.")

        ts = (timestamp or datetime.now(timezone.utc)).isoformat()
        return DecisionRow(
            timestamp=ts,
            decision=decision,
            prompts=" | ".join(result.recommendations.recommendations),
            explanations=" ; ".join(result.recommendations.reasons),
        )

    def clear(self) -> None:
        self._current = None

"""
Rule table mapping image features to collage interventions.

Three independent rules, applied in a fixed order, each choose one entry
from its own disjoint pair of catalog kinds:

1. Temperature: cool images get a CMY misregistration swatch, warm ones a
   photocopy overlay.
2. Edge presence: below 0.06 edge density a halftone field, otherwise a
   masking-tape X.
3. Contrast / complexity: contrast < 0.12 or entropy < 6.0 gets a
   checkerboard strip in a random direction, otherwise ransom-letter type.

The generator is consulted only by the checkerboard branch of rule 3.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from collage_shared.protocol import FeatureSet, Temperature, to_fixed

from .catalog import CATALOG, Direction, RecommendationKind

logger = logging.getLogger(__name__)

LOW_EDGE_DENSITY = 0.06
LOW_CONTRAST = 0.12
LOW_ENTROPY = 6.0

DIRECTIONS: tuple[Direction, ...] = (
    Direction.DIAGONALLY,
    Direction.VERTICALLY,
    Direction.HORIZONTALLY,
)


@dataclass(frozen=True)
class Recommendation:
    kind: RecommendationKind
    phrase: str
    reason: str


@dataclass(frozen=True)
class RecommendationSet:
    """Ordered output of one pass over the rule table."""
    items: tuple[Recommendation, ...] = field(default_factory=tuple)

    @property
    def recommendations(self) -> list[str]:
        return [r.phrase for r in self.items]

    @property
    def reasons(self) -> list[str]:
        return [r.reason for r in self.items]

    @property
    def kinds(self) -> list[RecommendationKind]:
        return [r.kind for r in self.items]

    def is_empty(self) -> bool:
        return not self.items


def random_direction(rng: np.random.Generator) -> Direction:
    return DIRECTIONS[int(rng.integers(len(DIRECTIONS)))]


def recommend(features: FeatureSet | None, rng: np.random.Generator) -> RecommendationSet:
    """
    Apply the rule table to one FeatureSet.

    Returns an empty set when features is None; callers check is_empty()
    before rendering.
    """
    if features is None:
        return RecommendationSet()

    region = features.suggested_region.value
    items: list[Recommendation] = []

    if features.temperature is Temperature.COOL:
        entry = CATALOG[RecommendationKind.CMY_MISREGISTRATION]
        reason = (
            f"Image skews cool; add warm-biased CMY blocks and misregistration "
            f"to create chroma conflict near {region}."
        )
    else:
        entry = CATALOG[RecommendationKind.PHOTOCOPY_OVERLAY]
        reason = (
            f"Image reads warm/saturated (colorfulness={to_fixed(features.colorfulness, 1)}); "
            f"a desaturated photocopy slab opposes palette unity."
        )
    items.append(Recommendation(entry.kind, entry.phrase(region), reason))

    edges = features.edge_density
    if edges < LOW_EDGE_DENSITY:
        entry = CATALOG[RecommendationKind.NEWSPRINT_HALFTONE]
        reason = (
            f"Edge density is low ({to_fixed(edges, 3)}); halftone dots add "
            f"micro-structure and noise."
        )
    else:
        entry = CATALOG[RecommendationKind.MASKING_TAPE_X]
        reason = (
            f"Edges already active ({to_fixed(edges, 3)}); a bold tape 'X' creates "
            f"symbolic interruption instead."
        )
    items.append(Recommendation(entry.kind, entry.phrase(region), reason))

    cont, ent = features.contrast, features.entropy
    if cont < LOW_CONTRAST or ent < LOW_ENTROPY:
        entry = CATALOG[RecommendationKind.CHECKERBOARD_STRIP]
        phrase = entry.phrase(region, random_direction(rng))
        reason = (
            f"Contrast={to_fixed(cont, 2)}, entropy={to_fixed(ent, 2)}; a crisp checker strip "
            f"injects periodic contrast."
        )
    else:
        entry = CATALOG[RecommendationKind.RANSOM_LETTER]
        phrase = entry.phrase(region)
        reason = (
            f"High image complexity (entropy={to_fixed(ent, 2)}); mixed-letter typography "
            f"shifts attention and breaks semantic cohesion."
        )
    items.append(Recommendation(entry.kind, phrase, reason))

    logger.debug("Recommended %s", [i.kind.value for i in items])
    return RecommendationSet(items=tuple(items))

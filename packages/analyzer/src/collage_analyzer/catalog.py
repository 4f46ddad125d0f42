"""
Recommendation library.

A closed set of collage interventions. Each entry renders a user-facing
phrase for a region (and, for strips, a direction) and carries a hidden
rationale. The catalog is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

from collage_shared.protocol import RegionLabel


class Category(str, Enum):
    PATTERN = "pattern"
    CONCEPT = "concept"
    OCCURRENCE = "occurrence"


class RecommendationKind(str, Enum):
    NEWSPRINT_HALFTONE = "newsprint halftone dot field"
    CHECKERBOARD_STRIP = "checkerboard strip"
    CMY_MISREGISTRATION = "CMY misregistration swatch"
    RANSOM_LETTER = "ransom-letter typography"
    MAP_FRAGMENT = "found map fragment"
    BARCODE_SLIVER = "barcode/receipt sliver"
    TORN_PAPER_DIAGONAL = "torn paper diagonal"
    MASKING_TAPE_X = "masking tape X"
    PHOTOCOPY_OVERLAY = "photocopy overlay"


class Direction(str, Enum):
    DIAGONALLY = "diagonally"
    VERTICALLY = "vertically"
    HORIZONTALLY = "horizontally"


@dataclass(frozen=True)
class CatalogEntry:
    kind: RecommendationKind
    category: Category
    template: Callable[[str, str], str]
    rationale: str

    def phrase(self, region: RegionLabel | str, direction: Direction | str | None = None) -> str:
        where = region.value if isinstance(region, RegionLabel) else region
        how = direction.value if isinstance(direction, Direction) else (direction or "")
        return self.template(where, how)


def _entry(kind, category, template, rationale) -> tuple[RecommendationKind, CatalogEntry]:
    return kind, CatalogEntry(kind, category, template, rationale)


CATALOG: Mapping[RecommendationKind, CatalogEntry] = MappingProxyType(dict([
    _entry(
        RecommendationKind.NEWSPRINT_HALFTONE, Category.PATTERN,
        lambda where, _: (
            f"Lay a **newsprint halftone dot field** as a translucent sheet across the "
            f"{where}, letting dots clash with your smooth areas."
        ),
        "Introduce mechanical texture to disrupt soft gradients / uniform fills.",
    ),
    _entry(
        RecommendationKind.CHECKERBOARD_STRIP, Category.PATTERN,
        lambda where, how: (
            f"Tape a **thin checkerboard strip** running {how} through the {where}, "
            f"slightly misaligned."
        ),
        "High-contrast, regular checkers oppose blended/low-contrast zones.",
    ),
    _entry(
        RecommendationKind.CMY_MISREGISTRATION, Category.PATTERN,
        lambda where, _: (
            f"Add a **CMY misregistration swatch** (cyan/magenta/yellow blocks) in the "
            f"{where}, offset 2–4px per channel."
        ),
        "Printers' marks add industrial color conflict against cohesive palettes.",
    ),
    _entry(
        RecommendationKind.RANSOM_LETTER, Category.CONCEPT,
        lambda where, _: f"Collage a **ransom-letter word** from mismatched magazines across the {where}.",
        "Mixed fonts/forms fracture typographic cohesion and inject narrative tension.",
    ),
    _entry(
        RecommendationKind.MAP_FRAGMENT, Category.CONCEPT,
        lambda where, _: (
            f"Glue a **small torn map fragment** into the {where} with a hard edge "
            f"crossing your calm area."
        ),
        "Cartographic lines disrupt organic imagery; a 'place' reference counters abstraction.",
    ),
    _entry(
        RecommendationKind.BARCODE_SLIVER, Category.CONCEPT,
        lambda where, _: f"Slip a **barcode or receipt sliver** into the {where}, slightly tilted.",
        "Commodity marks oppose hand-made continuity and draw crisp verticals.",
    ),
    _entry(
        RecommendationKind.TORN_PAPER_DIAGONAL, Category.OCCURRENCE,
        lambda where, _: (
            f"Tear a **paper diagonal** from corner to corner through the {where}; "
            f"let the deckle edge show."
        ),
        "Jagged tear adds directional energy and interrupts symmetry.",
    ),
    _entry(
        RecommendationKind.MASKING_TAPE_X, Category.OCCURRENCE,
        lambda where, _: f"Place a **masking-tape X** over the {where}; leave a slight shadow gap.",
        "Tape reads provisional; the X symbolically 'cancels' cohesion.",
    ),
    _entry(
        RecommendationKind.PHOTOCOPY_OVERLAY, Category.OCCURRENCE,
        lambda where, _: f"Overlay a **high-contrast photocopy** rectangle in the {where}, 5–10° rotated.",
        "Brittle, desaturated toner fights saturated blends; rotation breaks alignment.",
    ),
]))

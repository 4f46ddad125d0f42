"""
Collage analysis engine.

This package is the core feature-extraction and recommendation logic.
It is used by the backend and the CLI.

Deployment:
    pip install collage-advisor

This package has no networking dependencies. It's pure image processing.

"""

from .analysis import analyze_image, extract_features, make_rng
from .catalog import CATALOG, CatalogEntry, Category, Direction, RecommendationKind
from .gradient import sobel_gradient
from .overlay import (
    OverlayKind,
    OverlayPlacement,
    diffusion_prompt,
    edit_instruction,
    place_overlay,
    select_overlay,
)
from .pixels import PixelBuffer, sample_pixels, to_grayscale
from .recommend import Recommendation, RecommendationSet, recommend
from .regions import cell_name, emptiest_cells, grid_occupancy, select_region
from .session import AnalysisResult, AnalysisSession, InputMissing
from .statistics import (
    colorfulness,
    contrast,
    dominant_color_mean,
    edge_density,
    entropy,
    hue_and_temperature,
    is_warm_hue,
    rgb_to_hsv,
)

__all__ = [
    "PixelBuffer",
    "sample_pixels",
    "to_grayscale",
    "sobel_gradient",
    "dominant_color_mean",
    "colorfulness",
    "contrast",
    "edge_density",
    "entropy",
    "rgb_to_hsv",
    "is_warm_hue",
    "hue_and_temperature",
    "grid_occupancy",
    "emptiest_cells",
    "cell_name",
    "select_region",
    "CATALOG",
    "CatalogEntry",
    "Category",
    "Direction",
    "RecommendationKind",
    "Recommendation",
    "RecommendationSet",
    "recommend",
    "OverlayKind",
    "OverlayPlacement",
    "select_overlay",
    "place_overlay",
    "diffusion_prompt",
    "edit_instruction",
    "make_rng",
    "extract_features",
    "analyze_image",
    "AnalysisResult",
    "AnalysisSession",
    "InputMissing",
]

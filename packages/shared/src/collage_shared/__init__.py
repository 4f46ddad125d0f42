"""
Shared wire types and image helpers for the collage advisor

The package is a dependency of the analyzer, the backend and the CLI:
- Analyzer builds FeatureSet records from it
- Backend parses request bodies and decodes uploaded images with it
- CLI loads image files with it

Deployment:
    pip install collage-advisor
"""

from .protocol import (
    ANALYZE_MODES,
    PROTOCOL_VERSION,
    Decision,
    DecisionRow,
    DiffusionRequest,
    EditRequest,
    FeatureSet,
    ProtocolError,
    RegionLabel,
    Temperature,
    parse_decision,
    parse_diffusion_request,
    parse_edit_request,
    parse_feature_set,
    parse_mode,
    to_fixed,
    validate_version,
)
from .files import (
    ALLOWED_IMG_EXTS,
    DecodeFailure,
    decode_data_url,
    encode_png,
    load_image,
    make_thumbnail,
    split_data_url,
    to_data_url,
)

__all__ = [
    # Protocol
    "PROTOCOL_VERSION",
    "ANALYZE_MODES",
    "ProtocolError",
    "to_fixed",
    "validate_version",
    "Temperature",
    "RegionLabel",
    "Decision",
    "FeatureSet",
    "DecisionRow",
    "EditRequest",
    "DiffusionRequest",
    "parse_feature_set",
    "parse_decision",
    "parse_mode",
    "parse_edit_request",
    "parse_diffusion_request",
    # Files
    "ALLOWED_IMG_EXTS",
    "DecodeFailure",
    "split_data_url",
    "to_data_url",
    "load_image",
    "decode_data_url",
    "encode_png",
    "make_thumbnail",
]

"""
ServicePlan Branding Module

Extracts dominant colors from a company logo and derives the five-color
scheme (primary, secondary, accent, text, background) used by the
subscription widget.
"""

from .extract_api import (
    ExtractionResult,
    LatestRequestGuard,
    SchemeOutcome,
    extract_color_scheme,
    extract_color_scheme_or_default,
)
from .sampler import ImageDecoder, LoadFailure, LoadTimeout, PillowImageDecoder, PixelBuffer
from .scheme import ColorScheme, generate_color_scheme, get_default_color_scheme

__all__ = [
    "ColorScheme",
    "ExtractionResult",
    "ImageDecoder",
    "LatestRequestGuard",
    "LoadFailure",
    "LoadTimeout",
    "PillowImageDecoder",
    "PixelBuffer",
    "SchemeOutcome",
    "extract_color_scheme",
    "extract_color_scheme_or_default",
    "generate_color_scheme",
    "get_default_color_scheme",
]

"""
Enums for the responsive image engine

This module contains enumeration classes that define the output formats,
fit modes, placeholder strategies and build modes understood by the engine.
"""

from enum import Enum


class ImageFormat(Enum):
    """Enumeration of output formats"""
    AVIF = "avif"
    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"
    ORIGINAL = "original"  # Source's native format


class FitMode(Enum):
    """Enumeration of resize fit modes"""
    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


class PlaceholderStrategy(Enum):
    """Enumeration of low-quality placeholder strategies"""
    NONE = "none"
    BLUR = "blur"
    DOMINANT_COLOR = "dominant-color"
    TRACED_SVG = "traced-svg"
    PIXELATED = "pixelated"


class BuildMode(Enum):
    """Enumeration of host build modes"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"

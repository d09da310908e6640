"""
Responsive Images - derive responsive image variants and layout metadata.

This package provides classes and utilities for:
- Resolving target sizes from breakpoints and requested dimensions
- Resizing and encoding variants (AVIF, WebP, JPEG, PNG, original)
- Low-quality placeholders (blur, dominant color, traced SVG, pixelated)
- srcset/sizes assembly per format
- Two-tier content-addressed caching of the resulting metadata
- Parallel processing and complete pipeline orchestration
"""

__version__ = "1.0.0"

from .enums import BuildMode, FitMode, ImageFormat, PlaceholderStrategy
from .errors import (
    CacheWriteWarning,
    ImageEngineError,
    ImageRequestError,
    InvalidImageError,
    InvalidParameterError,
    SinkWriteError,
    UnsupportedFormatError,
    VariantBuildError,
)
from .models import (
    DecodedImage,
    EngineConfig,
    ImageMetadata,
    ImageSource,
    RequestParameters,
    Variant,
)
from .geometry import Geometry, calculate_breakpoints, resolve_geometry, variant_height
from .codec import CodecAdapter
from .placeholder import PlaceholderGenerator
from .sink import AssetSink, DirectorySink, OutputStrategy
from .srcset import assemble_sources, mime_type_for
from .cache import ImageCache, fingerprint
from .parallel import ParallelProcessor
from .orchestrator import VariantOrchestrator
from .pipeline import ResponsiveImagePipeline, create_default_config, load_config

__all__ = [
    'BuildMode',
    'FitMode',
    'ImageFormat',
    'PlaceholderStrategy',
    'CacheWriteWarning',
    'ImageEngineError',
    'ImageRequestError',
    'InvalidImageError',
    'InvalidParameterError',
    'SinkWriteError',
    'UnsupportedFormatError',
    'VariantBuildError',
    'DecodedImage',
    'EngineConfig',
    'ImageMetadata',
    'ImageSource',
    'RequestParameters',
    'Variant',
    'Geometry',
    'calculate_breakpoints',
    'resolve_geometry',
    'variant_height',
    'CodecAdapter',
    'PlaceholderGenerator',
    'AssetSink',
    'DirectorySink',
    'OutputStrategy',
    'assemble_sources',
    'mime_type_for',
    'ImageCache',
    'fingerprint',
    'ParallelProcessor',
    'VariantOrchestrator',
    'ResponsiveImagePipeline',
    'create_default_config',
    'load_config',
]

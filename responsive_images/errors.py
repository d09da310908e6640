"""
Errors for the responsive image engine

Every error raised while computing a request aborts that request. The one
exception is a failed write to the persistent cache, which is reported as a
CacheWriteWarning and never raised.
"""

from typing import Optional


class ImageEngineError(Exception):
    """Base class for all engine errors"""


class InvalidImageError(ImageEngineError):
    """Source image is missing, undecodable or has a zero dimension"""


class InvalidParameterError(ImageEngineError, ValueError):
    """A request parameter or configuration value could not be parsed"""


class UnsupportedFormatError(ImageEngineError):
    """The codec cannot produce the requested format for this image"""


class SinkWriteError(ImageEngineError):
    """An encoded variant could not be persisted in development mode"""


class VariantBuildError(ImageEngineError):
    """Encoding or committing a single variant failed"""

    def __init__(self, format: str, width: int, reason: Optional[str] = None):
        self.format = format
        self.width = width
        message = f"Failed to build {format} variant at {width}w"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ImageRequestError(ImageEngineError):
    """A request failed; identifies the offending image and parameters"""

    def __init__(self, image_path: str, query: str, reason: str):
        self.image_path = image_path
        self.query = query
        super().__init__(f"Failed to process {image_path}?{query}: {reason}")


class CacheWriteWarning(UserWarning):
    """The persistent cache tier could not be written"""

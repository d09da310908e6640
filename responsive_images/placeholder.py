"""
Placeholder Generator for the responsive image engine

This module contains the PlaceholderGenerator class which produces the
low-fidelity preview shown while the full-resolution variant loads.
"""

import base64
import logging
from typing import List, Optional

from .codec import CodecAdapter
from .enums import FitMode, PlaceholderStrategy
from .geometry import round_half_up
from .models import DecodedImage, PlaceholderValue

logger = logging.getLogger(__name__)

BLUR_WIDTH = 10
BLUR_SIGMA = 10
BLUR_QUALITY = 50
PIXELATED_WIDTHS = (8, 4)
TRACED_FILL = "%23ddd"


def data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class PlaceholderGenerator:
    """Builds one placeholder value per request"""

    def __init__(self, codec: CodecAdapter):
        self.codec = codec

    def generate(self, decoded: DecodedImage, strategy: PlaceholderStrategy,
                 fit: FitMode = FitMode.COVER,
                 aspect_ratio: Optional[float] = None) -> PlaceholderValue:
        """Generate the placeholder for `strategy`

        `aspect_ratio` overrides the source ratio, e.g. when the caller
        declared both w and h.
        """
        if strategy is PlaceholderStrategy.NONE:
            return None

        ratio = aspect_ratio or decoded.width / decoded.height
        logger.debug(f"Generating {strategy.value} placeholder for {decoded.path.name}")

        if strategy is PlaceholderStrategy.BLUR:
            return self._blur(decoded, fit, ratio)
        if strategy is PlaceholderStrategy.DOMINANT_COLOR:
            r, g, b = self.codec.dominant_color(self.codec.preview_pixels(decoded))
            return f"rgb({r}, {g}, {b})"
        if strategy is PlaceholderStrategy.TRACED_SVG:
            return self._traced_svg(decoded.width, decoded.height)
        if strategy is PlaceholderStrategy.PIXELATED:
            return self._pixelated(decoded, fit, ratio)
        raise ValueError(f"Unknown placeholder strategy: {strategy}")

    def _blur(self, decoded: DecodedImage, fit: FitMode, ratio: float) -> str:
        # Doubled for a smoother blur
        width = BLUR_WIDTH * 2
        height = max(1, round_half_up(BLUR_WIDTH / ratio)) * 2
        pixels = self.codec.resize(self.codec.preview_pixels(decoded), width, height, fit)
        pixels = self.codec.blur(pixels, BLUR_SIGMA)
        data = self.codec.encode_pixels(pixels, "JPEG", quality=BLUR_QUALITY)
        return data_uri(data, "image/jpeg")

    def _pixelated(self, decoded: DecodedImage, fit: FitMode, ratio: float) -> List[str]:
        preview = self.codec.preview_pixels(decoded)
        stages = []
        for width in PIXELATED_WIDTHS:
            height = max(1, round_half_up(width / ratio))
            pixels = self.codec.resize(preview, width, height, fit)
            data = self.codec.encode_pixels(pixels, "WEBP", lossless=True)
            stages.append(data_uri(data, "image/webp"))
        return stages

    def _traced_svg(self, width: int, height: int) -> str:
        return (
            "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' "
            f"width='{width}' height='{height}'%3E%3Crect width='{width}' "
            f"height='{height}' fill='{TRACED_FILL}'/%3E%3C/svg%3E"
        )

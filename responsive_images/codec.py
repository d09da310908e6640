"""
Codec Adapter for the responsive image engine

This module contains the CodecAdapter class which wraps the pixel codec:
decoding with Pillow, resizing and blurring with OpenCV, pixel statistics
with NumPy, and format-specific encoding with a fixed quality policy.
"""

import io
import logging
from pathlib import Path
from typing import Dict, Tuple, Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError, features

from .enums import FitMode, ImageFormat
from .errors import InvalidImageError, UnsupportedFormatError
from .geometry import round_half_up
from .models import DecodedImage

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    ImageFormat.AVIF: "AVIF",
    ImageFormat.WEBP: "WEBP",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.PNG: "PNG",
}

ENCODE_POLICY: Dict[ImageFormat, Dict] = {
    ImageFormat.AVIF: {"quality": 80, "speed": 5},  # effort 4
    ImageFormat.WEBP: {"quality": 85, "method": 4},  # effort 4
    ImageFormat.JPEG: {"quality": 85, "progressive": True},
    # Pillow cannot interlace PNG output; quality only applies to palette images
    ImageFormat.PNG: {"compress_level": 6},
}

SUPPORTED_MODES = {
    ImageFormat.AVIF: {"RGB", "RGBA"},
    ImageFormat.WEBP: {"RGB", "RGBA"},
    ImageFormat.JPEG: {"RGB", "RGBA"},
    ImageFormat.PNG: {"RGB", "RGBA", "I;16"},
}
GENERIC_MODES = {"RGB", "RGBA", "I;16"}

_FORMAT_BY_PIL_NAME = {name: fmt for fmt, name in PIL_FORMATS.items()}
_SIXTEEN_BIT_MODES = ("I;16", "I;16B", "I;16L", "I;16N")
_ALPHA_MODES = ("RGBA", "LA", "PA", "RGBa", "La")


class CodecAdapter:
    """Decode, resize and encode images with a fixed per-format policy"""

    def __init__(self):
        Image.init()

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, file_path: Union[str, Path]) -> DecodedImage:
        """Decode the first frame of an image file"""
        path = Path(file_path)
        if not path.is_file():
            raise InvalidImageError(f"Image not found: {path}")

        try:
            with Image.open(path) as pil_image:
                source_format = pil_image.format
                pil_image.seek(0)
                pil_image.load()
                pixels, mode = self._to_array(pil_image)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise InvalidImageError(f"Could not decode image {path}: {e}") from e

        height, width = pixels.shape[:2]
        if width == 0 or height == 0:
            raise InvalidImageError(f"Image has a zero dimension: {path} ({width}x{height})")

        logger.debug(f"Decoded {path}: {width}x{height}, mode {mode}, format {source_format}")
        return DecodedImage(
            path=path,
            pixels=pixels,
            mode=mode,
            source_format=source_format,
            width=width,
            height=height,
        )

    def _to_array(self, pil_image: Image.Image) -> Tuple[np.ndarray, str]:
        """Normalise 8-bit modes to RGB/RGBA and keep 16-bit greyscale"""
        mode = pil_image.mode
        if mode in ("RGB", "RGBA"):
            return np.asarray(pil_image), mode
        if mode in _SIXTEEN_BIT_MODES:
            return np.asarray(pil_image).astype(np.uint16), "I;16"
        if mode in ("I", "F"):
            return np.asarray(pil_image), mode

        if mode in _ALPHA_MODES or "transparency" in pil_image.info:
            return np.asarray(pil_image.convert("RGBA")), "RGBA"
        return np.asarray(pil_image.convert("RGB")), "RGB"

    # ------------------------------------------------------------------
    # Resize
    # ------------------------------------------------------------------

    def resize(self, pixels: np.ndarray, width: int, height: int,
               fit: FitMode = FitMode.COVER) -> np.ndarray:
        """Resize into a new array following the fit mode"""
        src_h, src_w = pixels.shape[:2]

        if fit is FitMode.FILL:
            return self._scale(pixels, width, height)

        if fit is FitMode.INSIDE:
            scale = min(width / src_w, height / src_h)
            return self._scale(pixels, _dimension(src_w * scale), _dimension(src_h * scale))

        if fit is FitMode.OUTSIDE:
            scale = max(width / src_w, height / src_h)
            return self._scale(pixels, _dimension(src_w * scale), _dimension(src_h * scale))

        if fit is FitMode.CONTAIN:
            scale = min(width / src_w, height / src_h)
            scaled = self._scale(pixels, min(width, _dimension(src_w * scale)),
                                 min(height, _dimension(src_h * scale)))
            canvas = np.zeros((height, width) + scaled.shape[2:], dtype=scaled.dtype)
            if canvas.ndim == 3 and canvas.shape[2] == 4:
                canvas[..., 3] = np.iinfo(canvas.dtype).max  # Opaque black
            top = (height - scaled.shape[0]) // 2
            left = (width - scaled.shape[1]) // 2
            canvas[top:top + scaled.shape[0], left:left + scaled.shape[1]] = scaled
            return canvas

        # Cover: fill the box, then crop the overflow keeping the busiest region
        scale = max(width / src_w, height / src_h)
        scaled = self._scale(pixels, max(width, _dimension(src_w * scale)),
                             max(height, _dimension(src_h * scale)))
        gray = self._grayscale(scaled)
        top = _entropy_crop_offset(gray, height, axis=0)
        left = _entropy_crop_offset(gray, width, axis=1)
        return np.ascontiguousarray(scaled[top:top + height, left:left + width])

    def _scale(self, pixels: np.ndarray, width: int, height: int) -> np.ndarray:
        src_h, src_w = pixels.shape[:2]
        if (src_w, src_h) == (width, height):
            return pixels.copy()
        interpolation = cv2.INTER_AREA if width * height < src_w * src_h else cv2.INTER_CUBIC
        return cv2.resize(np.ascontiguousarray(pixels), (width, height), interpolation=interpolation)

    def _grayscale(self, pixels: np.ndarray) -> np.ndarray:
        if pixels.dtype == np.uint16:
            pixels = (pixels // 257).astype(np.uint8)
        if pixels.ndim == 3:
            return cv2.cvtColor(np.ascontiguousarray(pixels[..., :3]), cv2.COLOR_RGB2GRAY)
        return pixels

    def blur(self, pixels: np.ndarray, sigma: float) -> np.ndarray:
        """Gaussian blur with the given sigma"""
        return cv2.GaussianBlur(pixels, (0, 0), sigmaX=sigma)

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    def encode(self, decoded: DecodedImage, width: int, height: int,
               fmt: ImageFormat, fit: FitMode = FitMode.COVER) -> bytes:
        """Resize a copy of the decoded image and encode it as `fmt`"""
        pil_format, options = self._encode_target(decoded, fmt)
        pixels = self.resize(decoded.pixels, width, height, fit)
        data = self.encode_pixels(pixels, pil_format, **options)
        logger.debug(f"Encoded {decoded.path.name} as {fmt.value} {width}x{height}: {len(data)} bytes")
        return data

    def _encode_target(self, decoded: DecodedImage, fmt: ImageFormat) -> Tuple[str, Dict]:
        if fmt is ImageFormat.ORIGINAL:
            pil_format = decoded.source_format
            supported = SUPPORTED_MODES.get(_FORMAT_BY_PIL_NAME.get(pil_format), GENERIC_MODES)
            options: Dict = {}
        else:
            pil_format = PIL_FORMATS[fmt]
            supported = SUPPORTED_MODES[fmt]
            options = ENCODE_POLICY[fmt]

        if decoded.mode not in supported:
            raise UnsupportedFormatError(
                f"Cannot encode {decoded.mode} image {decoded.path.name} as {fmt.value}"
            )
        if not self.can_encode(pil_format):
            raise UnsupportedFormatError(f"No {pil_format} encoder available for {fmt.value}")
        return pil_format, options

    def can_encode(self, pil_format: str) -> bool:
        if pil_format == "AVIF" and not features.check("avif"):
            return False
        return pil_format in Image.SAVE

    def encode_pixels(self, pixels: np.ndarray, pil_format: str, **options) -> bytes:
        """Encode a pixel array with Pillow"""
        image = Image.fromarray(np.ascontiguousarray(pixels))
        if pil_format == "JPEG" and image.mode == "RGBA":
            background = Image.new("RGB", image.size, (0, 0, 0))
            background.paste(image, mask=image.getchannel("A"))
            image = background

        buffer = io.BytesIO()
        try:
            image.save(buffer, format=pil_format, **options)
        except (KeyError, OSError, ValueError) as e:
            raise UnsupportedFormatError(f"Cannot encode {image.mode} image as {pil_format}: {e}") from e
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def preview_pixels(self, decoded: DecodedImage) -> np.ndarray:
        """Independent 8-bit RGB(A) copy for low-fidelity work"""
        pixels = decoded.clone()
        if pixels.dtype != np.uint8:
            low, high = float(pixels.min()), float(pixels.max())
            if high > low:
                pixels = ((pixels.astype(np.float32) - low) / (high - low) * 255).astype(np.uint8)
            else:
                pixels = np.zeros_like(pixels, dtype=np.uint8)
        if pixels.ndim == 2:
            pixels = cv2.cvtColor(pixels, cv2.COLOR_GRAY2RGB)
        return pixels

    def dominant_color(self, pixels: np.ndarray) -> Tuple[int, int, int]:
        """Most populated colour in a 16x16x16 histogram, reported at bin centre"""
        if pixels.ndim == 3 and pixels.shape[2] == 4:
            opaque = pixels[pixels[..., 3] > 0]
            rgb = opaque[:, :3] if len(opaque) else pixels[..., :3].reshape(-1, 3)
        else:
            rgb = pixels[..., :3].reshape(-1, 3)

        bins = (rgb >> 4).astype(np.int32)
        index = (bins[:, 0] << 8) | (bins[:, 1] << 4) | bins[:, 2]
        dominant = int(np.argmax(np.bincount(index, minlength=4096)))
        return (
            ((dominant >> 8) & 0xF) * 16 + 8,
            ((dominant >> 4) & 0xF) * 16 + 8,
            (dominant & 0xF) * 16 + 8,
        )


def _dimension(value: float) -> int:
    return max(1, round_half_up(value))


def _entropy(strip: np.ndarray) -> float:
    hist = np.bincount(strip.ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total == 0:
        return 0.0
    p = hist[hist > 0] / total
    return float(-(p * np.log2(p)).sum())


def _entropy_crop_offset(gray: np.ndarray, target: int, axis: int) -> int:
    """Trim the lower-entropy edge until `target` pixels remain along axis"""
    start, end = 0, gray.shape[axis]
    while end - start > target:
        step = min(end - start - target, max(1, (end - start) // 8))
        head = np.take(gray, np.arange(start, start + step), axis=axis)
        tail = np.take(gray, np.arange(end - step, end), axis=axis)
        if _entropy(head) < _entropy(tail):
            start += step
        else:
            end -= step
    return start

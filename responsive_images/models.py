"""
Data models for the responsive image engine

This module contains data structures used throughout the engine for
representing requests, decoded images, encoded variants and the final
image metadata handed back to the host build system.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl, urlencode

import numpy as np

from .enums import BuildMode, FitMode, ImageFormat, PlaceholderStrategy
from .errors import InvalidParameterError

DEFAULT_FORMATS = (ImageFormat.AVIF, ImageFormat.WEBP, ImageFormat.ORIGINAL)
DEFAULT_BREAKPOINTS = (640, 768, 1024, 1280, 1536)
DEFAULT_CACHE_DIR = ".cache/responsive-images"
DEFAULT_SIZES = "100vw"

PlaceholderValue = Union[None, str, List[str]]


def _parse_enum(enum_cls, value: str, key: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidParameterError(f"Invalid {key}={value!r}; expected one of: {allowed}") from None


def parse_formats(value: Union[str, Sequence[Any]], key: str = "formats") -> Tuple[ImageFormat, ...]:
    """Parse a comma list (or sequence) of format names, keeping order and dropping repeats"""
    items = value.split(",") if isinstance(value, str) else list(value)
    formats: List[ImageFormat] = []
    for item in items:
        if isinstance(item, ImageFormat):
            fmt = item
        elif not str(item).strip():
            continue
        else:
            name = str(item).strip().lower()
            fmt = _parse_enum(ImageFormat, "jpeg" if name == "jpg" else name, key)
        if fmt not in formats:
            formats.append(fmt)
    if not formats:
        raise InvalidParameterError(f"Invalid {key}={value!r}; at least one format is required")
    return tuple(formats)


def _parse_dimension(value: str, key: str) -> int:
    try:
        number = int(value.strip())
    except ValueError:
        raise InvalidParameterError(f"Invalid {key}={value!r}; expected a positive integer") from None
    if number <= 0:
        raise InvalidParameterError(f"Invalid {key}={value!r}; expected a positive integer")
    return number


@dataclass
class EngineConfig:
    """Engine configuration, usually loaded from config.json"""
    formats: Tuple[ImageFormat, ...] = DEFAULT_FORMATS
    breakpoints: Union[Tuple[int, ...], str] = DEFAULT_BREAKPOINTS
    placeholder: PlaceholderStrategy = PlaceholderStrategy.BLUR
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    build_mode: BuildMode = BuildMode.DEVELOPMENT
    assets_dir: str = "assets"
    output_dir: Path = Path("dist")
    max_workers: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Build a config from plain JSON values, validating every option"""
        config = cls()
        if "formats" in data:
            config.formats = parse_formats(data["formats"])
        if "breakpoints" in data:
            breakpoints = data["breakpoints"]
            if breakpoints == "auto":
                config.breakpoints = "auto"
            else:
                try:
                    config.breakpoints = tuple(int(bp) for bp in breakpoints)
                except (TypeError, ValueError):
                    raise InvalidParameterError(f"Invalid breakpoints={breakpoints!r}") from None
        if "placeholder" in data:
            config.placeholder = _parse_enum(PlaceholderStrategy, data["placeholder"], "placeholder")
        if data.get("cache_dir"):
            config.cache_dir = Path(data["cache_dir"])
        if "build_mode" in data:
            config.build_mode = _parse_enum(BuildMode, data["build_mode"], "build_mode")
        if "assets_dir" in data:
            config.assets_dir = (data["assets_dir"] or "").strip("/")
        if data.get("output_dir"):
            config.output_dir = Path(data["output_dir"])
        if data.get("max_workers") is not None:
            config.max_workers = int(data["max_workers"])
        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            "formats": [fmt.value for fmt in self.formats],
            "breakpoints": self.breakpoints if isinstance(self.breakpoints, str) else list(self.breakpoints),
            "placeholder": self.placeholder.value,
            "cache_dir": str(self.cache_dir),
            "build_mode": self.build_mode.value,
            "assets_dir": self.assets_dir,
            "output_dir": str(self.output_dir),
            "max_workers": self.max_workers,
        }


@dataclass(frozen=True)
class RequestParameters:
    """Validated request parameters parsed from an image query string"""
    width: Optional[int] = None
    height: Optional[int] = None
    fit: FitMode = FitMode.COVER
    placeholder: PlaceholderStrategy = PlaceholderStrategy.BLUR
    formats: Tuple[ImageFormat, ...] = DEFAULT_FORMATS
    sizes: Optional[str] = None
    responsive: bool = False
    raw: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def from_query(cls, query: str, config: Optional[EngineConfig] = None) -> "RequestParameters":
        """Parse and validate a query string; unknown keys are kept only for fingerprinting"""
        config = config or EngineConfig()
        pairs = tuple(parse_qsl(query.lstrip("?"), keep_blank_values=True))
        values: Dict[str, str] = {}
        for key, value in pairs:
            # Last occurrence wins
            values[key] = value

        width = _parse_dimension(values["w"], "w") if values.get("w") else None
        height = _parse_dimension(values["h"], "h") if values.get("h") else None
        fit = _parse_enum(FitMode, values["fit"], "fit") if values.get("fit") else FitMode.COVER
        if values.get("placeholder"):
            placeholder = _parse_enum(PlaceholderStrategy, values["placeholder"], "placeholder")
        else:
            placeholder = config.placeholder
        formats = parse_formats(values["formats"]) if values.get("formats") else tuple(config.formats)

        return cls(
            width=width,
            height=height,
            fit=fit,
            placeholder=placeholder,
            formats=formats,
            sizes=values.get("sizes") or None,
            responsive="responsive" in values,
            raw=pairs,
        )

    def canonical_query(self) -> str:
        """Query string of the effective (last-wins) values sorted by key"""
        return urlencode(sorted(dict(self.raw).items()))


@dataclass
class DecodedImage:
    """Decoded source image shared by every variant of a request"""
    path: Path
    pixels: np.ndarray
    mode: str
    source_format: str
    width: int
    height: int

    def __post_init__(self):
        # Variants are built concurrently from this array
        self.pixels.setflags(write=False)

    @property
    def has_alpha(self) -> bool:
        return self.pixels.ndim == 3 and self.pixels.shape[2] == 4

    def clone(self) -> np.ndarray:
        """Independent, writable copy of the pixel data"""
        return self.pixels.copy()


@dataclass(frozen=True)
class Variant:
    """One encoded rendition of the source image"""
    format: ImageFormat
    width: int
    height: int
    url: str


@dataclass(frozen=True)
class ImageSource:
    """srcset group for a single format"""
    format: str
    mime_type: str
    srcset: str
    sizes: str = DEFAULT_SIZES

    def to_dict(self) -> Dict[str, str]:
        return {
            "format": self.format,
            "mimeType": self.mime_type,
            "srcset": self.srcset,
            "sizes": self.sizes,
        }


@dataclass(frozen=True)
class ImageMetadata:
    """Final layout metadata for one image request"""
    src: str
    width: int
    height: int
    aspect_ratio: float
    placeholder: PlaceholderValue = None
    sources: List[ImageSource] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "src": self.src,
            "width": self.width,
            "height": self.height,
            "aspectRatio": self.aspect_ratio,
            "placeholder": self.placeholder,
            "sources": [source.to_dict() for source in self.sources],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, payload: str) -> "ImageMetadata":
        data = json.loads(payload)
        return cls(
            src=data["src"],
            width=data["width"],
            height=data["height"],
            aspect_ratio=data["aspectRatio"],
            placeholder=data.get("placeholder"),
            sources=[
                ImageSource(
                    format=source["format"],
                    mime_type=source["mimeType"],
                    srcset=source["srcset"],
                    sizes=source["sizes"],
                )
                for source in data.get("sources", [])
            ],
        )

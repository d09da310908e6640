"""Shared fixtures for the responsive image engine tests."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, List

import numpy as np
import pytest
from PIL import Image

from responsive_images.codec import CodecAdapter
from responsive_images.enums import FitMode
from responsive_images.pipeline import ResponsiveImagePipeline


def synthetic_pixels(width: int, height: int, channels: int = 3, seed: int = 0) -> np.ndarray:
    """Gradient with a little deterministic noise."""
    rng = np.random.default_rng(seed)
    x = np.linspace(0, 255, width, dtype=np.float32)[None, :]
    y = np.linspace(0, 255, height, dtype=np.float32)[:, None]
    base = np.stack([x + 0 * y, y + 0 * x, (x + y) / 2], axis=-1)
    noise = rng.normal(0, 12, size=(height, width, 3))
    pixels = np.clip(base + noise, 0, 255).astype(np.uint8)
    if channels == 4:
        alpha = np.full((height, width, 1), 255, dtype=np.uint8)
        alpha[: height // 4] = 0
        pixels = np.concatenate([pixels, alpha], axis=-1)
    return pixels


@pytest.fixture
def image_factory(tmp_path: Path) -> Callable[..., Path]:
    """Write a synthetic image and return its path."""

    def _make(name: str = "photo.jpg", width: int = 300, height: int = 150,
              channels: int = 3, seed: int = 0) -> Path:
        path = tmp_path / "images" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(synthetic_pixels(width, height, channels, seed)).save(path)
        return path

    return _make


class RecordingSink:
    """In-memory sink standing in for the host build system."""

    def __init__(self) -> None:
        self.emitted: Dict[str, bytes] = {}
        self.written: Dict[Path, bytes] = {}
        self._lock = threading.Lock()

    def emit(self, name: str, data: bytes) -> str:
        with self._lock:
            self.emitted[name] = data
        return f"/assets/{name}"

    def write_file(self, path: Path, data: bytes) -> None:
        with self._lock:
            self.written[Path(path)] = data


class CountingCodec(CodecAdapter):
    """Codec that records every encode call."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def encode(self, decoded, width, height, fmt, fit=FitMode.COVER):
        with self._lock:
            self.calls.append((fmt, width, height))
        return super().encode(decoded, width, height, fmt, fit)


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def counting_codec() -> CountingCodec:
    return CountingCodec()


@pytest.fixture
def pipeline_factory(tmp_path: Path, recording_sink: RecordingSink,
                     counting_codec: CountingCodec) -> Callable[..., ResponsiveImagePipeline]:
    """Production-mode pipeline with a recording sink and a counting codec."""

    def _make(**overrides) -> ResponsiveImagePipeline:
        config = {
            "formats": ["webp", "original"],
            "breakpoints": [100, 200],
            "placeholder": "none",
            "cache_dir": str(tmp_path / "cache"),
            "build_mode": "production",
            "max_workers": 4,
        }
        sink = overrides.pop("sink", recording_sink)
        codec = overrides.pop("codec", counting_codec)
        config.update(overrides)
        return ResponsiveImagePipeline(config, sink=sink, codec=codec)

    return _make

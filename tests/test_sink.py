"""Tests for committing encoded variants to the host."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from responsive_images.enums import BuildMode
from responsive_images.errors import SinkWriteError
from responsive_images.sink import DirectorySink, OutputStrategy, content_hash, variant_filename


def test_filename_carries_width_and_content_hash() -> None:
    name = variant_filename("/src/lib/photo.jpg", 400, b"pixels", ".webp")

    assert re.fullmatch(r"photo-400w-[0-9a-f]{8}\.webp", name)
    assert name == f"photo-400w-{content_hash(b'pixels')}.webp"


def test_identical_bytes_share_a_filename() -> None:
    assert variant_filename("a.png", 10, b"same", ".png") == variant_filename("a.png", 10, b"same", ".png")
    assert variant_filename("a.png", 10, b"same", ".png") != variant_filename("a.png", 10, b"other", ".png")


def test_production_emits_through_sink(recording_sink) -> None:
    strategy = OutputStrategy(recording_sink, BuildMode.PRODUCTION)

    url = strategy.commit(b"encoded", "images/photo.jpg", 640, ".avif")

    name = url.rsplit("/", 1)[-1]
    assert url == f"/assets/{name}"
    assert recording_sink.emitted == {name: b"encoded"}
    assert recording_sink.written == {}


def test_original_extension_defaults_to_source(recording_sink) -> None:
    url = OutputStrategy(recording_sink, BuildMode.PRODUCTION).commit(b"x", "photo.jpeg", 10)

    assert url.endswith(".jpeg")


def test_directory_sink_writes_assets(tmp_path: Path) -> None:
    sink = DirectorySink(tmp_path / "dist", "static")

    url = sink.emit("photo-10w-abcdef12.webp", b"data")

    assert url == "/static/photo-10w-abcdef12.webp"
    assert (tmp_path / "dist" / "static" / "photo-10w-abcdef12.webp").read_bytes() == b"data"
    assert sink.emitted == {"photo-10w-abcdef12.webp": 4}


def test_directory_sink_without_assets_dir(tmp_path: Path) -> None:
    sink = DirectorySink(tmp_path / "dist", "")

    assert sink.emit("a.png", b"data") == "/a.png"
    assert (tmp_path / "dist" / "a.png").exists()


def test_development_writes_to_cache_and_serves_from_filesystem(tmp_path: Path) -> None:
    sink = DirectorySink(tmp_path / "dist")
    strategy = OutputStrategy(sink, BuildMode.DEVELOPMENT, tmp_path / "cache")

    url = strategy.commit(b"encoded", "photo.png", 100, ".webp")
    # Directory already exists the second time
    again = strategy.commit(b"encoded", "photo.png", 100, ".webp")

    target = (tmp_path / "cache" / "assets").absolute() / url.rsplit("/", 1)[-1]
    assert url == again
    assert url == f"/@fs{target.as_posix()}"
    assert target.read_bytes() == b"encoded"


class FailingSink:
    def emit(self, name: str, data: bytes) -> str:
        raise AssertionError("not used in development")

    def write_file(self, path: Path, data: bytes) -> None:
        raise PermissionError(f"read-only: {path}")


def test_development_write_failure_is_fatal(tmp_path: Path) -> None:
    strategy = OutputStrategy(FailingSink(), BuildMode.DEVELOPMENT, tmp_path / "cache")

    with pytest.raises(SinkWriteError) as excinfo:
        strategy.commit(b"encoded", "photo.png", 100, ".webp")

    assert isinstance(excinfo.value.__cause__, PermissionError)

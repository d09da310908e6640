"""
Output Sink Strategy for the responsive image engine

This module decides how an encoded buffer becomes a public URL: emitted as
a build asset in production, or written to a local cache directory and
served from the filesystem in development.
"""

import hashlib
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from .enums import BuildMode
from .errors import SinkWriteError

logger = logging.getLogger(__name__)

DEV_SERVER_PREFIX = "/@fs"


class AssetSink(Protocol):
    """Host build system capability for publishing encoded bytes"""

    def emit(self, name: str, data: bytes) -> str:
        """Emit a build asset and return its public URL"""
        ...

    def write_file(self, path: Path, data: bytes) -> None:
        """Write bytes to the local filesystem"""
        ...


class DirectorySink:
    """Filesystem-backed sink writing build assets under an output directory"""

    def __init__(self, output_dir: Union[str, Path], assets_dir: str = "assets"):
        self.output_dir = Path(output_dir)
        self.assets_dir = assets_dir.strip("/")
        self.emitted: Dict[str, int] = {}
        self._lock = threading.Lock()

    def public_url(self, name: str) -> str:
        return f"/{self.assets_dir}/{name}" if self.assets_dir else f"/{name}"

    def emit(self, name: str, data: bytes) -> str:
        target = self.output_dir / self.assets_dir / name if self.assets_dir else self.output_dir / name
        self.write_file(target, data)
        with self._lock:
            self.emitted[name] = len(data)
        return self.public_url(name)

    def write_file(self, path: Path, data: bytes) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


def content_hash(data: bytes) -> str:
    """First 8 hex characters of the content hash"""
    return hashlib.md5(data).hexdigest()[:8]


def variant_filename(source_path: Union[str, Path], width: int, data: bytes, extension: str) -> str:
    return f"{Path(source_path).stem}-{width}w-{content_hash(data)}{extension}"


class OutputStrategy:
    """Commit encoded variants according to the build mode"""

    def __init__(self, sink: AssetSink, build_mode: BuildMode = BuildMode.DEVELOPMENT,
                 cache_dir: Union[str, Path] = ".cache/responsive-images"):
        self.sink = sink
        self.build_mode = build_mode
        self.assets_cache_dir = Path(cache_dir) / "assets"

    def commit(self, data: bytes, source_path: Union[str, Path], width: int,
               extension: Optional[str] = None) -> str:
        """Publish `data` and return the URL it is reachable at"""
        extension = extension or Path(source_path).suffix
        filename = variant_filename(source_path, width, data, extension)

        if self.build_mode is BuildMode.PRODUCTION:
            url = self.sink.emit(filename, data)
            logger.debug(f"Emitted asset {filename} -> {url}")
            return url

        target = self.assets_cache_dir.absolute() / filename
        try:
            self.sink.write_file(target, data)
        except OSError as e:
            logger.error(f"Error writing image to cache {target}: {e}")
            raise SinkWriteError(f"Could not write {target}: {e}") from e
        return f"{DEV_SERVER_PREFIX}{target.as_posix()}"

"""
Content-Addressed Cache for the responsive image engine

Two tiers checked in order: a sharded in-process map shared by every
concurrent request, then one JSON file per key on disk. Disk writes are
best-effort; a failure is reported as a CacheWriteWarning.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
import warnings
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import CacheWriteWarning
from .models import DEFAULT_CACHE_DIR, RequestParameters

logger = logging.getLogger(__name__)

CACHE_EXTENSION = ".json"
TEMP_SUFFIX = ".tmp"


def fingerprint(image_path: str, params: RequestParameters) -> str:
    """SHA-256 over the image identity and the canonical query string"""
    payload = f"{image_path}?{params.canonical_query()}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ShardedMemoryStore:
    """In-process map split into independently locked shards"""

    def __init__(self, shards: int = 16):
        self._shards: List[Dict[str, str]] = [{} for _ in range(shards)]
        self._locks = [threading.Lock() for _ in range(shards)]

    def _index(self, key: str) -> int:
        return int(hashlib.blake2b(key.encode("utf-8"), digest_size=2).hexdigest(), 16) % len(self._shards)

    def get(self, key: str) -> Optional[str]:
        index = self._index(key)
        with self._locks[index]:
            return self._shards[index].get(key)

    def set(self, key: str, value: str) -> None:
        index = self._index(key)
        with self._locks[index]:
            self._shards[index][key] = value

    def clear(self) -> None:
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                shard.clear()

    def __len__(self) -> int:
        return sum(len(shard) for shard in self._shards)


class ImageCache:
    """Two-tier cache of serialized image metadata"""

    def __init__(self, cache_dir: Union[str, Path] = DEFAULT_CACHE_DIR):
        self.cache_dir = Path(cache_dir)
        self.memory = ShardedMemoryStore()

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}{CACHE_EXTENSION}"

    def get(self, key: str) -> Optional[str]:
        """Cached value for key, promoting disk hits into memory"""
        value = self.memory.get(key)
        if value is not None:
            return value

        try:
            value = self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read image cache entry {key}: {e}")
            return None

        try:
            json.loads(value)
        except ValueError as e:
            # Truncated or damaged entry; recompute and overwrite it
            logger.warning(f"Ignoring unreadable image cache entry {key}: {e}")
            return None

        self.memory.set(key, value)
        logger.debug(f"Promoted disk cache entry {key}")
        return value

    def set(self, key: str, value: str) -> None:
        self.memory.set(key, value)

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(key, value)
        except OSError as e:
            logger.warning(f"Failed to write image cache {key}: {e}")
            warnings.warn(f"Failed to write image cache {key}: {e}", CacheWriteWarning, stacklevel=2)

    def _write_atomic(self, key: str, value: str) -> None:
        """Write through a temporary file so readers never see a partial entry"""
        fd, temp_path = tempfile.mkstemp(prefix=f"{key}.", suffix=TEMP_SUFFIX, dir=self.cache_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(temp_path, self._path(key))
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def clear(self, persistent: bool = False) -> None:
        """Drop the in-process tier, and the on-disk entries when persistent"""
        self.memory.clear()
        if persistent and self.cache_dir.is_dir():
            for entry in self.cache_dir.glob(f"*{CACHE_EXTENSION}"):
                entry.unlink()
            logger.info(f"Cleared persistent image cache in {self.cache_dir}")

"""
offline_cache.py — Local Cache Store for the offline map snapshot.

One JSON file per key under settings.offline_cache_dir. The map only ever
uses one key (settings.offline_cache_key), holding the OfflineSnapshot.

Writes go to a temp file in the same directory and are moved into place
with os.replace, so a reader sees either the previous snapshot or the new
one, never a half-written file. Snapshots are replaced wholesale; there is
no merge.

Read and write failures are logged and swallowed: a missing or corrupt
cache only means the offline map has nothing to restore.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from surakshamap.models.render import OfflineSnapshot

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalCacheStore:
    """Tiny key → text store on the local filesystem."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("Failed to read cache entry %s: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
            return True
        except OSError as exc:
            logger.error("Failed to write cache entry %s: %s", key, exc)
            return False

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


class OfflineSnapshotStore:
    """The single OfflineSnapshot slot on top of a LocalCacheStore."""

    def __init__(self, cache: LocalCacheStore, key: str) -> None:
        self.cache = cache
        self.key = key

    def save(self, snapshot: OfflineSnapshot) -> bool:
        saved = self.cache.set(self.key, snapshot.model_dump_json())
        if saved:
            logger.info(
                "Offline snapshot saved (%d markers, zoom %d)", len(snapshot.markers), snapshot.zoom
            )
        return saved

    def load(self) -> Optional[OfflineSnapshot]:
        raw = self.cache.get(self.key)
        if raw is None:
            return None
        try:
            return OfflineSnapshot.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable offline snapshot: %s", exc)
            return None

    def clear(self) -> None:
        self.cache.delete(self.key)

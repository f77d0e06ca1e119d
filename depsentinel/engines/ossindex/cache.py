"""On-disk cache of OSS Index component reports."""

from __future__ import annotations

import hashlib
import json
import shutil
import time
from pathlib import Path

import structlog
from pydantic import ValidationError

from depsentinel.core.paths import default_cache_dir
from depsentinel.engines.ossindex.models import Coordinate

log = structlog.get_logger("depsentinel.ossindex")

DEFAULT_TTL = 12 * 60 * 60  # seconds


class ResultCache:
    """One JSON file per package URL, expiring after *ttl* seconds."""

    def __init__(self, directory: Path | None = None, ttl: int = DEFAULT_TTL) -> None:
        self.directory = directory or default_cache_dir()
        self.ttl = ttl

    def _path(self, purl: str) -> Path:
        digest = hashlib.sha256(purl.lower().encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, purl: str) -> Coordinate | None:
        """Return the cached report for *purl*, or None if absent or stale."""
        path = self._path(purl)
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            log.warning("cache.read_failed", path=str(path), error=str(exc))
            return None

        if entry.get("expires_at", 0) < time.time():
            return None
        try:
            return Coordinate.model_validate(entry.get("coordinate"))
        except ValidationError:
            log.warning("cache.corrupt_entry", path=str(path))
            return None

    def put(self, purl: str, coordinate: Coordinate) -> None:
        entry = {
            "expires_at": time.time() + self.ttl,
            "coordinate": coordinate.model_dump(by_alias=True),
        }
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path(purl).write_text(json.dumps(entry), encoding="utf-8")
        except OSError as exc:
            # best effort
            log.warning("cache.write_failed", directory=str(self.directory), error=str(exc))


def remove_cache_directory(directory: Path | None = None) -> None:
    """Delete the cache directory wholesale. A missing directory is fine."""
    target = directory or default_cache_dir()
    if not target.exists():
        log.info("cache.nothing_to_remove", directory=str(target))
        return
    shutil.rmtree(target)
    log.info("cache.removed", directory=str(target))

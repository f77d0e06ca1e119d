"""Load a dep project (Gopkg.lock) from a working directory."""

from __future__ import annotations

import sys
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import structlog

from depsentinel.core.errors import LockFileError
from depsentinel.engines.dependency_scanner.models import Lock, Project
from depsentinel.engines.dependency_scanner.registry import get_parser

log = structlog.get_logger("depsentinel.scanner")

LOCK_NAME = "Gopkg.lock"


def working_dir_for(path: str) -> Path:
    """Directory holding the lock file; the cwd when *path* has no directory."""
    parent = Path(path).parent
    if str(parent) in ("", "."):
        return Path.cwd()
    return parent


def load_project(working_dir: Path) -> Project:
    """Read ``Gopkg.lock`` from *working_dir*.

    A missing lock, or one without projects, yields ``Project.lock is None``.
    An unreadable or malformed lock raises :class:`LockFileError`.
    """
    lock_path = working_dir / LOCK_NAME
    project = Project(root=working_dir)
    if not lock_path.is_file():
        log.info("scanner.lock_missing", path=str(lock_path))
        return project

    try:
        content = lock_path.read_text(encoding="utf-8")
        records = get_parser("gopkg-lock").parse(content)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise LockFileError(f"could not read lock at path {lock_path}", cause=exc) from exc

    if records:
        project.lock = Lock(records=records)
    log.info("scanner.lock_loaded", path=str(lock_path), projects=len(records))
    return project


def check_manifest_exists(path: str) -> bool:
    """True if the manifest at *path* exists as a regular file."""
    exists = Path(path).is_file()
    if not exists:
        log.info("scanner.manifest_missing", path=path)
    return exists

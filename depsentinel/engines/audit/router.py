"""Decide where dependency data comes from and turn it into package URLs."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import structlog

from depsentinel.core.errors import InvalidPathError, InvalidStdinError, LockFileError
from depsentinel.engines.dependency_scanner import (
    check_manifest_exists,
    extract_purls,
    get_parser,
    load_project,
    parser_for_path,
    working_dir_for,
)

if TYPE_CHECKING:
    from depsentinel.core.config import Configuration

log = structlog.get_logger("depsentinel.router")


@dataclass
class RoutedInput:
    """Package URLs ready for the audit, plus those that cannot be looked up."""

    source: str
    purls: list[str] = field(default_factory=list)
    invalid_purls: list[str] = field(default_factory=list)


def check_stdin(stream: TextIO) -> None:
    """Refuse an interactive terminal; only piped or redirected input is read."""
    if stream.isatty():
        log.error("router.stdin_invalid")
        raise InvalidStdinError()
    log.info("router.stdin_valid")


def _from_stdin(stream: TextIO) -> RoutedInput:
    check_stdin(stream)
    records = get_parser("go-list").parse(stream.read())
    log.debug("router.records", source="stdin", count=len(records))
    purls, invalid = extract_purls(records)
    return RoutedInput(source="stdin", purls=purls, invalid_purls=invalid)


def _from_lock(path: str) -> RoutedInput:
    project = load_project(working_dir_for(path))
    if project.lock is None:
        raise LockFileError(
            f"could not continue, no lock data found for {path}",
        )
    purls, invalid = extract_purls(project.lock.records)
    return RoutedInput(source=path, purls=purls, invalid_purls=invalid)


def _from_checksum_manifest(path: str) -> RoutedInput | None:
    if not check_manifest_exists(path):
        return None
    records = get_parser("go-sum").parse(Path(path).read_text(encoding="utf-8", errors="replace"))
    purls, invalid = extract_purls(records)
    return RoutedInput(source=path, purls=purls, invalid_purls=invalid)


def route(config: Configuration, *, stdin: TextIO | None = None) -> RoutedInput | None:
    """Read dependencies from exactly one source.

    Returns None when a named go.sum does not exist: there is nothing to
    audit and the run succeeds. Raises :class:`InvalidStdinError`,
    :class:`LockFileError` or :class:`InvalidPathError` (exit 3).
    """
    if config.use_stdin:
        log.info("router.source", source="stdin")
        return _from_stdin(stdin if stdin is not None else sys.stdin)

    parser = parser_for_path(config.path)
    if parser is None:
        raise InvalidPathError(config.path)

    log.info("router.source", source=parser.detection_method, path=config.path)
    if parser.detection_method == "gopkg-lock":
        return _from_lock(config.path)
    return _from_checksum_manifest(config.path)

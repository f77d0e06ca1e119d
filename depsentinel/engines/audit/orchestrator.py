"""Audit orchestration: lookup, merge, exclude, report, derive the outcome."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from depsentinel.core.errors import LookupFailedError
from depsentinel.engines.audit.formatters import FormatterSelection
from depsentinel.engines.audit.reporter import apply_exclusions, log_results
from depsentinel.engines.ossindex import Coordinate, OssIndexError, audit_packages

if TYPE_CHECKING:
    from depsentinel.core.config import Configuration

log = structlog.get_logger("depsentinel.audit")

# Largest status a POSIX process can report.
MAX_EXIT_CODE = 255

LookupFn = Callable[[list[str], "Configuration"], list[Coordinate]]
ReporterFn = Callable[
    [FormatterSelection, int, Sequence[Coordinate], Sequence[Coordinate], Collection[str]], int
]


@dataclass(frozen=True)
class AuditOutcome:
    """Result of one audit run.

    ``results`` holds the looked-up coordinates in submission order followed
    by the invalid ones in discovery order.
    """

    package_count: int
    results: list[Coordinate] = field(default_factory=list)
    unresolved_count: int = 0

    @property
    def invalid(self) -> list[Coordinate]:
        return [c for c in self.results if c.invalid]

    @property
    def exit_code(self) -> int:
        return min(self.unresolved_count, MAX_EXIT_CODE)


def invalid_coordinates(invalid_purls: Sequence[str]) -> list[Coordinate]:
    """Local stand-ins for purls that were never looked up."""
    return [Coordinate(coordinates=purl, invalid=True) for purl in invalid_purls]


def audit(
    purls: list[str],
    invalid_purls: Sequence[str],
    config: Configuration,
    *,
    lookup: LookupFn | None = None,
    reporter: ReporterFn | None = None,
) -> AuditOutcome:
    """Look up *purls* in one batch and report the findings.

    Invalid purls are never submitted; they are reported as flagged
    coordinates and do not count as audited packages. A lookup failure is
    raised as :class:`LookupFailedError` before anything is reported.
    """
    lookup = lookup or audit_packages
    reporter = reporter or log_results
    package_count = len(purls)
    log.info("audit.lookup_started", packages=package_count, invalid=len(invalid_purls))

    try:
        coordinates = lookup(purls, config)
    except OssIndexError as exc:
        log.error("audit.lookup_failed", error=str(exc))
        raise LookupFailedError(exc) from exc

    invalid = invalid_coordinates(invalid_purls)
    audited = apply_exclusions(coordinates, config.exclusions)

    unresolved = reporter(config.formatter, package_count, audited, invalid, config.exclusions)

    outcome = AuditOutcome(
        package_count=package_count,
        results=audited + invalid,
        unresolved_count=unresolved,
    )
    log.info("audit.finished", unresolved=unresolved, exit_code=outcome.exit_code)
    return outcome

"""Render audit results and count what survives the exclusion list."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence

import click
import structlog

from depsentinel.engines.audit.formatters import AuditReport, FormatterSelection
from depsentinel.engines.ossindex.models import Coordinate

log = structlog.get_logger("depsentinel.audit")


def apply_exclusions(
    coordinates: Sequence[Coordinate], exclusions: Collection[str]
) -> list[Coordinate]:
    """Mark excluded vulnerabilities; every coordinate is kept."""
    if not exclusions:
        return list(coordinates)
    return [c.with_exclusions(exclusions) for c in coordinates]


def count_unresolved(coordinates: Sequence[Coordinate], exclusions: Collection[str]) -> int:
    """Number of vulnerability records whose id/CVE is not excluded."""
    return sum(len(c.unresolved) for c in apply_exclusions(coordinates, exclusions))


def log_results(
    selection: FormatterSelection,
    package_count: int,
    coordinates: Sequence[Coordinate],
    invalid_coordinates: Sequence[Coordinate],
    exclusions: Collection[str],
    *,
    echo: Callable[[str], None] = click.echo,
) -> int:
    """Write the report to stdout; return the unresolved vulnerability count."""
    report = AuditReport(
        package_count=package_count,
        coordinates=apply_exclusions(coordinates, exclusions),
        invalid=list(invalid_coordinates),
        exclusions=frozenset(exclusions),
    )
    echo(selection.formatter.format(report))

    log.info(
        "audit.reported",
        formatter=selection.name,
        audited=package_count,
        vulnerable=len(report.vulnerable),
        unresolved=report.unresolved_count,
        excluded=report.excluded_count,
        invalid=len(report.invalid),
    )
    return report.unresolved_count

"""Normalize dependency records into package URLs."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from depsentinel.engines.dependency_scanner.models import DependencyRecord

log = structlog.get_logger("depsentinel.scanner")


def extract_purls(records: Iterable[DependencyRecord]) -> tuple[list[str], list[str]]:
    """Split *records* into (purls, invalid_purls).

    Duplicates on (name, version) are dropped, keeping first-seen order.
    Records that failed version validation are returned separately and are
    never submitted for lookup.
    """
    seen: set[tuple[str, str | None]] = set()
    purls: list[str] = []
    invalid: list[str] = []
    for record in records:
        key = (record.name, record.version)
        if key in seen:
            continue
        seen.add(key)
        if record.valid:
            purls.append(record.purl)
        else:
            invalid.append(record.purl)
    log.debug("scanner.purls_extracted", valid=len(purls), invalid=len(invalid))
    return purls, invalid

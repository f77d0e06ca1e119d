"""Data models for the dependency scanner engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

# Go module versions: v1.2.3, pre-release / build suffixes, pseudo-versions
# (v0.0.0-20190308221718-c2843e01d9a2) and +incompatible.
_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)

GOLANG = "golang"


def is_valid_version(version: str | None) -> bool:
    """True if *version* is a semantic version a package URL can carry."""
    return bool(version) and _SEMVER_RE.match(version) is not None


@dataclass(frozen=True)
class DependencyRecord:
    """A single dependency read from a manifest."""

    name: str
    version: str | None
    ecosystem: str = GOLANG
    valid: bool = True

    @property
    def purl(self) -> str:
        """Package URL (``pkg:golang/<name>@<version>``) for this record."""
        if self.version:
            return f"pkg:{self.ecosystem}/{self.name}@{self.version}"
        return f"pkg:{self.ecosystem}/{self.name}"

    @classmethod
    def from_coordinate(
        cls, name: str, version: str | None, ecosystem: str = GOLANG
    ) -> DependencyRecord:
        return cls(
            name=name,
            version=version,
            ecosystem=ecosystem,
            valid=is_valid_version(version),
        )


@dataclass
class Lock:
    """Parsed content of a Gopkg.lock file."""

    records: list[DependencyRecord] = field(default_factory=list)


@dataclass
class Project:
    """A dep project rooted at *root*; ``lock`` is None without lock data."""

    root: Path
    lock: Lock | None = None

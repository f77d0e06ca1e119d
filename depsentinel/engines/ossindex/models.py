"""OSS Index component report models."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _ReportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # OSS Index sends null for unknown CVSS data, CVE ids and descriptions
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class Vulnerability(_ReportModel):
    """A single vulnerability attached to a component."""

    id: str = ""
    title: str = ""
    description: str = ""
    cvss_score: float = Field(default=0.0, alias="cvssScore")
    cvss_vector: str = Field(default="", alias="cvssVector")
    cve: str = ""
    cwe: str = ""
    reference: str = ""
    excluded: bool = False

    def matches(self, exclusions: Collection[str]) -> bool:
        """True if either the OSS Index id or the CVE is in *exclusions*."""
        return any(key and key in exclusions for key in (self.id, self.cve))


class Coordinate(_ReportModel):
    """Audit outcome for one package URL.

    ``invalid`` coordinates were never looked up (no semantic version) and
    carry no vulnerability data.
    """

    coordinates: str
    reference: str = ""
    description: str = ""
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    invalid: bool = False

    @property
    def unresolved(self) -> list[Vulnerability]:
        return [v for v in self.vulnerabilities if not v.excluded]

    @property
    def excluded(self) -> list[Vulnerability]:
        return [v for v in self.vulnerabilities if v.excluded]

    def is_vulnerable(self) -> bool:
        return bool(self.unresolved)

    def with_exclusions(self, exclusions: Collection[str]) -> Coordinate:
        """Return a copy whose matching vulnerabilities are marked excluded."""
        marked = [
            v.model_copy(update={"excluded": v.excluded or v.matches(exclusions)})
            for v in self.vulnerabilities
        ]
        return self.model_copy(update={"vulnerabilities": marked})

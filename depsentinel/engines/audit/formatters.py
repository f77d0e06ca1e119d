"""Report formatters and the registry the configuration resolves them from."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import click

from depsentinel.buildversion import BUILD_VERSION
from depsentinel.engines.ossindex.models import Coordinate, Vulnerability

DEFAULT_FORMAT = "text"


@dataclass(frozen=True)
class AuditReport:
    """Everything a formatter needs; exclusions are already applied."""

    package_count: int
    coordinates: list[Coordinate]
    invalid: list[Coordinate]
    exclusions: frozenset[str]

    @property
    def vulnerable(self) -> list[Coordinate]:
        return [c for c in self.coordinates if c.is_vulnerable()]

    @property
    def unresolved_count(self) -> int:
        return sum(len(c.unresolved) for c in self.coordinates)

    @property
    def excluded_count(self) -> int:
        return sum(len(c.excluded) for c in self.coordinates)


class Formatter(Protocol):
    def format(self, report: AuditReport) -> str: ...


# ── severity ─────────────────────────────────────────────────────────────


def severity(score: float) -> str:
    if score >= 9:
        return "Critical"
    if score >= 7:
        return "High"
    if score >= 4:
        return "Medium"
    return "Low"


_SEVERITY_COLORS = {
    "Critical": "red",
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
}


# ── text ─────────────────────────────────────────────────────────────────


class TextFormatter:
    """Human readable report, one block per package."""

    def __init__(self, quiet: bool = False, no_color: bool = False) -> None:
        self.quiet = quiet
        self.no_color = no_color

    def _style(self, text: str, **styles: object) -> str:
        if self.no_color:
            return text
        return click.style(text, **styles)  # type: ignore[arg-type]

    def _vulnerability(self, vuln: Vulnerability) -> list[str]:
        level = severity(vuln.cvss_score)
        color = _SEVERITY_COLORS[level]
        lines = [
            "",
            self._style(f"  {level} Threat", fg=color, bold=True),
            self._style(f"  {vuln.title}", fg=color),
        ]
        if vuln.description:
            lines.append(f"  {vuln.description}")
        lines.append(f"  ID: {vuln.id}")
        if vuln.cve:
            lines.append(f"  CVE: {vuln.cve}")
        lines.append(f"  CVSS Score: {vuln.cvss_score}")
        if vuln.cvss_vector:
            lines.append(f"  CVSS Vector: {vuln.cvss_vector}")
        if vuln.reference:
            lines.append(f"  Link: {vuln.reference}")
        return lines

    def format(self, report: AuditReport) -> str:
        lines: list[str] = []
        total = len(report.coordinates)

        for idx, coordinate in enumerate(report.coordinates, start=1):
            prefix = f"[{idx}/{total}]"
            unresolved = coordinate.unresolved
            if unresolved:
                lines.append(
                    self._style(
                        f"{prefix}\t{coordinate.coordinates}\t[Vulnerable]", fg="red", bold=True
                    )
                    + f"\t{len(unresolved)} known vulnerabilities affecting installed version"
                )
                for vuln in sorted(unresolved, key=lambda v: v.cvss_score, reverse=True):
                    lines.extend(self._vulnerability(vuln))
                lines.append("")
            elif not self.quiet:
                lines.append(
                    self._style(f"{prefix}\t{coordinate.coordinates}", fg="green")
                    + "\tNo known vulnerabilities against package/version"
                )

        if report.invalid and not self.quiet:
            lines.append("")
            lines.append("!!!!! WARNING !!!!!")
            lines.append(
                "Scanning cannot be completed on the following package(s)"
                " since they do not use semver."
            )
            for idx, coordinate in enumerate(report.invalid, start=1):
                lines.append(f"[{idx}/{len(report.invalid)}]\t{coordinate.coordinates}")

        lines.append("")
        lines.append(f"Audited dependencies: {report.package_count}")
        lines.append(f"Vulnerable packages: {len(report.vulnerable)}")
        lines.append(f"Unresolved vulnerabilities: {report.unresolved_count}")
        if report.excluded_count:
            lines.append(f"Excluded vulnerabilities: {report.excluded_count}")
        if report.invalid:
            lines.append(f"Invalid packages: {len(report.invalid)}")
        return "\n".join(lines)


# ── csv ──────────────────────────────────────────────────────────────────


class CsvFormatter:
    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def format(self, report: AuditReport) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")

        writer.writerow(["Summary"])
        writer.writerow(["Audited Count", "Vulnerable Count", "Excluded Count", "Build Version"])
        writer.writerow(
            [report.package_count, len(report.vulnerable), report.excluded_count, BUILD_VERSION]
        )

        if report.invalid and not self.quiet:
            writer.writerow([])
            writer.writerow(["Invalid Package(s)"])
            writer.writerow(["Count", "Package", "Reason"])
            for idx, coordinate in enumerate(report.invalid, start=1):
                writer.writerow(
                    [
                        f"[{idx}/{len(report.invalid)}]",
                        coordinate.coordinates,
                        "Does not use SemVer",
                    ]
                )

        writer.writerow([])
        writer.writerow(["Audited Package(s)"])
        writer.writerow(
            ["Count", "Package", "Is Vulnerable", "Num Vulnerabilities", "Vulnerabilities"]
        )
        total = len(report.coordinates)
        for idx, coordinate in enumerate(report.coordinates, start=1):
            unresolved = coordinate.unresolved
            if self.quiet and not unresolved:
                continue
            writer.writerow(
                [
                    f"[{idx}/{total}]",
                    coordinate.coordinates,
                    str(bool(unresolved)).lower(),
                    len(unresolved),
                    ";".join(v.id for v in unresolved),
                ]
            )
        return buf.getvalue().rstrip("\n")


# ── json ─────────────────────────────────────────────────────────────────


class JsonFormatter:
    def __init__(self, pretty: bool = False) -> None:
        self.pretty = pretty

    def format(self, report: AuditReport) -> str:
        payload = {
            "audited": [c.model_dump(by_alias=True) for c in report.coordinates],
            "vulnerable": [c.model_dump(by_alias=True) for c in report.vulnerable],
            "invalid": [c.model_dump(by_alias=True) for c in report.invalid],
            "exclusions": sorted(report.exclusions),
            "num_audited": report.package_count,
            "num_vulnerable": len(report.vulnerable),
            "num_unresolved": report.unresolved_count,
            "version": BUILD_VERSION,
        }
        if self.pretty:
            return json.dumps(payload, indent=2)
        return json.dumps(payload)


# ── registry ─────────────────────────────────────────────────────────────

FormatterFactory = Callable[[bool, bool], Formatter]  # (quiet, no_color)


@dataclass(frozen=True)
class FormatterSelection:
    """The formatter chosen for a run.

    ``supports_banner`` says whether the decorative header belongs in front
    of this formatter's output.
    """

    name: str
    formatter: Formatter
    supports_banner: bool = False


class FormatterRegistry:
    """Explicit name -> formatter factory mapping."""

    def __init__(self) -> None:
        self._factories: dict[str, tuple[FormatterFactory, bool]] = {}

    def register(
        self, name: str, factory: FormatterFactory, *, supports_banner: bool = False
    ) -> None:
        self._factories[name] = (factory, supports_banner)

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def resolve(self, name: str, *, quiet: bool, no_color: bool) -> FormatterSelection | None:
        """Build the formatter registered as *name*, or None if unknown."""
        entry = self._factories.get(name)
        if entry is None:
            return None
        factory, supports_banner = entry
        return FormatterSelection(
            name=name, formatter=factory(quiet, no_color), supports_banner=supports_banner
        )


def default_registry() -> FormatterRegistry:
    registry = FormatterRegistry()
    registry.register("json", lambda quiet, no_color: JsonFormatter())
    registry.register("json-pretty", lambda quiet, no_color: JsonFormatter(pretty=True))
    registry.register(
        "text",
        lambda quiet, no_color: TextFormatter(quiet=quiet, no_color=no_color),
        supports_banner=True,
    )
    registry.register("csv", lambda quiet, no_color: CsvFormatter(quiet=quiet))
    return registry

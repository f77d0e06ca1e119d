"""Run configuration, assembled once from flags, files and environment."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import click
import structlog
import yaml

from depsentinel.core.errors import ExclusionFileError, UsageError
from depsentinel.core.paths import default_config_path
from depsentinel.engines.audit.formatters import (
    DEFAULT_FORMAT,
    FormatterRegistry,
    FormatterSelection,
    default_registry,
)

log = structlog.get_logger("depsentinel.config")

DEFAULT_EXCLUDE_FILE = "./.depsentinel-ignore"

_UNTIL_PREFIX = "until="


@dataclass(frozen=True)
class Configuration:
    """Immutable settings for one run.

    Exactly one of ``path`` / ``use_stdin`` is active.
    """

    formatter: FormatterSelection
    path: str = ""
    use_stdin: bool = False
    quiet: bool = False
    no_color: bool = False
    log_level: int = 0
    username: str | None = None
    token: str | None = None
    exclusions: frozenset[str] = field(default_factory=frozenset)
    help: bool = False
    version: bool = False
    clean_cache: bool = False


# ── persisted config ─────────────────────────────────────────────────────


def load_config_file(path: Path) -> dict[str, Any]:
    """Read credentials from the OSS Index config file.

    The file is YAML shared with other OSS Index clients, which write
    ``Username`` / ``Token``; lower-case keys are accepted too.
    Raises OSError / yaml.YAMLError / ValueError; callers decide whether
    that is fatal.
    """
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping in {path}, got {type(data).__name__}")
    return {
        "username": data.get("Username") or data.get("username"),
        "token": data.get("Token") or data.get("token"),
    }


def _load_persisted(path: Path) -> dict[str, Any]:
    if not path.is_file():
        log.info("config.file_missing", path=str(path))
        return {}
    try:
        values = load_config_file(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError, ValueError) as exc:
        log.warning("config.file_unreadable", path=str(path), error=str(exc))
        return {}
    log.info("config.file_loaded", path=str(path))
    return values


# ── exclusion list ───────────────────────────────────────────────────────


def parse_exclusion_list(values: Iterable[str]) -> set[str]:
    """Split comma separated ids (``-e CVE-1,CVE-2 -e CVE-3``)."""
    ids: set[str] = set()
    for value in values:
        ids.update(part.strip() for part in value.split(",") if part.strip())
    return ids


def parse_exclusion_file(content: str, *, today: date | None = None) -> set[str]:
    """Parse newline separated ids.

    Each line is ``<id> [until=YYYY-MM-DD] [# comment]``. Entries past their
    ``until`` date are dropped. Anything else on a line is an error.
    """
    today = today or date.today()
    ids: set[str] = set()
    for lineno, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        vuln_id, *rest = line.split()
        expires: date | None = None
        for token in rest:
            if not token.startswith(_UNTIL_PREFIX) or expires is not None:
                raise ExclusionFileError(f"line {lineno}: unexpected {token!r}")
            try:
                expires = date.fromisoformat(token[len(_UNTIL_PREFIX) :])
            except ValueError as exc:
                raise ExclusionFileError(f"line {lineno}: bad until date", cause=exc) from exc
        if expires is not None and expires < today:
            log.info("config.exclusion_expired", id=vuln_id, until=expires.isoformat())
            continue
        ids.add(vuln_id)
    return ids


def load_exclusions(path: str | Path) -> set[str]:
    """Load the exclusion file; a missing file is an empty set."""
    path = Path(path)
    if not path.exists():
        log.debug("config.exclusion_file_missing", path=str(path))
        return set()
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ExclusionFileError(f"could not read exclusion file {path}", cause=exc) from exc
    try:
        return parse_exclusion_file(content)
    except ExclusionFileError as exc:
        raise ExclusionFileError(f"malformed exclusion file {path}", cause=exc) from exc


# ── assembly ─────────────────────────────────────────────────────────────


def _format_warning(name: str) -> str:
    bar = "!" * 100
    message = f"!!! Output format of {name.strip()} is not valid. Defaulting to text output"
    return f"{bar}\n{message}\n{bar}"


def resolve_formatter(
    name: str,
    registry: FormatterRegistry,
    *,
    quiet: bool,
    no_color: bool,
    echo: Callable[[str], None] = click.echo,
) -> FormatterSelection:
    """Look *name* up in *registry*, falling back to text with a warning."""
    selection = registry.resolve(name, quiet=quiet, no_color=no_color)
    if selection is not None:
        return selection
    log.warning("config.unknown_output_format", output=name, fallback=DEFAULT_FORMAT)
    echo(_format_warning(name))
    fallback = registry.resolve(DEFAULT_FORMAT, quiet=quiet, no_color=no_color)
    if fallback is None:
        raise UsageError(f"no {DEFAULT_FORMAT!r} formatter registered")
    return fallback


def manifest_path_from_args(args: Iterable[str]) -> str:
    """Return the single manifest path, or "" when reading stdin."""
    args = list(args)
    if len(args) > 1:
        raise UsageError(f"wrong number of manifest paths: {args}")
    return args[0] if args else ""


def assemble_config(
    args: Iterable[str] = (),
    *,
    output: str = DEFAULT_FORMAT,
    exclude_vulnerability: Iterable[str] = (),
    exclude_file: str | Path = DEFAULT_EXCLUDE_FILE,
    username: str | None = None,
    token: str | None = None,
    quiet: bool = False,
    no_color: bool = False,
    verbosity: int = 0,
    show_help: bool = False,
    show_version: bool = False,
    clean_cache: bool = False,
    config_path: Path | None = None,
    registry: FormatterRegistry | None = None,
    env: Mapping[str, str] | None = None,
    echo: Callable[[str], None] = click.echo,
) -> Configuration:
    """Build the run's :class:`Configuration`.

    Credentials resolve flag > environment (``OSSI_USERNAME``/``OSSI_TOKEN``)
    > config file. Raises :class:`UsageError` for more than one positional
    argument and :class:`ExclusionFileError` for an unreadable exclusion
    file; a bad config file only logs.
    """
    env = os.environ if env is None else env
    persisted = _load_persisted(config_path or default_config_path())

    path = manifest_path_from_args(args)

    formatter = resolve_formatter(
        output,
        registry or default_registry(),
        quiet=quiet,
        no_color=no_color,
        echo=echo,
    )

    exclusions = load_exclusions(exclude_file)
    exclusions |= parse_exclusion_list(exclude_vulnerability)

    return Configuration(
        formatter=formatter,
        path=path,
        use_stdin=not path,
        quiet=quiet,
        no_color=no_color,
        log_level=verbosity,
        username=username or env.get("OSSI_USERNAME") or persisted.get("username"),
        token=token or env.get("OSSI_TOKEN") or persisted.get("token"),
        exclusions=frozenset(exclusions),
        help=show_help,
        version=show_version,
        clean_cache=clean_cache,
    )

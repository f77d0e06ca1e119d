"""CLI entry point: depsentinel.

Usage:
    go list -m all | depsentinel [options]
    depsentinel [options] /path/to/go.sum
    depsentinel [options] /path/to/Gopkg.lock
"""

from __future__ import annotations

import enum
import sys
from collections.abc import Callable
from typing import TextIO

import click
import structlog

from depsentinel.buildversion import BUILD_COMMIT, BUILD_TIME, BUILD_VERSION
from depsentinel.core.config import DEFAULT_EXCLUDE_FILE, Configuration, assemble_config
from depsentinel.core.errors import CacheCleanError, CleanExit, ErrorExit
from depsentinel.core.logging import setup_logging
from depsentinel.engines.audit.formatters import DEFAULT_FORMAT, default_registry
from depsentinel.engines.audit.orchestrator import audit
from depsentinel.engines.audit.router import route
from depsentinel.engines.ossindex import remove_cache_directory

log = structlog.get_logger("depsentinel.cli")

_EPILOG = """\b
Examples:
  go list -m all | depsentinel
  go list -m all | depsentinel -o json-pretty -e CVE-2020-1234
  depsentinel ./go.sum
  depsentinel ./Gopkg.lock
"""


class Action(enum.Enum):
    HELP = "help"
    VERSION = "version"
    CLEAN_CACHE = "clean-cache"
    AUDIT = "audit"


# Checked in order; the first flag that is set wins.
_DECISIONS: tuple[tuple[Action, Callable[[Configuration], bool]], ...] = (
    (Action.HELP, lambda c: c.help),
    (Action.VERSION, lambda c: c.version),
    (Action.CLEAN_CACHE, lambda c: c.clean_cache),
)


def select_action(config: Configuration) -> Action:
    for action, is_set in _DECISIONS:
        if is_set(config):
            return action
    return Action.AUDIT


def print_header(enabled: bool) -> None:
    if not enabled:
        return
    bar = "=" * 60
    click.echo(bar)
    click.echo("  depsentinel :: Go dependency audit powered by OSS Index")
    click.echo(bar)
    click.echo(f"depsentinel version: {BUILD_VERSION}")


def print_version() -> None:
    log.info(
        "cli.version",
        version=BUILD_VERSION,
        build_time=BUILD_TIME,
        build_commit=BUILD_COMMIT,
    )
    click.echo(BUILD_VERSION)
    click.echo(f"build time: {BUILD_TIME}")
    click.echo(f"build commit: {BUILD_COMMIT}")


def clean_cache() -> None:
    log.info("cli.clean_cache")
    try:
        remove_cache_directory()
    except OSError as exc:
        log.error("cli.clean_cache_failed", error=str(exc))
        raise CacheCleanError(exc) from exc
    click.echo("Cache cleaned")


def run(config: Configuration, *, usage: str, stdin: TextIO | None = None) -> int:
    """Execute the selected action and return the process exit code."""
    action = select_action(config)
    log.info("cli.action", action=action.value)

    if action is Action.HELP:
        click.echo(usage)
        return 0
    if action is Action.VERSION:
        print_version()
        raise CleanExit()
    if action is Action.CLEAN_CACHE:
        clean_cache()
        return 0

    routed = route(config, stdin=stdin)
    if routed is None:
        log.info("cli.nothing_to_audit", path=config.path)
        return 0

    print_header(config.formatter.supports_banner and not config.quiet)

    outcome = audit(routed.purls, routed.invalid_purls, config)
    return outcome.exit_code


def _report_error(ctx: click.Context, exc: ErrorExit) -> None:
    if exc.exit_code == 0:
        return
    click.echo(f"Error: {exc}", err=True)
    if exc.print_help:
        click.echo(ctx.get_help(), err=True)


@click.command(
    context_settings={"help_option_names": []},
    epilog=_EPILOG,
)
@click.argument("manifest_paths", nargs=-1)
@click.option("-v", "verbosity", count=True, help="Set log level, multiple v's is more verbose")
@click.option(
    "-q", "--quiet", is_flag=True,
    help="Indicate output should contain only packages with vulnerabilities",
)
@click.option("--version", "show_version", is_flag=True, help="Prints current depsentinel version")
@click.option("-n", "--no-color", is_flag=True, help="Indicate output should not be colorized")
@click.option("-c", "--clean-cache", "clean", is_flag=True, help="Deletes local cache directory")
@click.option(
    "-e", "--exclude-vulnerability", multiple=True,
    help="Comma separated list of CVEs or OSS Index ids to exclude",
)
@click.option("-u", "--user", "username", default=None, help="OSS Index username for requests")
@click.option("-t", "--token", default=None, help="OSS Index API token for requests")
@click.option(
    "-x", "--exclude-vulnerability-file", "exclude_file",
    default=DEFAULT_EXCLUDE_FILE, show_default=True,
    help="Path to a file containing newline separated CVEs to be excluded",
)
@click.option(
    "-o", "--output", default=DEFAULT_FORMAT, show_default=True,
    help=f"Styling for output format {default_registry().names()}",
)
@click.option("-h", "--help", "show_help", is_flag=True, help="Show this message and exit")
@click.pass_context
def main(
    ctx: click.Context,
    manifest_paths: tuple[str, ...],
    verbosity: int,
    quiet: bool,
    show_version: bool,
    no_color: bool,
    clean: bool,
    exclude_vulnerability: tuple[str, ...],
    username: str | None,
    token: str | None,
    exclude_file: str,
    output: str,
    show_help: bool,
) -> None:
    """Check for vulnerabilities in your Golang dependencies, powered by Sonatype OSS Index."""
    setup_logging(verbosity, no_color=no_color)
    try:
        config = assemble_config(
            manifest_paths,
            output=output,
            exclude_vulnerability=exclude_vulnerability,
            exclude_file=exclude_file,
            username=username,
            token=token,
            quiet=quiet,
            no_color=no_color,
            verbosity=verbosity,
            show_help=show_help,
            show_version=show_version,
            clean_cache=clean,
        )
        code = run(config, usage=ctx.get_help(), stdin=sys.stdin)
    except ErrorExit as exc:
        _report_error(ctx, exc)
        ctx.exit(exc.exit_code)
    ctx.exit(code)

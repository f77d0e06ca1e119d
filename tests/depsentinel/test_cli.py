"""Tests for the depsentinel CLI — OSS Index mocked, no network."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from depsentinel.cli import Action, main, select_action
from depsentinel.engines.ossindex import Coordinate, OssIndexError, Vulnerability

_LOOKUP = "depsentinel.engines.audit.orchestrator.audit_packages"

_GO_LIST = "github.com/me/project\ngithub.com/pkg/errors v0.8.1\ngolang.org/x/text v0.3.0\n"


def _lookup_with(vulns: dict[str, list[str]] | None = None):
    vulns = vulns or {}

    def _lookup(purls, config):
        return [
            Coordinate(
                coordinates=p, vulnerabilities=[Vulnerability(id=v) for v in vulns.get(p, [])]
            )
            for p in purls
        ]

    return _lookup


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


# ── decision list ────────────────────────────────────────────────────────


class TestSelectAction:
    def test_default_is_audit(self, make_config):
        assert select_action(make_config()) is Action.AUDIT

    def test_priority_order(self, make_config):
        assert select_action(make_config(help=True, version=True, clean_cache=True)) is Action.HELP
        assert select_action(make_config(version=True, clean_cache=True)) is Action.VERSION
        assert select_action(make_config(clean_cache=True)) is Action.CLEAN_CACHE


# ── usage errors ─────────────────────────────────────────────────────────


class TestUsage:
    def test_two_paths(self, runner):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["go.sum", "Gopkg.lock"])
        assert result.exit_code == 1
        assert "wrong number of manifest paths" in result.output
        assert "go.sum" in result.output and "Gopkg.lock" in result.output
        assert "Usage:" in result.output
        lookup.assert_not_called()

    def test_unroutable_path_exits_3(self, runner):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["package-lock.json"])
        assert result.exit_code == 3
        assert "invalid path arg: package-lock.json" in result.output
        assert "Usage:" in result.output
        assert "depsentinel version:" not in result.output
        lookup.assert_not_called()

    def test_malformed_exclusion_file(self, runner, workdir):
        (workdir / ".depsentinel-ignore").write_text("CVE-1 nonsense\n")
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, [], input=_GO_LIST)
        assert result.exit_code == 1
        assert "malformed exclusion file" in result.output
        lookup.assert_not_called()


# ── short-circuits ───────────────────────────────────────────────────────


class TestShortCircuits:
    def test_help(self, runner):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Usage:" in result.output
        assert "--exclude-vulnerability-file" in result.output
        lookup.assert_not_called()

    def test_help_beats_version(self, runner):
        result = runner.invoke(main, ["-h", "--version"])
        assert result.exit_code == 0
        assert "Usage:" in result.output
        assert "build commit" not in result.output

    def test_version(self, runner):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["--version"], input=_GO_LIST)
        assert result.exit_code == 0
        assert "build time:" in result.output
        assert "build commit:" in result.output
        lookup.assert_not_called()

    def test_clean_cache(self, runner):
        with patch("depsentinel.cli.remove_cache_directory") as remove, patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["--clean-cache"], input=_GO_LIST)
        assert result.exit_code == 0
        remove.assert_called_once_with()
        lookup.assert_not_called()

    def test_clean_cache_removes_directory(self, runner, isolated_home):
        cache_dir = isolated_home / ".ossindex" / "golang"
        cache_dir.mkdir(parents=True)
        (cache_dir / "entry.json").write_text("{}")
        result = runner.invoke(main, ["-c"])
        assert result.exit_code == 0
        assert not cache_dir.exists()

    def test_clean_cache_failure(self, runner):
        with patch(
            "depsentinel.cli.remove_cache_directory", side_effect=PermissionError("denied")
        ):
            result = runner.invoke(main, ["--clean-cache"])
        assert result.exit_code == 1
        assert "cleaning cache" in result.output
        assert "denied" in result.output


# ── audits ───────────────────────────────────────────────────────────────


class TestAuditRun:
    def test_empty_stdin(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()) as lookup:
            result = runner.invoke(main, ["-o", "json"], input="")
        assert result.exit_code == 0
        lookup.assert_called_once()
        assert lookup.call_args.args[0] == []
        assert json.loads(result.output)["num_audited"] == 0

    @pytest.mark.filterwarnings("error::DeprecationWarning:depsentinel.cli")
    def test_clean_packages_exit_zero(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()):
            result = runner.invoke(main, ["-o", "json"], input=_GO_LIST)
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["num_audited"] == 2
        assert payload["num_vulnerable"] == 0

    def test_findings_set_exit_code(self, runner):
        vulns = {"pkg:golang/github.com/pkg/errors@v0.8.1": ["CVE-1", "CVE-2"]}
        with patch(_LOOKUP, side_effect=_lookup_with(vulns)):
            result = runner.invoke(main, ["-o", "json"], input=_GO_LIST)
        assert result.exit_code == 2

    def test_exit_code_clamped(self, runner):
        vulns = {"pkg:golang/github.com/pkg/errors@v0.8.1": [f"CVE-{i}" for i in range(300)]}
        with patch(_LOOKUP, side_effect=_lookup_with(vulns)):
            result = runner.invoke(main, ["-o", "csv"], input=_GO_LIST)
        assert result.exit_code == 255

    def test_excluded_vulnerability(self, runner):
        vulns = {"pkg:golang/github.com/pkg/errors@v0.8.1": ["CVE-X"]}
        with patch(_LOOKUP, side_effect=_lookup_with(vulns)):
            result = runner.invoke(main, ["-o", "json", "-e", "CVE-X"], input=_GO_LIST)
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert len(payload["audited"]) == 2
        assert payload["vulnerable"] == []

    def test_exclusion_file(self, runner, workdir):
        (workdir / "ignore.txt").write_text("CVE-X\n")
        vulns = {"pkg:golang/github.com/pkg/errors@v0.8.1": ["CVE-X"]}
        with patch(_LOOKUP, side_effect=_lookup_with(vulns)):
            result = runner.invoke(main, ["-o", "json", "-x", "ignore.txt"], input=_GO_LIST)
        assert result.exit_code == 0

    def test_credentials_reach_lookup(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()) as lookup:
            runner.invoke(main, ["-o", "json", "-u", "me", "-t", "secret"], input=_GO_LIST)
        config = lookup.call_args.args[1]
        assert (config.username, config.token) == ("me", "secret")

    def test_go_sum_path(self, runner, workdir):
        (workdir / "go.sum").write_text(
            "github.com/pkg/errors v0.8.1 h1:abc=\ngithub.com/pkg/errors v0.8.1/go.mod h1:def=\n"
        )
        with patch(_LOOKUP, side_effect=_lookup_with()) as lookup:
            result = runner.invoke(main, ["-o", "json", "go.sum"])
        assert result.exit_code == 0
        assert lookup.call_args.args[0] == ["pkg:golang/github.com/pkg/errors@v0.8.1"]

    def test_missing_go_sum_succeeds_silently(self, runner, workdir):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["-o", "json", str(workdir / "go.sum")])
        assert result.exit_code == 0
        assert result.output == ""
        lookup.assert_not_called()

    def test_missing_go_sum_prints_no_banner(self, runner, workdir):
        with patch(_LOOKUP) as lookup:
            result = runner.invoke(main, ["-n", str(workdir / "go.sum")])
        assert result.exit_code == 0
        assert "depsentinel version:" not in result.output
        lookup.assert_not_called()

    def test_gopkg_lock_invalid_entries_reported(self, runner, workdir):
        (workdir / "Gopkg.lock").write_text(
            '[[projects]]\n  name = "github.com/pkg/errors"\n  version = "v0.8.0"\n\n'
            '[[projects]]\n  branch = "master"\n  name = "golang.org/x/crypto"\n'
        )
        with patch(_LOOKUP, side_effect=_lookup_with()) as lookup:
            result = runner.invoke(main, ["-o", "json", "Gopkg.lock"])
        assert result.exit_code == 0
        assert lookup.call_args.args[0] == ["pkg:golang/github.com/pkg/errors@v0.8.0"]
        payload = json.loads(result.output)
        assert payload["num_audited"] == 1
        assert [c["coordinates"] for c in payload["invalid"]] == [
            "pkg:golang/golang.org/x/crypto@master"
        ]

    def test_lookup_failure(self, runner):
        with patch(_LOOKUP, side_effect=OssIndexError("connection refused")):
            result = runner.invoke(main, ["-o", "json"], input=_GO_LIST)
        assert result.exit_code == 1
        assert "Error auditing packages" in result.output
        assert "connection refused" in result.output


# ── output selection ─────────────────────────────────────────────────────


class TestOutput:
    def test_text_has_banner(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()):
            result = runner.invoke(main, ["--no-color"], input=_GO_LIST)
        assert result.exit_code == 0
        assert "depsentinel version:" in result.output
        assert "Audited dependencies: 2" in result.output

    def test_quiet_text_has_no_banner(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()):
            result = runner.invoke(main, ["-q", "-n"], input=_GO_LIST)
        assert "depsentinel version:" not in result.output

    def test_csv_has_no_banner(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()):
            result = runner.invoke(main, ["-o", "csv"], input=_GO_LIST)
        assert "depsentinel version:" not in result.output
        assert result.output.startswith("Summary")

    def test_unknown_output_warns_and_uses_text(self, runner):
        with patch(_LOOKUP, side_effect=_lookup_with()):
            result = runner.invoke(main, ["-o", "yaml", "-n"], input=_GO_LIST)
        assert result.exit_code == 0
        assert "Output format of yaml is not valid. Defaulting to text output" in result.output
        assert "Audited dependencies: 2" in result.output

"""Shared fixtures for depsentinel tests."""

from __future__ import annotations

import pytest

from depsentinel.core.config import Configuration
from depsentinel.engines.audit.formatters import default_registry


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.ossindex config and cache."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("OSSI_USERNAME", "OSSI_TOKEN", "DEPSENTINEL_LOG_LEVEL", "DEPSENTINEL_LOG_FORMAT"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def make_config():
    def _make(output: str = "json", **overrides) -> Configuration:
        fields = {
            "formatter": default_registry().resolve(output, quiet=False, no_color=True),
            "use_stdin": True,
        }
        fields.update(overrides)
        return Configuration(**fields)

    return _make

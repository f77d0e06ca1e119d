"""Manifest parsers — auto-registered on import."""

from depsentinel.engines.dependency_scanner.parsers import (
    go_list,  # noqa: F401
    go_sum,  # noqa: F401
    gopkg_lock,  # noqa: F401
)

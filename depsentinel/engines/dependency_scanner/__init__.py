"""Dependency scanner engine — read Go manifests into package URLs."""

# Parsers register themselves on import.
import depsentinel.engines.dependency_scanner.parsers  # noqa: F401
from depsentinel.engines.dependency_scanner.models import DependencyRecord, Lock, Project
from depsentinel.engines.dependency_scanner.project import (
    check_manifest_exists,
    load_project,
    working_dir_for,
)
from depsentinel.engines.dependency_scanner.purls import extract_purls
from depsentinel.engines.dependency_scanner.registry import get_parser, parser_for_path

__all__ = [
    "DependencyRecord",
    "Lock",
    "Project",
    "check_manifest_exists",
    "extract_purls",
    "get_parser",
    "load_project",
    "parser_for_path",
    "working_dir_for",
]

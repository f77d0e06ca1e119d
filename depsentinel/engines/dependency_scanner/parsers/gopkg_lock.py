"""Parser for dep Gopkg.lock files."""

from __future__ import annotations

import sys

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from depsentinel.engines.dependency_scanner.models import DependencyRecord
from depsentinel.engines.dependency_scanner.registry import register_parser


class GopkgLockParser:
    detection_method = "gopkg-lock"
    file_patterns = ["Gopkg.lock"]

    def parse(self, content: str) -> list[DependencyRecord]:
        """Parse ``[[projects]]`` entries.

        Projects pinned by branch or bare revision have no semantic version;
        they come back as invalid records carrying that branch/revision.

        Raises ``tomllib.TOMLDecodeError`` on malformed input.
        """
        data = tomllib.loads(content)
        deps: list[DependencyRecord] = []

        for entry in data.get("projects", []):
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                continue
            version = entry.get("version") or entry.get("branch") or entry.get("revision")
            deps.append(DependencyRecord.from_coordinate(name, version))

        return deps


register_parser(GopkgLockParser())

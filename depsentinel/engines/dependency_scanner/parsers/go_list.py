"""Parser for ``go list -m all`` output read from stdin."""

from __future__ import annotations

from depsentinel.engines.dependency_scanner.models import DependencyRecord
from depsentinel.engines.dependency_scanner.registry import register_parser

_REPLACE = "=>"


class GoListParser:
    detection_method = "go-list"
    file_patterns: list[str] = []

    def parse(self, content: str) -> list[DependencyRecord]:
        deps: list[DependencyRecord] = []

        for raw_line in content.splitlines():
            fields = raw_line.split()
            # The main module is printed alone on the first line
            if len(fields) < 2:
                continue

            name, version = fields[0], fields[1]
            if _REPLACE in fields:
                idx = fields.index(_REPLACE)
                replacement = fields[idx + 1 :]
                # Replaced by a local directory: nothing to look up
                if len(replacement) < 2:
                    continue
                name, version = replacement[0], replacement[1]

            deps.append(DependencyRecord.from_coordinate(name, version))

        return deps


register_parser(GoListParser())

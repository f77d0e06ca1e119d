"""Parser for Go go.sum checksum files."""

from __future__ import annotations

from depsentinel.engines.dependency_scanner.models import DependencyRecord
from depsentinel.engines.dependency_scanner.registry import register_parser

_GO_MOD_SUFFIX = "/go.mod"


class GoSumParser:
    detection_method = "go-sum"
    file_patterns = ["go.sum"]

    def parse(self, content: str) -> list[DependencyRecord]:
        deps: list[DependencyRecord] = []
        seen: set[tuple[str, str]] = set()

        for raw_line in content.splitlines():
            fields = raw_line.split()
            # <module> <version>[/go.mod] <hash>
            if len(fields) < 2:
                continue
            name, version = fields[0], fields[1]
            if version.endswith(_GO_MOD_SUFFIX):
                version = version[: -len(_GO_MOD_SUFFIX)]
            if (name, version) in seen:
                continue
            seen.add((name, version))
            deps.append(DependencyRecord.from_coordinate(name, version))

        return deps


register_parser(GoSumParser())

"""Parser registry — match manifest names to parsers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from depsentinel.engines.dependency_scanner.models import DependencyRecord


@runtime_checkable
class ManifestParser(Protocol):
    """Interface that every manifest parser must satisfy."""

    detection_method: str
    file_patterns: list[str]

    def parse(self, content: str) -> list[DependencyRecord]: ...


PARSER_REGISTRY: dict[str, ManifestParser] = {}


def register_parser(parser: ManifestParser) -> None:
    """Register a parser instance by its detection_method."""
    PARSER_REGISTRY[parser.detection_method] = parser


def get_parser(detection_method: str) -> ManifestParser:
    """Return the registered parser for *detection_method*.

    Raises KeyError if no such parser is registered.
    """
    return PARSER_REGISTRY[detection_method]


def parser_for_path(path: str) -> ManifestParser | None:
    """Pick the parser whose file pattern occurs in *path*.

    Matching is by substring so ``./sub/go.sum`` and ``go.sum.bak`` both
    route to the checksum parser. Returns None when nothing matches.
    """
    for parser in PARSER_REGISTRY.values():
        for pattern in parser.file_patterns:
            if pattern in path:
                return parser
    return None

"""OSS Index engine — vulnerability lookups for package URLs."""

from depsentinel.engines.ossindex.cache import ResultCache, remove_cache_directory
from depsentinel.engines.ossindex.client import OssIndexClient, OssIndexError, audit_packages
from depsentinel.engines.ossindex.models import Coordinate, Vulnerability

__all__ = [
    "Coordinate",
    "OssIndexClient",
    "OssIndexError",
    "ResultCache",
    "Vulnerability",
    "audit_packages",
    "remove_cache_directory",
]

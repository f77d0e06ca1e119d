"""Async OSS Index component-report client with chunking, caching and retries."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from depsentinel.buildversion import BUILD_VERSION
from depsentinel.engines.ossindex.cache import ResultCache
from depsentinel.engines.ossindex.models import Coordinate

if TYPE_CHECKING:
    from depsentinel.core.config import Configuration

log = structlog.get_logger("depsentinel.ossindex")

DEFAULT_BASE_URL = "https://ossindex.sonatype.org"
COMPONENT_REPORT_PATH = "/api/v3/component-report"

MAX_COORDINATES = 128  # per request, enforced by the API

_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 1.0  # seconds

_REPORT_ADAPTER = TypeAdapter(list[Coordinate])


class OssIndexError(Exception):
    """Raised when OSS Index cannot produce a component report."""


def chunked(items: list[str], size: int = MAX_COORDINATES) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class OssIndexClient:
    """Thin async wrapper around the OSS Index REST API."""

    def __init__(
        self,
        username: str | None = None,
        token: str | None = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        cache: ResultCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        auth = httpx.BasicAuth(username, token) if username and token else None
        self._cache = cache
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Accept": "application/vnd.ossindex.component-report.v1+json",
                "User-Agent": f"depsentinel-client/{BUILD_VERSION}",
            },
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> OssIndexClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def audit(self, purls: list[str]) -> list[Coordinate]:
        """Return one :class:`Coordinate` per purl, in the order given.

        Cached reports are reused; the rest are requested in chunks of
        :data:`MAX_COORDINATES`, concurrently.
        """
        found: dict[str, Coordinate] = {}
        pending: list[str] = []
        for purl in purls:
            cached = self._cache.get(purl) if self._cache else None
            if cached is not None:
                found[purl.lower()] = cached
            else:
                pending.append(purl)

        log.info("ossindex.audit", total=len(purls), cached=len(found), pending=len(pending))

        reports = await asyncio.gather(*(self._fetch_chunk(c) for c in chunked(pending)))
        for report in reports:
            for coordinate in report:
                found[coordinate.coordinates.lower()] = coordinate
                if self._cache:
                    self._cache.put(coordinate.coordinates, coordinate)

        results: list[Coordinate] = []
        for purl in purls:
            coordinate = found.get(purl.lower())
            if coordinate is None:
                log.warning("ossindex.missing_coordinate", purl=purl)
                coordinate = Coordinate(coordinates=purl)
            results.append(coordinate)
        return results

    # ── internal ───────────────────────────────────────────────────────────

    async def _fetch_chunk(self, purls: list[str]) -> list[Coordinate]:
        response = await self._request_with_retry({"coordinates": purls})
        try:
            return _REPORT_ADAPTER.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise OssIndexError(f"malformed component report: {exc}") from exc

    async def _request_with_retry(self, payload: dict[str, Any]) -> httpx.Response:
        """POST with exponential backoff on 5xx, 429 and timeout errors."""
        last_exc: Exception | None = None
        for attempt in range(_MAX_RETRIES):
            try:
                resp = await self._client.post(COMPONENT_REPORT_PATH, json=payload)

                if resp.status_code == 429:
                    wait = self._get_retry_wait(resp)
                    log.warning(
                        "ossindex.rate_limit",
                        wait_seconds=wait,
                        attempt=attempt + 1,
                        max_retries=_MAX_RETRIES,
                    )
                    last_exc = OssIndexError("rate limit exceeded")
                    if attempt < _MAX_RETRIES - 1:
                        await asyncio.sleep(wait)
                    continue

                if resp.status_code == 401:
                    raise OssIndexError("authentication failed, check username and token")

                if resp.status_code < 500:
                    resp.raise_for_status()
                    return resp

                log.warning(
                    "ossindex.server_error",
                    status=resp.status_code,
                    attempt=attempt + 1,
                    max_retries=_MAX_RETRIES,
                )
                last_exc = OssIndexError(f"server error {resp.status_code}")
            except httpx.TimeoutException as exc:
                log.warning("ossindex.timeout", attempt=attempt + 1, max_retries=_MAX_RETRIES)
                last_exc = exc
            except httpx.HTTPStatusError as exc:
                raise OssIndexError(f"request rejected: {exc.response.status_code}") from exc
            except httpx.HTTPError as exc:
                raise OssIndexError(f"request failed: {exc}") from exc

            if attempt < _MAX_RETRIES - 1:
                await asyncio.sleep(_RETRY_BASE_DELAY * (2**attempt))

        if isinstance(last_exc, OssIndexError):
            raise last_exc
        raise OssIndexError(f"giving up after {_MAX_RETRIES} attempts: {last_exc}") from last_exc

    @staticmethod
    def _get_retry_wait(response: httpx.Response) -> int:
        """Seconds to wait before retrying a rate-limited request."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        return 5


def audit_packages(
    purls: list[str],
    config: Configuration,
    *,
    cache: ResultCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Coordinate]:
    """Synchronous entry point: look up *purls* with *config*'s credentials.

    No request is made for an empty batch.
    """
    if not purls:
        return []

    async def _run() -> list[Coordinate]:
        async with OssIndexClient(
            config.username,
            config.token,
            cache=cache if cache is not None else ResultCache(),
            transport=transport,
        ) as client:
            return await client.audit(purls)

    return asyncio.run(_run())

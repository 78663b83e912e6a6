"""HTTP fetcher adapter.

Implements the core FetcherPort with httpx. Every fetch gets its own client,
so cookies picked up along a redirect chain are replayed on the next hop and
forgotten once the fetch ends.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional

import httpx

from linkscope.core.classifier import is_handled_type
from linkscope.core.config import FetchConfig
from linkscope.core.models import FailureKind, FetchError, FetchOk, FetchResult

LOGGER = logging.getLogger(__name__)

# Hosts that only ever serve a consent wall in front of the real page.
CONSENT_HOSTS = frozenset(
    {
        "consent.google.com",
        "consent.youtube.com",
        "consent.yahoo.com",
        "guce.yahoo.com",
        "guce.oath.com",
    }
)

# Lower-cased markers of cookie/JavaScript interstitials, searched in the body head.
COOKIE_WALL_MARKERS = (
    b"please enable cookies",
    b"enable javascript and cookies to continue",
    b"cookies are disabled",
    b"_incapsula_resource",
    b"cf-browser-verification",
)
MARKER_SCAN_BYTES = 32 * 1024

_TITLE_TAG = re.compile(rb"<title[\s>]", re.IGNORECASE)


def _parse_content_type(response: httpx.Response) -> Optional[str]:
    raw = response.headers.get("content-type")
    if not raw:
        return None
    mime = raw.split(";", 1)[0].strip().lower()
    return mime or None


def _parse_content_length(response: httpx.Response) -> Optional[int]:
    raw = response.headers.get("content-length")
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def _is_consent_response(response: httpx.Response) -> bool:
    if response.url.host in CONSENT_HOSTS:
        return True
    return response.headers.get("cf-mitigated", "").lower() == "challenge"


def _has_wall_marker(head: bytes) -> bool:
    lowered = head[:MARKER_SCAN_BYTES].lower()
    return any(marker in lowered for marker in COOKIE_WALL_MARKERS)


def _looks_like_cookie_wall(response: httpx.Response, body: bytes) -> bool:
    """True for consent hosts, challenge headers, or an untitled page with a wall marker."""

    if _is_consent_response(response):
        return True
    return not _TITLE_TAG.search(body[:MARKER_SCAN_BYTES]) and _has_wall_marker(body)


class HttpFetcher:
    """Fetcher adapter enforcing size, time and redirect limits."""

    def __init__(
        self,
        config: FetchConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._config.user_agent,
            "Accept-Language": self._config.accept_lang,
            "Accept-Encoding": "identity",
        }

    async def fetch(self, url: str) -> FetchResult:
        """Retrieve ``url`` once and classify the outcome."""

        # httpx timeouts are per operation; wait_for bounds the whole fetch.
        try:
            return await asyncio.wait_for(self._fetch(url), timeout=self._config.timeout_s)
        except asyncio.TimeoutError:
            return FetchError(
                FailureKind.TIMEOUT,
                detail=f"no complete response within {self._config.timeout_s}s",
            )

    async def _fetch(self, url: str) -> FetchResult:
        async with httpx.AsyncClient(
            headers=self._headers(),
            timeout=httpx.Timeout(self._config.timeout_s),
            follow_redirects=False,
            transport=self._transport,
        ) as client:
            try:
                return await self._follow(client, url)
            except httpx.TimeoutException as exc:
                return FetchError(FailureKind.TIMEOUT, detail=str(exc) or type(exc).__name__)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                return FetchError(FailureKind.CONNECTION_FAILED, detail=str(exc) or type(exc).__name__)

    async def _follow(self, client: httpx.AsyncClient, url: str) -> FetchResult:
        request = client.build_request("GET", url)
        visited = {str(request.url)}
        redirects = 0

        while True:
            response = await client.send(request, stream=True)
            try:
                LOGGER.debug(
                    "[%s] <%s> -> [%s %s]",
                    redirects,
                    request.url,
                    response.http_version,
                    response.status_code,
                )
                next_request = response.next_request
                if next_request is None:
                    return await self._finish(response)

                redirects += 1
                target = str(next_request.url)
                if redirects > self._config.max_redirects or target in visited:
                    return FetchError(
                        FailureKind.REDIRECT_LOOP,
                        status=response.status_code,
                        detail=f"stopped after {redirects} redirect(s) at {target}",
                    )
                visited.add(target)
                request = next_request
            finally:
                await response.aclose()

    async def _finish(self, response: httpx.Response) -> FetchResult:
        status = response.status_code
        content_type = _parse_content_type(response)
        content_length = _parse_content_length(response)

        if not response.is_success:
            head = await self._read_body(response, MARKER_SCAN_BYTES, truncate=True)
            if _is_consent_response(response) or _has_wall_marker(head or b""):
                return FetchError(FailureKind.COOKIES_REQUIRED, status=status, detail=str(response.url))
            return FetchError(FailureKind.BAD_STATUS, status=status, detail=response.reason_phrase)

        if not is_handled_type(content_type):
            return FetchError(
                FailureKind.UNSUPPORTED,
                status=status,
                content_type=content_type,
                content_length=content_length,
            )

        if content_length is not None and content_length > self._config.max_body_bytes:
            return FetchError(
                FailureKind.TOO_LARGE,
                status=status,
                content_type=content_type,
                content_length=content_length,
                detail=f"declared {content_length} bytes",
            )

        body = await self._read_body(response, self._config.max_body_bytes)
        if body is None:
            return FetchError(
                FailureKind.TOO_LARGE,
                status=status,
                content_type=content_type,
                detail=f"more than {self._config.max_body_bytes} bytes",
            )

        if _looks_like_cookie_wall(response, body):
            return FetchError(FailureKind.COOKIES_REQUIRED, status=status, detail=str(response.url))

        return FetchOk(
            status=status,
            headers=dict(response.headers),
            body=body,
            final_url=str(response.url),
            content_type=content_type,
            charset=response.charset_encoding,
        )

    @staticmethod
    async def _read_body(response: httpx.Response, limit: int, truncate: bool = False) -> Optional[bytes]:
        """Stream at most ``limit`` bytes.

        Returns None once the body grows past the limit, unless ``truncate``
        is set, in which case the first ``limit`` bytes are returned.
        """

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > limit:
                if truncate:
                    return bytes(body[:limit])
                return None
        return bytes(body)

"""Async HTTP fetcher with bounded redirects, size and latency."""

from __future__ import annotations

import codecs
import logging
import re
from typing import Optional

import httpx

from summariser.config import Settings, settings
from summariser.errors import ErrorKind, FetchError
from summariser.scraper.models import RawPage

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (compatible; BlogSummariser-Bot/1.0; +https://github.com/blog-summariser)"
    ),
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

_META_CHARSET = re.compile(rb"""<meta[^>]+charset\s*=\s*["']?\s*([A-Za-z0-9_.:-]+)""", re.IGNORECASE)


def _declared_length(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _known_encoding(name: Optional[str]) -> Optional[str]:
    if not name:
        return None
    try:
        codecs.lookup(name)
    except LookupError:
        return None
    return name


def _sniff_meta_charset(body: bytes) -> Optional[str]:
    """Return the charset declared by a ``<meta>`` tag near the top of *body*."""
    match = _META_CHARSET.search(body[:4096])
    return match.group(1).decode("ascii") if match else None


def _decode(body: bytes, encoding: Optional[str]) -> str:
    """Decode *body* with the response charset, then the ``<meta>`` charset, then UTF-8."""
    encoding = _known_encoding(encoding) or _known_encoding(_sniff_meta_charset(body))
    return body.decode(encoding or "utf-8", errors="replace")


async def _read_limited(response: httpx.Response, max_bytes: int) -> bytes:
    """Read the streamed body, aborting as soon as it exceeds *max_bytes*."""
    declared = _declared_length(response)
    if declared is not None and declared > max_bytes:
        raise FetchError(
            ErrorKind.TOO_LARGE,
            f"Response from {response.url} declares {declared} bytes (limit {max_bytes})",
        )

    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise FetchError(
                ErrorKind.TOO_LARGE,
                f"Response from {response.url} exceeds {max_bytes} bytes",
            )
    return bytes(buffer)


async def _fetch(client: httpx.AsyncClient, url: str, config: Settings) -> RawPage:
    current = httpx.URL(url)

    # One initial request plus at most ``fetch_max_redirects`` hops.
    for _ in range(config.fetch_max_redirects + 1):
        try:
            async with client.stream(
                "GET",
                current,
                follow_redirects=False,
                timeout=config.fetch_timeout,
            ) as response:
                if response.is_redirect:
                    target = response.url.join(response.headers["location"])
                    logger.debug("Redirect %s -> %s", response.url, target)
                    current = target
                    continue

                if not response.is_success:
                    raise FetchError(
                        ErrorKind.HTTP_STATUS,
                        f"{response.url} returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                body = await _read_limited(response, config.fetch_max_bytes)
                return RawPage(
                    url=url,
                    final_url=str(response.url),
                    html=_decode(body, response.charset_encoding),
                    status_code=response.status_code,
                )
        except httpx.TimeoutException as exc:
            raise FetchError(
                ErrorKind.TIMEOUT,
                f"Timed out after {config.fetch_timeout}s fetching {current}",
            ) from exc
        except httpx.TransportError as exc:
            raise FetchError(
                ErrorKind.UNREACHABLE,
                f"Could not reach {current}: {exc}",
            ) from exc

    raise FetchError(
        ErrorKind.TOO_MANY_REDIRECTS,
        f"More than {config.fetch_max_redirects} redirects fetching {url}",
    )


async def fetch_html(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    config: Settings = settings,
) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Redirects are followed by hand so the hop limit is enforced exactly.
    When *client* is omitted a short-lived ``httpx.AsyncClient`` is opened
    for this call only, so cancelling the coroutine releases its connection.

    Raises:
        FetchError: ``Timeout``, ``Unreachable``, ``HttpStatus`` (non-2xx),
            ``TooManyRedirects`` or ``TooLarge``.  No retries happen here.
    """
    if client is not None:
        return await _fetch(client, url, config)

    async with httpx.AsyncClient(
        headers=_DEFAULT_HEADERS,
        timeout=config.fetch_timeout,
        follow_redirects=False,
    ) as own_client:
        return await _fetch(own_client, url, config)

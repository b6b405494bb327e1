"""Async HTTP fetcher that rotates browser header profiles.

Every profile in the list gets one GET.  Non-2xx answers and network errors
move on to the next profile; a timeout aborts the whole sequence.  One
deadline covers all attempts together, not each one separately.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence
from urllib.parse import urlparse

import httpx

from backend.config import settings
from backend.errors import AnalysisError, ErrorKind
from backend.scraper.headers import DEFAULT_PROFILES, HeaderProfileSource
from backend.scraper.models import PageContent

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: Any) -> str:
    """Return *url* stripped, or raise ``InvalidInput`` if it is not absolute http(s).

    Runs before any network call.
    """
    if not isinstance(url, str) or not url.strip():
        raise AnalysisError(ErrorKind.INVALID_INPUT, "URL is required")

    url = url.strip()
    try:
        parsed = urlparse(url)
        # Both raise for URLs urlparse tolerates, e.g. an out-of-range port.
        parsed.port
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL) as exc:
        raise AnalysisError(
            ErrorKind.INVALID_INPUT,
            "URL is invalid. Please enter a full http(s) URL.",
            details=str(exc),
        ) from exc
    if parsed.scheme not in _ALLOWED_SCHEMES or not parsed.netloc:
        raise AnalysisError(
            ErrorKind.INVALID_INPUT,
            "URL is invalid. Please enter a full http(s) URL.",
        )
    return url


async def _try_profiles(
    client: httpx.AsyncClient,
    url: str,
    profiles: Sequence[HeaderProfileSource],
) -> PageContent:
    for index, profile in enumerate(profiles, start=1):
        headers = dict(profile.headers())
        try:
            response = await client.get(url, headers=headers)
        except httpx.TimeoutException:
            raise
        except httpx.RequestError as exc:
            logger.info("Fetch %s: profile %d failed (%s)", url, index, exc.__class__.__name__)
            continue

        if not response.is_success:
            logger.info("Fetch %s: profile %d got HTTP %d", url, index, response.status_code)
            continue

        logger.info("Fetch %s: profile %d succeeded", url, index)
        return PageContent(
            url=url,
            html=response.content.decode("utf-8", errors="replace"),
            status_code=response.status_code,
        )

    raise AnalysisError(
        ErrorKind.BOT_PROTECTED,
        "The page is bot-protected or blocked. Manual paste required.",
        details=f"All {len(profiles)} header profiles were rejected.",
    )


async def fetch_page(
    url: str,
    timeout_ms: int | None = None,
    profiles: Sequence[HeaderProfileSource] = DEFAULT_PROFILES,
) -> PageContent:
    """Fetch *url* and return its decoded HTML as a :class:`PageContent`.

    Args:
        url: Absolute http(s) URL.
        timeout_ms: Deadline for the whole attempt sequence.  Defaults to
            ``settings.fetch_timeout_ms``.
        profiles: Header profiles tried in order.

    Raises:
        AnalysisError: ``InvalidInput`` for a bad URL, ``FetchTimeout`` when
            the deadline passes, ``BotProtected`` when every profile fails.
    """
    url = validate_url(url)
    if timeout_ms is None:
        timeout_ms = settings.fetch_timeout_ms
    timeout_s = timeout_ms / 1000

    try:
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout_s) as client:
            return await asyncio.wait_for(
                _try_profiles(client, url, profiles), timeout=timeout_s
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("Fetch %s: timed out after %dms", url, timeout_ms)
        raise AnalysisError(
            ErrorKind.FETCH_TIMEOUT,
            "The page took too long to respond. Try again or paste the text manually.",
            details=f"Request timed out after {timeout_ms}ms",
        ) from exc

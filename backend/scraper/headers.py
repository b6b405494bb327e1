"""Browser-like request header profiles tried in order by the fetcher.

Some sites reject one client fingerprint but accept another, so the fetcher
walks a fixed list of :class:`HeaderProfileSource` objects.  A source is
either a static mapping or a generator evaluated freshly on every attempt;
the fetcher only ever calls :meth:`HeaderProfileSource.headers`.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_ACCEPT_LANGUAGE = "en-US,en;q=0.9"


class HeaderProfileSource(ABC):
    """Abstract source of one request-header bundle."""

    @abstractmethod
    def headers(self) -> Mapping[str, str]:
        """Return the headers to send for one fetch attempt."""


class StaticHeaderProfile(HeaderProfileSource):
    """The same header bundle on every attempt."""

    def __init__(self, headers: Mapping[str, str]) -> None:
        self._headers = MappingProxyType(dict(headers))

    def headers(self) -> Mapping[str, str]:
        return self._headers

    def __repr__(self) -> str:
        return f"StaticHeaderProfile({self._headers.get('User-Agent', '')!r})"


class GeneratedHeaderProfile(HeaderProfileSource):
    """A header bundle built by *factory* each time it is requested."""

    def __init__(self, factory: Callable[[], Mapping[str, str]]) -> None:
        self._factory = factory

    def headers(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._factory()))

    def __repr__(self) -> str:
        return f"GeneratedHeaderProfile({self._factory.__name__})"


def _random_firefox_headers() -> dict[str, str]:
    """Firefox on Windows with a randomised major version (60–79)."""
    version = 60 + random.randrange(20)
    return {
        "User-Agent": (
            f"Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:{version}.0) "
            f"Gecko/20100101 Firefox/{version}.0"
        ),
        "Accept": _ACCEPT,
        "Accept-Language": _ACCEPT_LANGUAGE,
    }


DEFAULT_PROFILES: Sequence[HeaderProfileSource] = (
    StaticHeaderProfile(
        {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/124.0.0.0 Safari/537.36"
            ),
            "Accept": _ACCEPT,
            "Accept-Language": _ACCEPT_LANGUAGE,
        }
    ),
    GeneratedHeaderProfile(_random_firefox_headers),
    StaticHeaderProfile(
        {
            "User-Agent": (
                "Mozilla/5.0 (X11; Linux x86_64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) "
                "Chrome/120.0.0.0 Safari/537.36"
            ),
            "Accept": _ACCEPT,
            "Accept-Language": _ACCEPT_LANGUAGE,
            "Accept-Encoding": "gzip, deflate, br",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
    ),
)

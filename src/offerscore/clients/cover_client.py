"""
Cover image lookup for book products.

Covers are fetched by 13-digit identifier from an external image service
and kept in a process-wide cache for the session. The cache tells apart
"not tried yet" from "tried and failed", so a missing cover is requested
at most once. Nothing in scoring depends on covers.
"""

import logging
import re

import httpx

from ..config import Settings, get_settings

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")


def cover_identifier(code: str | None) -> str | None:
    """Digits of a product code, if they form exactly 13 digits."""
    if not code:
        return None
    digits = _NON_DIGITS.sub("", str(code))
    return digits if len(digits) == 13 else None


def cover_url(code: str | None, settings: Settings | None = None) -> str | None:
    """Image URL for a product code, or None when the code has no identifier."""
    identifier = cover_identifier(code)
    if identifier is None:
        return None
    settings = settings or get_settings()
    base = settings.cover_base_url.rstrip("/")
    url = f"{base}/{identifier}/{settings.cover_size}"
    if settings.cover_access_token:
        url += f"?access_token={settings.cover_access_token}"
    return url


class CoverCache:
    """
    Session cache of cover bytes keyed by product code.

    A code is in one of three states: absent (not tried), FAILED, or
    holding image bytes. Entries are never evicted.
    """

    FAILED = object()

    def __init__(self):
        self._entries: dict[str, object] = {}

    def __contains__(self, code: str) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, code: str) -> bytes | None:
        entry = self._entries.get(code)
        return entry if isinstance(entry, bytes) else None

    def is_failed(self, code: str) -> bool:
        return self._entries.get(code) is self.FAILED

    def store(self, code: str, data: bytes) -> None:
        self._entries[code] = data

    def mark_failed(self, code: str) -> None:
        self._entries[code] = self.FAILED


_cover_cache: CoverCache | None = None


def init_cover_cache() -> CoverCache:
    """Create the process-wide cover cache. Call once at application start."""
    global _cover_cache
    _cover_cache = CoverCache()
    return _cover_cache


def get_cover_cache() -> CoverCache:
    if _cover_cache is None:
        raise RuntimeError("Cover cache not initialised; call init_cover_cache() at startup")
    return _cover_cache


class CoverClient:
    """
    Fetches cover images over HTTP through the session cache.

    Usage:
        init_cover_cache()
        with CoverClient() as client:
            image = client.fetch("9788535914849")  # bytes or None

    A long-lived client (one per process) must be closed by its owner.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: CoverCache | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else get_cover_cache()
        self.http = http_client or httpx.Client(
            timeout=self.settings.cover_timeout_seconds, follow_redirects=True
        )

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self.http.close()

    def __enter__(self) -> "CoverClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, code: str) -> bytes | None:
        """Cover bytes for a product code, or None when there is none."""
        if self.cache.is_failed(code):
            return None
        cached = self.cache.get(code)
        if cached is not None:
            return cached

        url = cover_url(code, self.settings)
        if url is None:
            self.cache.mark_failed(code)
            return None

        try:
            response = self.http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Cover lookup failed for %s: %s", code, exc)
            self.cache.mark_failed(code)
            return None

        if not response.content:
            self.cache.mark_failed(code)
            return None

        self.cache.store(code, response.content)
        return response.content

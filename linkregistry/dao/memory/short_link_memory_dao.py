"""In-process Data Access Object (DAO) implementation for short links

Links live in a dict keyed by shortcode. Every mutation holds a single lock,
so check-then-insert and read-modify-write are atomic within the process.
Used for local runs without Redis and as the reference store in tests.

Example:
    >>> dao = ShortLinkMemoryDAO()
    >>> dao.insert(short_link).get('abc123').target
    'https://example.com/page'
"""

import threading
from datetime import datetime, UTC

from beartype import beartype

from linkregistry.models import ShortLinkModel, ClickEventModel
from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.exceptions import ShortLinkAlreadyExistsError, ShortLinkNotFoundError, ShortLinkExpiredError


class ShortLinkMemoryDAO(ShortLinkBaseDAO):
    def __init__(self, **kwargs):
        self._links: dict[str, ShortLinkModel] = {}
        self._counter = 0
        self._lock = threading.Lock()

    @beartype
    def insert(self, short_link: ShortLinkModel, **kwargs) -> 'ShortLinkMemoryDAO':
        with self._lock:
            if short_link.shortcode in self._links:
                raise ShortLinkAlreadyExistsError(f"Short link with code '{short_link.shortcode}' already exists.")
            self._links[short_link.shortcode] = short_link
        return self

    @beartype
    def get(self, shortcode: str, **kwargs) -> ShortLinkModel:
        try:
            return self._links[shortcode]
        except KeyError:
            raise ShortLinkNotFoundError(f"Short link with code '{shortcode}' not found.") from None

    @beartype
    def exists(self, shortcode: str, **kwargs) -> bool:
        return shortcode in self._links

    @beartype
    def record_click(self, shortcode: str, click: ClickEventModel, now: datetime | None = None, **kwargs) -> ShortLinkModel:
        now = now or datetime.now(UTC)
        with self._lock:
            short_link = self.get(shortcode)
            if short_link.is_expired(now):
                raise ShortLinkExpiredError(f"Short link with code '{shortcode}' expired at {short_link.expires_at.isoformat()}.")
            updated = self._links[shortcode] = short_link.with_click(click)
        return updated

    @beartype
    def delete_expired_before(self, now: datetime, **kwargs) -> int:
        with self._lock:
            expired = [code for code, link in self._links.items() if link.expires_at < now]
            for code in expired:
                del self._links[code]
        return len(expired)

    def clear(self, **kwargs) -> None:
        with self._lock:
            self._links.clear()

    def list_all(self, **kwargs) -> list[ShortLinkModel]:
        with self._lock:
            links = list(self._links.values())
        return sorted(links, key=lambda link: link.seq)

    def count(self, increment: bool = False, **kwargs) -> int:
        with self._lock:
            if increment:
                self._counter += 1
            return self._counter

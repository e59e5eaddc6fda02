from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any

import xxhash

from linkregistry.constants import Limits


@dataclass(frozen=True)
class ClickEventModel:
    """Represent a single visit of a short link.

    Attributes:
        timestamp (datetime):
            Moment the click was recorded (timezone-aware, UTC).
        user_agent (str):
            User-Agent header of the visitor.
        referrer (str):
            Referer header of the visitor, empty when absent.
    """

    timestamp: datetime
    user_agent: str = ''
    referrer: str = ''

    def to_dict(self) -> dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'user_agent': self.user_agent,
            'referrer': self.referrer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ClickEventModel':
        return cls(
            timestamp=datetime.fromisoformat(data['timestamp']),
            user_agent=data.get('user_agent') or '',
            referrer=data.get('referrer') or '',
        )


@dataclass(frozen=True)
class ShortLinkModel:
    """Represent a shortened URL mapping with its click history.

    Attributes:
        target (str):
            The original long URL that the shortcode redirects to.
        shortcode (str):
            The unique short identifier representing the shortened URL.
        created_at (datetime):
            Creation moment (timezone-aware, UTC).
        expires_at (datetime):
            Moment after which the link no longer redirects. Always later
            than `created_at` and never changed after creation.
        expiry_minutes (int | None):
            TTL requested by the caller, kept for display.
        click_count (int):
            Number of clicks ever recorded. May exceed `len(clicks)`.
        clicks (tuple[ClickEventModel, ...]):
            Most recent clicks, oldest first, at most `Limits.CLICK_HISTORY` long.
        seq (int):
            Insertion sequence number, orders listings.
        id (str):
            Opaque stable identifier, derived from shortcode and creation time
            when not given.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> now = datetime.now(UTC)
        >>> link = ShortLinkModel(
        ...     target='https://example.com/article/123',
        ...     shortcode='abc123',
        ...     created_at=now,
        ...     expires_at=now + timedelta(minutes=30),
        ... )
        >>> link.click_count
        0
        >>> link.short_url('https://sho.rt')
        'https://sho.rt/abc123'
    """

    target: str
    shortcode: str
    created_at: datetime
    expires_at: datetime
    expiry_minutes: int | None = None
    click_count: int = 0
    clicks: tuple[ClickEventModel, ...] = ()
    seq: int = 0
    id: str = field(default='')

    def __post_init__(self):
        if self.expires_at <= self.created_at:
            raise ValueError(f'Expiry ({self.expires_at.isoformat()}) must be later than creation ({self.created_at.isoformat()}).')
        if self.click_count < len(self.clicks):
            raise ValueError(f'Click count ({self.click_count}) is lower than recorded clicks ({len(self.clicks)}).')
        if not self.id:
            # frozen dataclass: bypass __setattr__ for the derived default
            object.__setattr__(self, 'id', xxhash.xxh64_hexdigest(f'{self.shortcode}:{self.created_at.isoformat()}'))

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def time_remaining(self, now: datetime) -> timedelta:
        return max(self.expires_at - now, timedelta(0))

    def short_url(self, origin: str) -> str:
        return f'{origin.rstrip("/")}/{self.shortcode}'

    def with_click(self, click: ClickEventModel) -> 'ShortLinkModel':
        """Return a copy with `click` appended to the bounded history."""
        clicks = (self.clicks + (click,))[-Limits.CLICK_HISTORY :]
        return replace(self, clicks=clicks, click_count=self.click_count + 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'target': self.target,
            'shortcode': self.shortcode,
            'created_at': self.created_at.isoformat(),
            'expires_at': self.expires_at.isoformat(),
            'expiry_minutes': self.expiry_minutes,
            'click_count': self.click_count,
            'clicks': [click.to_dict() for click in self.clicks],
            'seq': self.seq,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ShortLinkModel':
        return cls(
            id=data.get('id', ''),
            target=data['target'],
            shortcode=data['shortcode'],
            created_at=datetime.fromisoformat(data['created_at']),
            expires_at=datetime.fromisoformat(data['expires_at']),
            expiry_minutes=data.get('expiry_minutes'),
            click_count=int(data.get('click_count', 0)),
            clicks=tuple(ClickEventModel.from_dict(click) for click in data.get('clicks', [])),
            seq=int(data.get('seq', 0)),
        )

from datetime import datetime, timedelta, UTC

import pytest

from linkregistry.models import ShortLinkModel


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_link(now):
    """Build ShortLinkModel instances relative to the `now` fixture."""

    def _make_link(shortcode: str = 'abc123', target: str = 'https://example.com/page', minutes: int = 30, **kwargs) -> ShortLinkModel:
        created_at = kwargs.pop('created_at', now)
        return ShortLinkModel(
            target=target,
            shortcode=shortcode,
            created_at=created_at,
            expires_at=kwargs.pop('expires_at', created_at + timedelta(minutes=minutes)),
            expiry_minutes=kwargs.pop('expiry_minutes', minutes),
            **kwargs,
        )

    return _make_link

"""Unit tests for redirect resolution

Test coverage includes:

1. Outcomes
   - Unknown shortcodes resolve to NOT_FOUND.
   - Live links resolve to VALID with target and time remaining, and record a click.
   - A 1 minute link is VALID at 59 seconds and EXPIRED at 61 seconds.

2. Failure isolation
   - Storage failures on lookup degrade to NOT_FOUND.
   - Click recording failures never change a VALID outcome.
"""

from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from linkregistry.dao import ShortLinkMemoryDAO
from linkregistry.dao.exceptions import DataStoreError
from linkregistry.registry import ClickRecorder, LinkRegistry, RedirectResolver, RedirectStatus


@pytest.fixture
def resolver(dao, events):
    return RedirectResolver(dao, ClickRecorder(dao, events))


# -------------------------------
# 1. Outcomes
# -------------------------------


def test_resolve_unknown(resolver):
    redirect = resolver.resolve('nope123')
    assert redirect.status == RedirectStatus.NOT_FOUND
    assert redirect.target is None


def test_resolve_valid(resolver, dao, now, make_link):
    dao.insert(make_link(minutes=30))

    redirect = resolver.resolve('abc123', user_agent='curl/8.0', referrer='https://ref.example', now=now + timedelta(minutes=10))

    assert redirect.status == RedirectStatus.VALID
    assert redirect.target == 'https://example.com/page'
    assert redirect.time_remaining == timedelta(minutes=20)
    assert redirect.link.click_count == 1

    click = dao.get('abc123').clicks[0]
    assert (click.user_agent, click.referrer) == ('curl/8.0', 'https://ref.example')


def test_resolve_around_expiry():
    """A link created with a 1 minute expiry redirects at 59s and is gone at 61s."""
    with freeze_time('2025-10-15 12:00:00') as frozen:
        registry = LinkRegistry(ShortLinkMemoryDAO())
        link = registry.add_link('example.com/foo', expiry=1)

        frozen.tick(timedelta(seconds=59))
        assert registry.resolve(link.shortcode).status == RedirectStatus.VALID

        frozen.tick(timedelta(seconds=2))
        assert registry.resolve(link.shortcode).status == RedirectStatus.EXPIRED

        # Still visible until swept
        assert registry.get_link(link.shortcode).click_count == 1
        assert datetime.now(UTC) > link.expires_at


def test_resolve_expired_records_nothing(resolver, dao, now, make_link):
    dao.insert(make_link(minutes=1))

    redirect = resolver.resolve('abc123', now=now + timedelta(minutes=5))

    assert redirect.status == RedirectStatus.EXPIRED
    assert redirect.target is None
    assert dao.get('abc123').click_count == 0


# -------------------------------
# 2. Failure isolation
# -------------------------------


def test_resolve_with_storage_failure(events):
    dao = MagicMock()
    dao.get.side_effect = DataStoreError('down')
    resolver = RedirectResolver(dao, ClickRecorder(dao, events))

    assert resolver.resolve('abc123').status == RedirectStatus.NOT_FOUND


def test_resolve_with_click_recording_failure(events, now, make_link):
    dao = MagicMock()
    dao.get.return_value = make_link()
    dao.record_click.side_effect = DataStoreError('down')
    resolver = RedirectResolver(dao, ClickRecorder(dao, events))

    redirect = resolver.resolve('abc123', now=now)

    assert redirect.status == RedirectStatus.VALID
    assert redirect.target == 'https://example.com/page'
    assert redirect.link.click_count == 0

"""Unit tests for ShortLinkModel and ClickEventModel

Test coverage includes:

1. Construction invariants
   - Ensures expiry must be later than creation.
   - Ensures click_count cannot be lower than the recorded history.
   - Confirms a stable id is derived when none is given.

2. Expiry helpers
   - Validates is_expired() boundaries and time_remaining() clamping.

3. Click history
   - Ensures with_click() appends, bumps the counter and keeps the last 100 clicks.

4. Serialization
   - Ensures to_dict()/from_dict() preserve every field.
"""

from datetime import timedelta

import pytest

from linkregistry.models import ShortLinkModel, ClickEventModel


# -------------------------------
# 1. Construction invariants
# -------------------------------


def test_expiry_must_follow_creation(now):
    with pytest.raises(ValueError, match='must be later than creation'):
        ShortLinkModel(target='https://example.com', shortcode='abc', created_at=now, expires_at=now)


def test_click_count_cannot_undercount_history(now, make_link):
    clicks = (ClickEventModel(timestamp=now), ClickEventModel(timestamp=now))
    with pytest.raises(ValueError, match='lower than recorded clicks'):
        make_link(clicks=clicks, click_count=1)


def test_id_is_derived_and_stable(make_link):
    first = make_link()
    second = make_link()

    assert first.id
    assert first.id == second.id
    assert make_link(shortcode='other').id != first.id


def test_explicit_id_is_kept(make_link):
    assert make_link(id='my-id').id == 'my-id'


# -------------------------------
# 2. Expiry helpers
# -------------------------------


def test_is_expired_boundaries(now, make_link):
    link = make_link(minutes=1)

    assert not link.is_expired(now)
    assert not link.is_expired(link.expires_at)
    assert link.is_expired(link.expires_at + timedelta(microseconds=1))


def test_time_remaining_is_clamped(now, make_link):
    link = make_link(minutes=10)

    assert link.time_remaining(now) == timedelta(minutes=10)
    assert link.time_remaining(now + timedelta(hours=1)) == timedelta(0)


def test_short_url(make_link):
    link = make_link(shortcode='Xa91Qz')
    assert link.short_url('https://sho.rt') == 'https://sho.rt/Xa91Qz'
    assert link.short_url('https://sho.rt/') == 'https://sho.rt/Xa91Qz'


# -------------------------------
# 3. Click history
# -------------------------------


def test_with_click_appends_and_counts(now, make_link):
    link = make_link()
    click = ClickEventModel(timestamp=now, user_agent='curl/8.0', referrer='https://ref.example')

    updated = link.with_click(click)

    assert updated.click_count == 1
    assert updated.clicks == (click,)
    assert link.click_count == 0  # original untouched


def test_with_click_keeps_last_hundred(now, make_link):
    link = make_link()
    for i in range(101):
        link = link.with_click(ClickEventModel(timestamp=now + timedelta(seconds=i)))

    assert link.click_count == 101
    assert len(link.clicks) == 100
    assert link.clicks[0].timestamp == now + timedelta(seconds=1)
    assert link.clicks[-1].timestamp == now + timedelta(seconds=100)


# -------------------------------
# 4. Serialization
# -------------------------------


def test_to_dict_from_dict(now, make_link):
    link = make_link(seq=7).with_click(ClickEventModel(timestamp=now, user_agent='ua'))

    data = link.to_dict()
    assert data['created_at'] == '2025-10-15T12:00:00+00:00'
    assert data['clicks'] == [{'timestamp': '2025-10-15T12:00:00+00:00', 'user_agent': 'ua', 'referrer': ''}]

    assert ShortLinkModel.from_dict(data) == link

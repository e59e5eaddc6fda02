from datetime import timedelta

from linkregistry.registry import StatisticsAggregator, collect


def test_collect_empty():
    snapshot = collect([])
    assert snapshot.total_urls == 0
    assert snapshot.average_clicks_per_url == 0.0
    assert snapshot.most_clicked_url is None
    assert snapshot.recent_urls == ()


def test_collect_mixed_links(now, make_link):
    """Three active and two expired links."""
    earlier = now - timedelta(hours=2)
    links = [
        make_link('exp1', created_at=earlier, minutes=10, click_count=4, seq=1),
        make_link('act1', click_count=1, seq=2),
        make_link('exp2', created_at=earlier, minutes=60, click_count=4, seq=3),
        make_link('act2', click_count=0, seq=4),
        make_link('act3', click_count=1, seq=5),
    ]

    snapshot = collect(links, now=now)

    assert snapshot.total_urls == 5
    assert snapshot.active_urls == 3
    assert snapshot.expired_urls == 2
    assert snapshot.total_clicks == 10
    assert snapshot.average_clicks_per_url == 2.0
    assert snapshot.most_clicked_url.shortcode == 'exp1'  # first of the tied maxima
    assert [link.shortcode for link in snapshot.recent_urls] == ['act3', 'act2', 'exp2', 'act1', 'exp1']


def test_collect_counts_link_expiring_now_as_expired(now, make_link):
    links = [
        make_link('edge', created_at=now - timedelta(minutes=10), minutes=10, seq=1),
        make_link('live', seq=2),
    ]

    snapshot = collect(links, now=now)

    assert links[0].expires_at == now
    assert snapshot.active_urls == 1
    assert snapshot.expired_urls == 1


def test_collect_rounds_average_half_up(make_link):
    links = [make_link(f'code{i}', click_count=clicks) for i, clicks in enumerate([1, 0, 0, 0, 0, 0, 0, 0])]
    # 1 / 8 = 0.125
    assert collect(links).average_clicks_per_url == 0.13


def test_collect_keeps_five_most_recent(make_link):
    links = [make_link(f'code{i}', seq=i) for i in range(1, 8)]
    assert [link.shortcode for link in collect(links).recent_urls] == ['code7', 'code6', 'code5', 'code4', 'code3']


def test_collect_all_zero_clicks(make_link):
    links = [make_link('first'), make_link('second')]
    assert collect(links).most_clicked_url.shortcode == 'first'


def test_aggregator_reads_store(dao, now, make_link):
    dao.insert(make_link('b', seq=2, click_count=0))
    dao.insert(make_link('a', seq=1, click_count=0))

    snapshot = StatisticsAggregator(dao).snapshot(now=now)

    assert snapshot.total_urls == 2
    assert [link.shortcode for link in snapshot.recent_urls] == ['b', 'a']

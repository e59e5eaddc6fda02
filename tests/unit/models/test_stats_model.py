from linkregistry.models import StatsSnapshot


def test_empty_snapshot():
    snapshot = StatsSnapshot()
    assert snapshot.to_dict() == {
        'total_urls': 0,
        'active_urls': 0,
        'expired_urls': 0,
        'total_clicks': 0,
        'average_clicks_per_url': 0.0,
        'most_clicked_url': None,
        'recent_urls': [],
    }


def test_snapshot_serializes_links(make_link):
    link = make_link()
    snapshot = StatsSnapshot(total_urls=1, active_urls=1, most_clicked_url=link, recent_urls=(link,))

    data = snapshot.to_dict()
    assert data['most_clicked_url']['shortcode'] == 'abc123'
    assert [item['shortcode'] for item in data['recent_urls']] == ['abc123']

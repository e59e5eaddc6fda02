from collections.abc import Iterable
from datetime import datetime, UTC
from decimal import Decimal, ROUND_HALF_UP

from linkregistry.constants import Limits
from linkregistry.models import ShortLinkModel, StatsSnapshot


def collect(links: Iterable[ShortLinkModel], now: datetime | None = None) -> StatsSnapshot:
    """Aggregate a snapshot over `links`, given in insertion order.

    Example:
        >>> collect([]).total_urls
        0
    """
    now = now or datetime.now(UTC)
    links = list(links)
    if not links:
        return StatsSnapshot()

    total_clicks = sum(link.click_count for link in links)
    # A link expiring exactly now is no longer counted active
    active = sum(1 for link in links if link.expires_at > now)
    average = Decimal(total_clicks) / Decimal(len(links))

    return StatsSnapshot(
        total_urls=len(links),
        active_urls=active,
        expired_urls=len(links) - active,
        total_clicks=total_clicks,
        average_clicks_per_url=float(average.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)),
        # max() keeps the first of equal keys
        most_clicked_url=max(links, key=lambda link: link.click_count),
        recent_urls=tuple(reversed(links[-Limits.RECENT_URLS :])),
    )


class StatisticsAggregator:
    """Read-only statistics view over a store."""

    def __init__(self, dao):
        self.dao = dao

    def snapshot(self, now: datetime | None = None) -> StatsSnapshot:
        """Raises DataStoreError when the store cannot be listed."""
        return collect(self.dao.list_all(), now=now)

from dataclasses import dataclass, field
from typing import Any

from linkregistry.models.short_link_model import ShortLinkModel


# fmt: off
@dataclass(frozen=True)
class StatsSnapshot:
    total_urls: int = 0                                # Every stored link, expired ones included
    active_urls: int = 0                               # Links with expires_at > now
    expired_urls: int = 0                              # total_urls - active_urls
    total_clicks: int = 0                              # Sum of lifetime click counts
    average_clicks_per_url: float = 0.0                # Rounded to 2 decimals
    most_clicked_url: ShortLinkModel | None = None     # First link with the highest click count
    recent_urls: tuple[ShortLinkModel, ...] = field(default=())  # Newest first
# fmt: on

    def to_dict(self) -> dict[str, Any]:
        return {
            'total_urls': self.total_urls,
            'active_urls': self.active_urls,
            'expired_urls': self.expired_urls,
            'total_clicks': self.total_clicks,
            'average_clicks_per_url': self.average_clicks_per_url,
            'most_clicked_url': None if self.most_clicked_url is None else self.most_clicked_url.to_dict(),
            'recent_urls': [link.to_dict() for link in self.recent_urls],
        }

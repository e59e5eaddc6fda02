from linkregistry.models.short_link_model import ShortLinkModel, ClickEventModel
from linkregistry.models.stats_model import StatsSnapshot


__all__ = [
    'ShortLinkModel',
    'ClickEventModel',
    'StatsSnapshot',
]

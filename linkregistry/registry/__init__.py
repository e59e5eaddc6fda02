from linkregistry.registry.clicks import ClickRecorder
from linkregistry.registry.resolver import Redirect, RedirectStatus, RedirectResolver
from linkregistry.registry.statistics import StatisticsAggregator, collect
from linkregistry.registry.sweeper import ExpirySweeper, SweepTimer
from linkregistry.registry.registry import LinkRegistry, AddLinksResult, build_dao, build_registry


__all__ = [
    'ClickRecorder',
    'Redirect',
    'RedirectStatus',
    'RedirectResolver',
    'StatisticsAggregator',
    'collect',
    'ExpirySweeper',
    'SweepTimer',
    'LinkRegistry',
    'AddLinksResult',
    'build_dao',
    'build_registry',
]

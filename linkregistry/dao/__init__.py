from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.memory import ShortLinkMemoryDAO
from linkregistry.dao.redis import ShortLinkRedisDAO


__all__ = [
    'ShortLinkBaseDAO',
    'ShortLinkMemoryDAO',
    'ShortLinkRedisDAO',
]

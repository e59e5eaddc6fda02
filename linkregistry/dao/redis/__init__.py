from linkregistry.dao.redis.redis_key_schema import RedisKeySchema
from linkregistry.dao.redis.mixins import RedisClientMixin
from linkregistry.dao.redis.short_link_redis_dao import ShortLinkRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'ShortLinkRedisDAO',
]

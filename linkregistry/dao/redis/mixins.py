"""Redis client setup shared by the Redis-backed DAOs

The client is either injected (tests, shared connection pools) or built from
the `redis` section of the Lambda's AppConfig document, whose keys arrive
here prefixed with `redis_` (see `linkregistry.registry.build_dao`).

Example:
    >>> dao = ShortLinkRedisDAO(redis_host='localhost', redis_port=6379, prefix='linkregistry:dev')
    >>> dao.keys.link_key('abc123')
    'linkregistry:dev:links:code:abc123'
"""

from typing import Optional

import redis

from linkregistry.dao.redis.redis_key_schema import RedisKeySchema
from linkregistry.dao.exceptions import DataStoreError


class RedisClientMixin:
    """Owns `self.redis` and `self.keys` for a DAO and checks connectivity on construction.

    Raises:
        DataStoreError: Redis did not answer the construction-time PING.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_ssl: Optional[bool] = False,
        redis_socket_timeout: Optional[float] = 5.0,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
    ):
        self.redis = redis_client or redis.Redis(
            host=redis_host,
            port=int(redis_port),
            db=int(redis_db),
            decode_responses=redis_decode_responses,
            username=redis_username,
            password=redis_password,
            ssl=bool(redis_ssl),
            socket_timeout=None if redis_socket_timeout is None else float(redis_socket_timeout),
        )
        self.keys = RedisKeySchema(prefix=prefix)

        self._healthcheck()

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis; False (or DataStoreError when `raise_error`) if it is unreachable"""
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if not raise_error:
                return False
            info = self.redis.connection_pool.connection_kwargs
            location = f"{info.get('host')}:{info.get('port')}/{info.get('db')}"
            raise DataStoreError(f"Can't connect to Redis at {location}. Check the provided configuration parameters.") from e
        return True

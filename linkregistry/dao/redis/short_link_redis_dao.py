"""Data Access Object (DAO) implementation for managing short links in Redis

This module provides a Redis-based implementation of ShortLinkBaseDAO.

Responsibilities:
    - Insert and retrieve short links from Redis;
    - Record clicks with per-link optimistic transactions;
    - Purge expired links on demand;
    - Maintain the insertion index and counter;
    - Provide defensive error handling and raise appropriate DAO exceptions.

NOTE: Links are stored without a Redis TTL. An expired link keeps occupying
      its shortcode and stays visible to lookups and statistics until a sweep
      removes it. Redirects and click recording refuse it on their own.

Classes:
    ShortLinkRedisDAO:
        DAO for storing and retrieving ShortLinkModel in a Redis datastore.

Example:
    >>> from linkregistry.dao.redis import ShortLinkRedisDAO

    >>> dao = ShortLinkRedisDAO(prefix="linkregistry:dev")
    >>> dao.insert(short_link)
    <ShortLinkRedisDAO>

    >>> dao.get("abc123").target
    'https://example.com/page'

    >>> dao.record_click("abc123", ClickEventModel(timestamp=datetime.now(UTC))).click_count
    1
"""

import logging
from datetime import datetime, UTC

import redis
from beartype import beartype

from linkregistry.models import ShortLinkModel, ClickEventModel
from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.redis.mixins import RedisClientMixin
from linkregistry.dao.redis.helpers import handle_redis_connection_error, encode_link, decode_link
from linkregistry.dao.exceptions import ShortLinkAlreadyExistsError, ShortLinkNotFoundError, ShortLinkExpiredError


logger = logging.getLogger(__name__)


class ShortLinkRedisDAO(RedisClientMixin, ShortLinkBaseDAO):
    """Redis-based Data Access Object (DAO) for managing short links

    This class implements the ShortLinkBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.
    """

    @handle_redis_connection_error
    @beartype
    def insert(self, short_link: ShortLinkModel, **kwargs) -> 'ShortLinkRedisDAO':
        """Insert a short link into Redis

        The existence check and the write happen under WATCH on the link key,
        so two concurrent inserts of the same shortcode cannot both succeed.

        Raises:
            ShortLinkAlreadyExistsError:
                If a short link with the same shortcode already exists.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        link_key = self.keys.link_key(short_link.shortcode)

        # NOTE: The EXISTS check and the SET/ZADD pair form one optimistic
        #       transaction. If another writer touches the link key between
        #       WATCH and EXEC, EXEC aborts with WatchError and the check runs
        #       again, this time seeing the competing record:
        #
        #       (writer 1): WATCH <app>:links:code:<shortcode>
        #       (writer 1): EXISTS => 0
        #       (writer 2): SET <app>:links:code:<shortcode> ...
        #       (writer 1): MULTI / SET / ZADD / EXEC => aborted
        #       (writer 1): WATCH, EXISTS => 1 => ShortLinkAlreadyExistsError
        with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    pipe.watch(link_key)
                    if pipe.exists(link_key):
                        raise ShortLinkAlreadyExistsError(f"Short link with code '{short_link.shortcode}' already exists.")
                    pipe.multi()
                    pipe.set(link_key, encode_link(short_link))
                    pipe.zadd(self.keys.index_key(), {short_link.shortcode: short_link.seq})
                    pipe.execute()
                    return self
                except redis.exceptions.WatchError:
                    logger.debug('Concurrent write on short link, retrying insert.', extra={'shortcode': short_link.shortcode})
                    continue

    @handle_redis_connection_error
    @beartype
    def get(self, shortcode: str, **kwargs) -> ShortLinkModel:
        """Retrieve a stored short link by shortcode, expired or not

        Raises:
            ShortLinkNotFoundError:
                If the short link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur or the record is corrupted.

        Example:
            >>> dao.get('abc123')
            ShortLinkModel(target='https://example.com', shortcode='abc123', ...)
        """
        raw = self.redis.get(self.keys.link_key(shortcode))
        if raw is None:
            raise ShortLinkNotFoundError(f"Short link with code '{shortcode}' not found.")
        return decode_link(raw, shortcode)

    @handle_redis_connection_error
    @beartype
    def exists(self, shortcode: str, **kwargs) -> bool:
        return bool(self.redis.exists(self.keys.link_key(shortcode)))

    @handle_redis_connection_error
    @beartype
    def record_click(self, shortcode: str, click: ClickEventModel, now: datetime | None = None, **kwargs) -> ShortLinkModel:
        """Append a click to a live link and bump its lifetime counter

        The read-modify-write runs under WATCH on the single link key, so a
        concurrent click on the same link retries instead of being lost, and
        clicks on other links never conflict.

        Raises:
            ShortLinkNotFoundError:
                If no short link with the given shortcode exists.
            ShortLinkExpiredError:
                If the link is past its expiry. Nothing is written.
            DataStoreError:
                If Redis connectivity issues occur.
        """
        now = now or datetime.now(UTC)
        link_key = self.keys.link_key(shortcode)

        with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    pipe.watch(link_key)
                    raw = pipe.get(link_key)
                    if raw is None:
                        raise ShortLinkNotFoundError(f"Short link with code '{shortcode}' not found.")

                    short_link = decode_link(raw, shortcode)
                    if short_link.is_expired(now):
                        raise ShortLinkExpiredError(f"Short link with code '{shortcode}' expired at {short_link.expires_at.isoformat()}.")

                    updated = short_link.with_click(click)
                    pipe.multi()
                    pipe.set(link_key, encode_link(updated))
                    pipe.execute()
                    return updated
                except redis.exceptions.WatchError:
                    logger.debug('Concurrent click on short link, retrying.', extra={'shortcode': shortcode})
                    continue

    @handle_redis_connection_error
    @beartype
    def delete_expired_before(self, now: datetime, **kwargs) -> int:
        """Delete every link with expires_at < now

        A plain read picks the candidates, then only the candidate keys are
        watched and re-read before the delete. A link that was cleared and
        inserted again in between aborts the transaction instead of being
        deleted, and live links keep taking clicks without blocking the sweep.

        Returns:
            int: number of deleted links.
        """
        index_key = self.keys.index_key()
        shortcodes = self.redis.zrange(index_key, 0, -1)
        if not shortcodes:
            return 0

        raws = self.redis.mget([self.keys.link_key(code) for code in shortcodes])
        expired, dangling = self._sweep_candidates(shortcodes, raws, now)
        candidates = expired + dangling
        if not candidates:
            return 0

        candidate_keys = [self.keys.link_key(code) for code in candidates]
        with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    pipe.watch(*candidate_keys)
                    expired, dangling = self._sweep_candidates(candidates, pipe.mget(candidate_keys), now)
                    if not expired and not dangling:
                        pipe.unwatch()
                        return 0
                    pipe.multi()
                    if expired:
                        pipe.delete(*[self.keys.link_key(code) for code in expired])
                    pipe.zrem(index_key, *(expired + dangling))
                    pipe.execute()
                    return len(expired)
                except redis.exceptions.WatchError:
                    logger.debug('Concurrent write during expiry sweep, re-reading candidates.')
                    continue

    @staticmethod
    def _sweep_candidates(shortcodes: list[str], raws: list[str | None], now: datetime) -> tuple[list[str], list[str]]:
        """Split `shortcodes` into (expired, dangling); dangling codes are indexed but have no record"""
        expired, dangling = [], []
        for code, raw in zip(shortcodes, raws):
            if raw is None:
                dangling.append(code)
            elif decode_link(raw, code).expires_at < now:
                expired.append(code)
        return expired, dangling

    @handle_redis_connection_error
    def clear(self, **kwargs) -> None:
        """Remove every stored link. The insertion counter is kept."""
        index_key = self.keys.index_key()
        shortcodes = self.redis.zrange(index_key, 0, -1)

        with self.redis.pipeline(transaction=True) as pipe:
            if shortcodes:
                pipe.delete(*[self.keys.link_key(code) for code in shortcodes])
            pipe.delete(index_key)
            pipe.execute()

    @handle_redis_connection_error
    def list_all(self, **kwargs) -> list[ShortLinkModel]:
        """Return every stored link in insertion order"""
        shortcodes = self.redis.zrange(self.keys.index_key(), 0, -1)
        if not shortcodes:
            return []

        raws = self.redis.mget([self.keys.link_key(code) for code in shortcodes])
        # Links deleted between ZRANGE and MGET come back as None
        return [decode_link(raw, code) for code, raw in zip(shortcodes, raws) if raw is not None]

    @handle_redis_connection_error
    def count(self, increment: bool = False, **kwargs) -> int:
        """Retrieve the insertion counter

        Example:
            >>> dao.count(increment=False)
            123
            >>> dao.count(increment=True)
            124
        """
        if increment:
            return int(self.redis.incr(self.keys.counter_key()))
        else:
            return int(self.redis.get(self.keys.counter_key()) or 0)

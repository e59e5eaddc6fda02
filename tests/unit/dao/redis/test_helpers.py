"""Unit tests for Redis DAO helpers.

Test coverage includes:
    1. handle_redis_connection_error
       - Ensures the wrapped method executes and returns its result.
       - Ensures Redis connection and timeout errors become DataStoreError.
       - Confirms functools.wraps preserves the original function's metadata.
    2. Link document codec
       - Ensures encode_link() output decodes back to the same link.
       - Ensures malformed documents raise DataStoreError.
"""

from unittest.mock import MagicMock

import pytest
import redis

from linkregistry.dao.redis.helpers import handle_redis_connection_error, encode_link, decode_link
from linkregistry.dao.exceptions import DataStoreError


class DummyDAO:
    def __init__(self):
        self.redis = MagicMock()
        self.redis.connection_pool.connection_kwargs = {'host': 'localhost', 'port': 6379, 'db': 0}

    @handle_redis_connection_error
    def ping(self):
        return 'OK'

    @handle_redis_connection_error
    def fail(self, error):
        raise error


# -------------------------------
# 1. handle_redis_connection_error
# -------------------------------


def test_decorator_allows_normal_execution():
    assert DummyDAO().ping() == 'OK'


@pytest.mark.parametrize('error', [redis.exceptions.ConnectionError('Cannot connect'), redis.exceptions.TimeoutError('Timeout')])
def test_decorator_transforms_redis_connectivity_errors(error):
    with pytest.raises(DataStoreError, match="Can't connect to Redis at localhost:6379/0."):
        DummyDAO().fail(error)


def test_decorator_lets_other_errors_through():
    with pytest.raises(ValueError):
        DummyDAO().fail(ValueError('not redis'))


def test_decorator_preserves_function_metadata():
    @handle_redis_connection_error
    def sample_function(self):
        """This is a sample docstring."""

    assert sample_function.__name__ == 'sample_function'
    assert sample_function.__doc__ == 'This is a sample docstring.'


# -------------------------------
# 2. Link document codec
# -------------------------------


def test_encode_decode_link(make_link):
    short_link = make_link()
    assert decode_link(encode_link(short_link), 'abc123') == short_link


def test_decode_link_accepts_bytes(make_link):
    short_link = make_link()
    assert decode_link(encode_link(short_link).encode('utf-8'), 'abc123') == short_link


@pytest.mark.parametrize('raw', ['not json', '{}', '{"target": "x", "shortcode": "abc123", "created_at": "yesterday"}'])
def test_decode_link_with_corrupted_document(raw):
    with pytest.raises(DataStoreError, match="Corrupted record for short link 'abc123'."):
        decode_link(raw, 'abc123')

from unittest.mock import MagicMock

import pytest
import redis


@pytest.fixture
def app_prefix() -> str:
    return 'testapp:test'


@pytest.fixture
def redis_client() -> redis.Redis:
    """Mock a Redis pipeline-compatible client."""
    client = MagicMock(spec=redis.client.Pipeline)
    client.connection_pool = MagicMock(
        spec=redis.ConnectionPool,
        connection_kwargs={'host': '203.0.113.1', 'port': 18000, 'db': 5},
    )
    client.exists.return_value = False
    client.pipeline.return_value = client
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    return client

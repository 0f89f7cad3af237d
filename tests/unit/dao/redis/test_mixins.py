"""Unit tests for Redis-based mixins.

Test coverage includes:
    1. Initialization and configuration
       - Ensures correct initialization with or without a Redis client.
       - Ensures socket timeouts are passed to the Redis client.
       - Confirms invalid Redis configuration raises DataStoreError.
    2. Healthcheck behavior
       - Healthcheck pings Redis.
       - Unreachable Redis raises DataStoreError, or returns False when asked not to raise.
       - Redis timeouts raise DataStoreTimeoutError.
"""

from unittest.mock import MagicMock, patch

import pytest
import redis

from palladium.dao.exceptions import DataStoreError, DataStoreTimeoutError
from palladium.dao.redis.mixins import RedisClientMixin, DEFAULT_SOCKET_TIMEOUT


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def redis_client():
    _redis_client = MagicMock(
        spec=redis.Redis, connection_pool=MagicMock(spec=redis.ConnectionPool, connection_kwargs={'host': 'redis', 'port': 6379, 'db': 0})
    )
    _redis_client.ping.return_value = True
    return _redis_client


@pytest.fixture
def redis_config():
    return {
        'redis_host': 'redis',
        'redis_port': 6379,
        'redis_db': 0,
        'redis_decode_responses': True,
        'redis_username': 'default',
        'redis_password': 'password',
    }


# -------------------------------
# 1. Initialization and configuration
# -------------------------------


def test_initialize_without_redis_client(redis_config):
    """Ensure DAO creates a Redis client when none is provided."""
    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        redis_mock_instance = redis_mock.return_value
        mixin = RedisClientMixin(**redis_config, prefix='testapp:test')

        redis_mock.assert_called_once_with(
            host='redis',
            port=6379,
            db=0,
            decode_responses=True,
            username='default',
            password='password',
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
        )
        assert mixin.redis is redis_mock_instance
        assert mixin.keys.prefix == 'testapp:test'


def test_initialize_with_socket_timeouts(redis_config):
    """Ensure socket timeouts bound both connecting and reading."""
    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        RedisClientMixin(**redis_config, redis_socket_timeout=5.0)
        kwargs = redis_mock.call_args.kwargs
        assert kwargs['socket_timeout'] == 5.0
        assert kwargs['socket_connect_timeout'] == 5.0

    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        RedisClientMixin(**redis_config, redis_socket_timeout=2.0, redis_socket_connect_timeout=0.5)
        kwargs = redis_mock.call_args.kwargs
        assert kwargs['socket_timeout'] == 2.0
        assert kwargs['socket_connect_timeout'] == 0.5


def test_initialize_without_socket_timeout_stays_bounded(redis_config):
    """Ensure a missing or null socket_timeout still bounds every Redis call."""
    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        RedisClientMixin(**redis_config, redis_socket_timeout=None)
        kwargs = redis_mock.call_args.kwargs
        assert kwargs['socket_timeout'] == DEFAULT_SOCKET_TIMEOUT
        assert kwargs['socket_connect_timeout'] == DEFAULT_SOCKET_TIMEOUT


def test_initialize_with_string_port_and_db(redis_config):
    """Ensure port and db given as strings (e.g. from JSON config) are cast to int."""
    redis_config.update({'redis_port': '6380', 'redis_db': '2'})
    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        RedisClientMixin(**redis_config)
        assert redis_mock.call_args.kwargs['port'] == 6380
        assert redis_mock.call_args.kwargs['db'] == 2


def test_initialize_with_redis_client(redis_client):
    """Ensure DAO correctly uses a pre-initialized Redis client."""
    mixin = RedisClientMixin(redis_client=redis_client, prefix='testapp:test')
    assert mixin.redis is redis_client


def test_initialize_with_invalid_redis_config(redis_config):
    """Ensure invalid Redis config raises DataStoreError."""
    redis_config.update({'redis_host': '203.0.113.1', 'redis_port': 18000, 'redis_db': 5})
    exception_message = "Can't connect to Redis at 203.0.113.1:18000/5. Check the provided configuration parameters."

    with patch('palladium.dao.redis.mixins.redis.Redis', autospec=True) as redis_mock:
        redis_mock_instance = redis_mock.return_value
        redis_mock_instance.ping.side_effect = redis.exceptions.ConnectionError('Connection error')
        redis_mock_instance.connection_pool = MagicMock()
        redis_mock_instance.connection_pool.connection_kwargs = {'host': '203.0.113.1', 'port': 18000, 'db': 5}

        with pytest.raises(DataStoreError, match=exception_message) as exc_info:
            RedisClientMixin(**redis_config, prefix='testapp:test')

        assert exc_info.value.operation == 'healthcheck'


# -------------------------------
# 2. Healthcheck behavior
# -------------------------------


def test_healthcheck_passes(redis_client):
    """Ensure healthcheck passes when Redis responds."""
    mixin = RedisClientMixin(redis_client=redis_client, prefix='testapp:test')
    redis_client.ping.assert_called_once()  # initialization performs a healthcheck

    pong = mixin.healthcheck()

    assert pong
    assert redis_client.ping.call_count == 2  # once in initialization, once separately


def test_healthcheck_fails(redis_client):
    """Ensure healthcheck raises DataStoreError when Redis is unreachable."""
    redis_client.ping.side_effect = redis.exceptions.ConnectionError('Connection error')

    with pytest.raises(DataStoreError):
        RedisClientMixin(redis_client=redis_client, prefix='testapp:test')


def test_healthcheck_without_raising(redis_client):
    mixin = RedisClientMixin(redis_client=redis_client)
    redis_client.ping.side_effect = redis.exceptions.ConnectionError('Connection error')

    assert mixin.healthcheck(raise_error=False) is False


def test_healthcheck_times_out(redis_client):
    """Ensure a Redis timeout during healthcheck raises DataStoreTimeoutError."""
    mixin = RedisClientMixin(redis_client=redis_client)
    redis_client.ping.side_effect = redis.exceptions.TimeoutError('Timeout connecting to server')

    with pytest.raises(DataStoreTimeoutError, match="Can't connect to Redis at redis:6379/0."):
        mixin.healthcheck()

"""Redis mixin providing shared client initialization and connectivity checks.

Responsibilities:
    - Initialize Redis client (with bounded socket timeouts)
    - Healthcheck Redis client

Classes:
    - RedisClientMixin: Base mixin to inject Redis key management, client setup & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class DirectiveRedisDAO(RedisClientMixin, DirectiveBaseDAO):
        ...     pass
        ...
        >>> dao = DirectiveRedisDAO(prefix="palladium:prod", redis_socket_timeout=2.0)
        >>> dao.healthcheck()
        True
"""

from typing import Optional

import redis

from palladium.dao.redis.redis_key_schema import RedisKeySchema
from palladium.dao.exceptions import DataStoreError, DataStoreTimeoutError


# Seconds a Redis call may block when the configuration sets no socket_timeout
DEFAULT_SOCKET_TIMEOUT = 2.0


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed DAOs.

    Attributes:
        redis (redis.Redis):
            Active Redis client instance used by subclasses. The client's
            connection pool is safe to share between threads.

        keys (RedisKeySchema):
            Helper class for generating namespaced Redis key names.

    Methods:
        healthcheck(raise_error: bool = True) -> bool:
            Ping Redis to verify connectivity.
            Optionally raise a DataStoreError if unreachable.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_socket_timeout: Optional[float] = DEFAULT_SOCKET_TIMEOUT,
        redis_socket_connect_timeout: Optional[float] = None,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
    ):
        """Initialize a Redis-based DAO for directive management

        The option is given to either use an existing Redis client instance or
        create one via the appropriate Redis connection parameters.

        Args:
            redis_host (Optional[str]):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (Optional[int]):
                Redis server port. Defaults to 6379.

            redis_db (Optional[int]):
                Redis database index. Defaults to 0.

            redis_decode_responses (Optional[bool]):
                If True, decodes Redis responses. Defaults to True.

            redis_username (Optional[str]):
                Username for Redis authentication (if required).

            redis_password (Optional[str]):
                Password for Redis authentication (if required).

            redis_socket_timeout (Optional[float]):
                Seconds to wait for a Redis reply before raising a timeout. Defaults to
                DEFAULT_SOCKET_TIMEOUT, which also replaces None.

            redis_socket_connect_timeout (Optional[float]):
                Seconds to wait for a connection to Redis. Defaults to redis_socket_timeout.

            redis_client (Optional[redis.Redis]):
                Pre-initialized Redis client. If None, a new client is created.

            prefix (Optional[str]):
                Namespace prefix for all Redis keys, e.g. 'app:env'.

        Raises:
            DataStoreError:
                If Redis healthcheck fails (connectivity issues).
        """
        if redis_client is None:
            if redis_socket_timeout is None:
                redis_socket_timeout = DEFAULT_SOCKET_TIMEOUT
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
                socket_timeout=redis_socket_timeout,
                socket_connect_timeout=redis_socket_connect_timeout or redis_socket_timeout,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)

        self.healthcheck()

    def healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis to healthcheck connectivity

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if Redis is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreTimeoutError:
                If Redis doesn't answer in time and raise_error=True.
            DataStoreError:
                If Redis connection cannot be established and raise_error=True.

        Example:
            >>> self.healthcheck()
            True
        """
        try:
            self.redis.ping()
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as e:
            if raise_error:
                info = self.redis.connection_pool.connection_kwargs
                redis_host = info.get('host')
                redis_port = info.get('port')
                redis_db = info.get('db')
                error_class = DataStoreTimeoutError if isinstance(e, redis.exceptions.TimeoutError) else DataStoreError
                raise error_class(
                    f"Can't connect to Redis at {redis_host}:{redis_port}/{redis_db}. Check the provided configuration parameters.",
                    operation='healthcheck',
                ) from e
            return False
        else:
            return True

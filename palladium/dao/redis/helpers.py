import functools
from typing import Any
from collections.abc import Callable

import redis

from palladium.dao.exceptions import DataStoreError, DataStoreTimeoutError


__all__ = []


def _redis_address(client: redis.Redis) -> str:
    info = client.connection_pool.connection_kwargs
    return f'{info.get("host")}:{info.get("port")}/{info.get("db")}'


def _directive_id(args: tuple, kwargs: dict) -> str | None:
    target = kwargs.get('directive_id', kwargs.get('directive', args[0] if args else None))
    if isinstance(target, str):
        return target
    directive_id = getattr(target, 'id', None)
    return directive_id if isinstance(directive_id, str) else None


def handle_redis_connection_error[F: Callable[..., Any]](method: F) -> F:
    """Wrap Redis-interacting DAO methods to handle connection errors, timeouts and command errors

    The raised DataStoreError carries the failing operation (method name) and
    the directive id the method was called with, if any.

    Args:
        method (Callable[..., Any]):
            DAO method performing Redis operations which may raise redis.exceptions.RedisError.

    Returns:
        Callable[..., Any]:
            Wrapped method which raises DataStoreTimeoutError on timeouts and
            DataStoreError on connectivity issues or any other Redis error
            (e.g. OOM, READONLY replica, script errors).

    Example:
        >>> @handle_redis_connection_error
        ... def get(self, directive_id):
        ...     return self.redis.hgetall(directive_id)
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        context = {'operation': method.__name__, 'directive_id': _directive_id(args, kwargs)}
        try:
            return method(self, *args, **kwargs)
        except redis.exceptions.TimeoutError as e:
            raise DataStoreTimeoutError(f"Redis at {_redis_address(self.redis)} timed out during '{method.__name__}'.", **context) from e
        except redis.exceptions.ConnectionError as e:
            raise DataStoreError(f"Can't connect to Redis at {_redis_address(self.redis)}. Failed during '{method.__name__}'.", **context) from e
        except redis.exceptions.RedisError as e:
            raise DataStoreError(f"Redis at {_redis_address(self.redis)} rejected '{method.__name__}': {e}", **context) from e

    return wrapper

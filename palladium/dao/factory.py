"""Select the directive backend named by the application config

`load_config()` returns the active backend's section only, e.g.:

    {"redis": {"host": "...", "port": 6379, "db": 0, "socket_timeout": 2}}
    {"memory": {"timeout": 1.0}}

Redis options map onto `redis_*` keyword arguments of DirectiveRedisDAO.
The in-memory backend is one instance per process (and per timeout), so all
handlers running in the same process see the same directives.
"""

import functools
import logging
from typing import Any

from palladium.dao.base import DirectiveBaseDAO
from palladium.dao.memory import DirectiveMemoryDAO
from palladium.dao.redis import DirectiveRedisDAO
from palladium.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ('redis', 'memory')


@functools.cache
def _memory_dao(timeout: float) -> DirectiveMemoryDAO:
    return DirectiveMemoryDAO(timeout=timeout)


def directive_dao(app_config: dict[str, Any], prefix: str | None = None) -> DirectiveBaseDAO:
    """Build the DAO for the backend configured in `app_config`

    Args:
        app_config (dict[str, Any]):
            Function config as returned by load_config(): a single {backend: options} entry.
        prefix (str | None):
            Namespace prefix for backend keys, e.g. 'palladium:dev'.

    Returns:
        DirectiveBaseDAO: ready-to-use DAO.

    Raises:
        BadConfigurationError:
            If no backend, more than one backend, or an unsupported backend is configured.
        DataStoreError:
            If the backend can't be reached.

    Example:
        >>> dao = directive_dao({'redis': {'host': 'localhost', 'port': 6379, 'db': 0}}, prefix='palladium:local')
        >>> type(dao).__name__
        'DirectiveRedisDAO'
    """
    if len(app_config) != 1:
        raise BadConfigurationError(f'Expected exactly one active backend in config (given: {sorted(app_config)}).')

    backend, options = next(iter(app_config.items()))
    options = options or {}
    logger.debug('Using %s as the directive backend.', backend)

    if backend == 'redis':
        redis_config = {f'redis_{k}': v for k, v in options.items()}
        return DirectiveRedisDAO(**redis_config, prefix=prefix)
    if backend == 'memory':
        return _memory_dao(float(options.get('timeout', 1.0)))

    raise BadConfigurationError(f"Unsupported directive backend '{backend}' (supported: {', '.join(SUPPORTED_BACKENDS)}).")

"""Helper utilities for AWS lambda functions.

Functions:
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler: Callable) -> Callable
        Decorator: Turn unhandled exceptions into a 500 response
    handle_data_store_error(handler: Callable) -> Callable
        Decorator: Turn backend failures into 503 and 504 responses
    get_header(event: dict, name: str) -> str | None
        Case-insensitive lookup of an HTTP header in an API Gateway event
"""

import os
import json
import logging
import functools
from typing import Any
from collections.abc import Callable

from palladium.constants import UNKNOWN_INTERNAL_SERVER_ERROR, DATA_STORE_UNAVAILABLE, DATA_STORE_TIMEOUT
from palladium.dao.exceptions import DataStoreError, DataStoreTimeoutError
from palladium.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        KeyError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        KeyError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise KeyError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable[[dict, Any], dict]) -> Callable[[dict, Any], dict]:
    """Decorator: respond with 500 instead of crashing on unhandled exceptions

    When running locally the original exception is re-raised, so SAM shows
    the full traceback.

    Example:
        >>> @guarantee_500_response
        ... def lambda_handler(event, context):
        ...     raise RuntimeError('boom')
        >>> lambda_handler({}, None)['statusCode']
        500
    """

    @functools.wraps(handler)
    def wrapper(event: dict, context: Any) -> dict:
        try:
            return handler(event, context)
        except Exception:
            if running_locally():
                raise
            logger.exception('Unhandled exception in lambda handler. Responding with 500.', extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR})
            return {
                'statusCode': 500,
                'body': json.dumps({'message': 'Internal Server Error', 'errorCode': UNKNOWN_INTERNAL_SERVER_ERROR}),
            }

    return wrapper


def get_header(event: dict[str, Any], name: str) -> str | None:
    """Return an HTTP header from an API Gateway event, ignoring header name case."""
    headers = event.get('headers') or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def handle_data_store_error(handler: Callable[[dict, Any], dict]) -> Callable[[dict, Any], dict]:
    """Decorator: turn backend failures into 503/504 responses

    DataStoreTimeoutError becomes a 504, any other DataStoreError a 503.
    Both carry the failed DAO operation and directive id in the logs.
    """

    @functools.wraps(handler)
    def wrapper(event: dict, context: Any) -> dict:
        try:
            return handler(event, context)
        except DataStoreTimeoutError as e:
            logger.error(
                'Directive backend timed out. Responding with 504.',
                extra={'event': DATA_STORE_TIMEOUT, 'operation': e.operation, 'directive_id': e.directive_id, 'reason': str(e)},
            )
            return {
                'statusCode': 504,
                'body': json.dumps({'message': 'Gateway Timeout', 'errorCode': DATA_STORE_TIMEOUT}),
            }
        except DataStoreError as e:
            logger.error(
                'Directive backend unavailable. Responding with 503.',
                extra={'event': DATA_STORE_UNAVAILABLE, 'operation': e.operation, 'directive_id': e.directive_id, 'reason': str(e)},
            )
            return {
                'statusCode': 503,
                'body': json.dumps({'message': 'Service Unavailable', 'errorCode': DATA_STORE_UNAVAILABLE}),
            }

    return wrapper

import json
import logging
from typing import Any

from palladium import __version__
from palladium.dao import directive_dao
from palladium.dao.exceptions import DataStoreError
from palladium.constants import DATA_STORE_UNAVAILABLE
from palladium.utils import load_config, app_prefix
from palladium.utils.helpers import guarantee_500_response
from palladium.lambdas.health.constants import HEALTHY, UNHEALTHY


logger = logging.getLogger(__name__)


def response_200() -> dict:
    return {
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json', 'Cache-Control': 'no-store'},
        'body': json.dumps({'status': 'ok', 'version': __version__}),
    }


def response_503() -> dict:
    return {
        'statusCode': 503,
        'headers': {'Content-Type': 'application/json', 'Cache-Control': 'no-store'},
        'body': json.dumps({'status': 'unavailable', 'version': __version__, 'errorCode': DATA_STORE_UNAVAILABLE}),
    }


@guarantee_500_response
def lambda_handler(event: dict, context: Any) -> dict:
    """Report whether the directive backend answers

    HTTP responses:
        200: {"status": "ok", "version": <package version>}
        503: {"status": "unavailable", ...} when the backend is unreachable or times out
    """
    app_config = load_config('health')

    try:
        healthy = directive_dao(app_config, prefix=app_prefix()).healthcheck()
    except DataStoreError as e:
        logger.warning(
            'Directive backend healthcheck failed. Responding with 503.',
            extra={'event': UNHEALTHY, 'operation': e.operation, 'reason': str(e)},
        )
        return response_503()

    if not healthy:
        logger.warning('Directive backend healthcheck failed. Responding with 503.', extra={'event': UNHEALTHY})
        return response_503()

    logger.info('Directive backend is healthy. Responding with 200.', extra={'event': HEALTHY, 'backend': next(iter(app_config))})
    return response_200()

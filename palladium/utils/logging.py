"""Application-wide logging initialization

IMPORTANT: Call `initialize_logging()` in the lambda handler's `__init__.py` file
before any other logging is done.

Logging format:
{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "INFO",
    "logger": "palladium.lambdas.redirect.app",
    "message": "Redirecting client to destination. Responding with 307.",
    "directive_id": "0d1c...",
    "event": "REDIRECT_SUCCESS"
}
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from palladium.constants import ENV


# Attributes every LogRecord carries; anything else on a record came from `extra`
_RECORD_ATTRS = frozenset(logging.LogRecord('', logging.NOTSET, '', 0, '', (), None).__dict__) | {'message', 'asctime'}


def _utc_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created, tz=UTC).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object: fixed fields first, then `extra` fields

    Values that aren't JSON-serializable (datetimes, enums, ...) are written with str().
    """

    def format(self, record: logging.LogRecord) -> str:
        log = {
            'timestamp': _utc_timestamp(record.created),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        log.update((key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS)

        if record.exc_info:
            log['exc_info'] = self.formatException(record.exc_info)
        if record.stack_info:
            log['stack_info'] = self.formatStack(record.stack_info)

        return json.dumps(log, default=str)


def initialize_logging() -> None:
    log_level = os.getenv(ENV.App.LOG_LEVEL, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'json': {
                    '()': JsonFormatter,
                }
            },
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {
                'level': log_level,
                'handlers': ['stdout'],
            },
        }
    )

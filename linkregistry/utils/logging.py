"""Structured JSON logging for the registry Lambdas

`initialize_logging()` runs once per cold start from each Lambda package's
`__init__.py`, before the handler module logs anything. Every record is a
single JSON line on stdout so CloudWatch Logs Insights can query fields:

{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "INFO",
    "logger": "linkregistry.registry.registry",
    "message": "Short link created.",
    "app_env": "dev",
    "function": "linkregistry-dev-shorten-url",
    "shortcode": "abc123"
}

Values passed through `extra=` become top-level fields. Datetimes, enums and
other non-JSON values are rendered with str().
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from linkregistry.constants import ENV


# Attributes every LogRecord carries; anything else arrived through `extra=`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', logging.INFO, '', 0, '', None, None))) | {'message', 'asctime'}

# Chatty third-party loggers pinned above the application level
QUIET_LOGGERS = ('botocore', 'boto3', 'urllib3')


class LambdaContextFilter(logging.Filter):
    """Stamp the deployment environment and Lambda function name on each record"""

    def __init__(self, name: str = ''):
        super().__init__(name)
        self.app_env = os.environ.get(ENV.App.APP_ENV, 'local').lower()
        self.function = os.environ.get('AWS_LAMBDA_FUNCTION_NAME')

    def filter(self, record: logging.LogRecord) -> bool:
        record.app_env = self.app_env
        if self.function:
            record.function = self.function
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec='milliseconds').replace('+00:00', 'Z')
        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        log.update({key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS and key not in log})
        return json.dumps(log, default=str)


def initialize_logging() -> None:
    log_level = os.getenv(ENV.App.LOG_LEVEL, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'filters': {'lambda_context': {'()': LambdaContextFilter}},
            'formatters': {'json': {'()': JsonFormatter}},
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'filters': ['lambda_context'],
                    'stream': 'ext://sys.stdout',
                }
            },
            'loggers': {name: {'level': 'WARNING'} for name in QUIET_LOGGERS},
            'root': {'level': log_level, 'handlers': ['stdout']},
        }
    )

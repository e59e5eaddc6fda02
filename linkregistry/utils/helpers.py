"""Helper utilities for AWS lambda functions.

Functions:
    base_url() -> str
        Extract correct public base URL from API Gateway event
    get_short_url() -> str
        Get string representation of short URL for a given shortcode
    require_environment(*names: str) -> Callable
        Decorator: Ensure required environment variables are present
    guarantee_500_response(handler) -> Callable
        Decorator: Turn any uncaught exception in a handler into a 500 response

Example:
    Typical usage inside a Lambda handler:

        >>> from linkregistry.utils.helpers import base_url
        >>> event = {
        ...     "requestContext": {
        ...         "domainName": "abc123.execute-api.us-east-1.amazonaws.com",
        ...         "stage": "Prod"
        ...     }
        ... }
        >>> base_url(event)
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod'

        >>> base_url({})
        'http://localhost:3000'
"""

import os
import json
import logging
import functools
from typing import Any
from collections.abc import Callable

from linkregistry.constants import UNKNOWN_INTERNAL_SERVER_ERROR
from linkregistry.exceptions import MissingEnvironmentVariableError


logger = logging.getLogger(__name__)

LOCAL_ORIGIN = 'http://localhost:3000'


def base_url(event: dict[str, Any], fallback: str = LOCAL_ORIGIN) -> str:
    """Extract public base URL from API Gateway event

    If a custom domain is configured, the stage name is omitted.
    If using the default AWS execute-api domain, the stage name is included.
    Without a request context (direct invocation) the configured registry
    origin is used.

    Args:
        event (dict): API Gateway event object passed to Lambda handler
        fallback (str): origin used when the event carries no domain

    Returns:
        str: Base URL, e.g.:
             - "https://sho.rt"
             - "https://abc123.execute-api.us-east-1.amazonaws.com/Prod"
    """
    request_context = event.get('requestContext', {})
    domain = request_context.get('domainName', '')
    stage = request_context.get('stage', '')

    if domain and 'execute-api' not in domain:
        # If the domain is a custom domain (no execute-api), skip stage
        return f'https://{domain}'
    elif domain:
        # Otherwise include the stage (for AWS default domains)
        return f'https://{domain}/{stage}'
    else:
        # Fallback: local invocation (SAM CLI, tests, etc.)
        return fallback.rstrip('/')


def get_short_url(shortcode: str, event: dict[str, Any], fallback: str = LOCAL_ORIGIN) -> str:
    """Get string representation of shortened URL

    Args:
        shortcode (str): shortcode
        event (dict): API Gateway event object passed to Lambda handler

    Returns:
        str: short url string representation
    """
    return f'{base_url(event, fallback).rstrip("/")}/{shortcode}'


def require_environment(*names: str) -> Callable:
    """Decorator ensuring required environment variables are present.

    Args:
        *names (str):
            Names of required environment variables.

    Raises:
        MissingEnvironmentVariableError:
            If any required environment variable is missing or empty.

    Example:
        >>> @require_environment('APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID')
        ... def my_function():
        ...     pass
        >>> my_function()
        MissingEnvironmentVariableError: Missing required environment variables: 'APPCONFIG_APP_ID', 'APPCONFIG_ENV_ID'
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            missing = [name for name in names if not os.environ.get(name)]
            if missing:
                missing_list = ', '.join(f"'{name}'" for name in missing)
                raise MissingEnvironmentVariableError(f'Missing required environment variables: {missing_list}')
            return func(*args, **kwargs)

        return wrapper

    return decorator


def guarantee_500_response(handler: Callable[..., dict]) -> Callable[..., dict]:
    """Decorator: respond with 500 instead of letting a Lambda handler crash

    Example:
        >>> @guarantee_500_response
        ... def lambda_handler(event, context):
        ...     raise RuntimeError('boom')
        >>> lambda_handler({}, None)['statusCode']
        500
    """

    @functools.wraps(handler)
    def wrapper(event: dict, context: Any, *args, **kwargs) -> dict:
        try:
            return handler(event, context, *args, **kwargs)
        except Exception as error:
            logger.exception(
                'Unhandled error in Lambda handler. Responding with 500.',
                extra={'event': UNKNOWN_INTERNAL_SERVER_ERROR, 'error': error.__class__.__name__},
            )
            return {
                'statusCode': 500,
                'body': json.dumps({'message': 'Internal Server Error', 'errorCode': UNKNOWN_INTERNAL_SERVER_ERROR}),
            }

    return wrapper

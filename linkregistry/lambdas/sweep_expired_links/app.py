import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from linkregistry.registry import build_registry
from linkregistry.dao.exceptions import DataStoreError
from linkregistry.constants import EVENT_LOG_DRAIN_SECONDS
from linkregistry.exceptions import ConfigurationError
from linkregistry.utils.config import load_config, app_prefix
from linkregistry.lambdas.sweep_expired_links.constants import SUCCESS, ERROR


logger = logging.getLogger(__name__)


def response_success(*, deleted: int) -> dict:
    return {
        'status': SUCCESS,
        'deleted': deleted,
        'message': f'Swept {deleted} expired short link(s)',
    }


def response_error(*, error: Exception) -> dict:
    return {
        'status': ERROR,
        'message': 'Failed to sweep expired short links',
        'reason': str(error),
        'error': error.__class__.__name__,
    }


def lambda_handler(event: dict, context: Any) -> dict:
    """Delete every short link whose expiry has passed

    Scheduled by an EventBridge rule (every 5 minutes by default). Sweeping
    is idempotent: a second run over the same store deletes nothing.

    Diagnostic responses:
        success:
            status: success
            deleted: <number of links removed>
            message: Swept <n> expired short link(s)
        error:
            status: error
            message: Failed to sweep expired short links
            reason: <reason>
            error: <error class name> (e.g. MissingEnvironmentVariableError, DataStoreError)

    Args:
        event (dict):
            EventBridge event payload.
        context (LambdaContext):
            AWS Lambda context object containing runtime information.

    Returns:
        dict: diagnostic response.

    Example:
        >>> response = lambda_handler({}, None)
        >>> response['status']
        'success'
    """
    try:
        app_config = load_config('sweep_expired_links')
        registry = build_registry(app_config, prefix=app_prefix())
    except (FileNotFoundError, ConfigurationError, DataStoreError, BotoCoreError, ClientError) as error:
        logger.exception(
            'Failed to set up expiry sweep.',
            extra={'event': ERROR, 'reason': str(error), 'error': error.__class__.__name__},
        )
        return response_error(error=error)

    try:
        deleted = registry.sweep()
    finally:
        registry.events.close(timeout=EVENT_LOG_DRAIN_SECONDS)

    logger.info('Expiry sweep finished.', extra={'event': SUCCESS, 'deleted': deleted})
    return response_success(deleted=deleted)

import json
import logging
from typing import Any

from linkregistry.registry import build_registry
from linkregistry.dao.exceptions import ShortLinkNotFoundError
from linkregistry.constants import EVENT_LOG_DRAIN_SECONDS
from linkregistry.exceptions import ConfigurationError
from linkregistry.utils import load_config, app_prefix, base_url
from linkregistry.utils.helpers import guarantee_500_response
from linkregistry.lambdas.link_statistics.constants import SHORT_LINK_NOT_FOUND, UNSUPPORTED_ROUTE


logger = logging.getLogger(__name__)


def response_500(message: str | None = None) -> dict:
    base = 'Internal Server Error'
    body = {'message': base if not message else f'{base} ({message})'}
    return {
        'statusCode': 500,
        'body': json.dumps(body),
    }


def response_404(message: str, error_code: str) -> dict:
    return {
        'statusCode': 404,
        'body': json.dumps({'message': message, 'errorCode': error_code}),
    }


def response_200(body: dict) -> dict:
    return {
        'statusCode': 200,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body),
    }


def response_204() -> dict:
    return {'statusCode': 204, 'body': ''}


@guarantee_500_response
def lambda_handler(event: dict, context: Any) -> dict:
    """Handle incoming API Gateway requests for link listings and statistics

    Routes:
        GET    /stats              statistics snapshot over every stored link
        GET    /links              every stored link, expired ones included
        GET    /links/{shortcode}  a single link with its click history
        DELETE /links              remove every stored link

    HTTP responses:
        200: Requested view
        204: Links cleared
        404: Unknown shortcode or unsupported route
        500: Internal server error

    Args:
        event (dict):
            API Gateway event payload in Lambda Proxy format.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> response = lambda_handler({'httpMethod': 'GET', 'resource': '/stats'}, None)
        >>> json.loads(response['body'])['total_urls']
        3
    """
    # 0- Get application's config
    try:
        app_config = load_config('link_statistics')
    except (FileNotFoundError, ConfigurationError):
        logger.exception('Failed to load AppConfig for link statistics function. Responding with 500.')
        return response_500()

    method = (event.get('httpMethod') or 'GET').upper()
    resource = event.get('resource') or ''
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    registry = build_registry(app_config, prefix=app_prefix())
    origin = base_url(event, fallback=registry.origin)
    try:
        # 1- Single link
        if method == 'GET' and shortcode:
            try:
                short_link = registry.get_link(shortcode)
            except ShortLinkNotFoundError:
                logger.info(
                    'Short link not found. Responding with 404.',
                    extra={'shortcode': shortcode, 'event': SHORT_LINK_NOT_FOUND},
                )
                return response_404(f"Short link '{shortcode}' doesn't exist", SHORT_LINK_NOT_FOUND)
            return response_200(dict(short_link.to_dict(), short_url=short_link.short_url(origin)))

        # 2- Every link
        if method == 'GET' and resource.startswith('/links'):
            links = registry.list_links()
            return response_200({'links': [dict(link.to_dict(), short_url=link.short_url(origin)) for link in links]})

        # 3- Statistics
        if method == 'GET' and resource.startswith('/stats'):
            return response_200(registry.statistics().to_dict())

        # 4- Clear everything
        if method == 'DELETE' and resource.startswith('/links') and not shortcode:
            registry.clear_all()
            return response_204()
    finally:
        registry.events.close(timeout=EVENT_LOG_DRAIN_SECONDS)

    logger.info('Unsupported route. Responding with 404.', extra={'event': UNSUPPORTED_ROUTE, 'method': method, 'resource': resource})
    return response_404(f'No route for {method} {resource}', UNSUPPORTED_ROUTE)

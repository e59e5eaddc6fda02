import json
import logging
from typing import Any

from linkregistry.registry import build_registry, RedirectStatus
from linkregistry.constants import EVENT_LOG_DRAIN_SECONDS
from linkregistry.exceptions import ConfigurationError
from linkregistry.utils import load_config, get_short_url, app_prefix
from linkregistry.utils.helpers import guarantee_500_response
from linkregistry.lambdas.redirect_url.constants import (
    MISSING_SHORTCODE,
    SHORT_LINK_NOT_FOUND,
    SHORT_LINK_EXPIRED,
    REDIRECT_SUCCESS,
)


logger = logging.getLogger(__name__)


def response_500(message: str | None = None) -> dict:
    base = 'Internal Server Error'
    body = {'message': base if not message else f'{base} ({message})'}
    return {
        'statusCode': 500,
        'body': json.dumps(body),
    }


def response_400(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 400,
        'body': json.dumps(body),
    }


def response_404(message: str, error_code: str) -> dict:
    return {
        'statusCode': 404,
        'body': json.dumps({'message': message, 'errorCode': error_code}),
    }


def response_410(message: str, error_code: str) -> dict:
    return {
        'statusCode': 410,
        'body': json.dumps({'message': message, 'errorCode': error_code}),
    }


def response_302(*, location: str) -> dict:
    return {
        'statusCode': 302,
        'headers': {
            'Location': location,
            'Cache-Control': 'no-store',  # every visit must reach the click counter
        },
        'body': json.dumps({}),  # no body needed for redirects
    }


def _header(event: dict, name: str) -> str:
    headers = event.get('headers') or {}
    for key, value in headers.items():
        if key.lower() == name:
            return value or ''
    return ''


@guarantee_500_response
def lambda_handler(event: dict, context: Any) -> dict:
    """Handle incoming API Gateway requests to redirect short links

    This Lambda handler follows this procedure to redirect:
    - Step 1: Extract shortcode from request path
    - Step 2: Resolve the shortcode (records the click for live links)
    - Step 3: Redirect client to target URL, or explain why not

    HTTP responses:
        302: Successful redirect
            headers:
                Location: target URL destination
        400: Bad client request
            message: missing shortcode in path parameters
        404: Not found
            message: shortcode is unknown
        410: Gone
            message: short link has expired
        500: Internal server error
            message: server experienced an internal error

    Args:
        event (dict):
            API Gateway event payload containing the shortcode path parameter.
        context (LambdaContext):
            AWS Lambda runtime context object (not used directly).

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'pathParameters': {'shortcode': 'Xa91Qz'}, 'headers': {'User-Agent': 'curl/8.0'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/foo'
    """
    # 0- Get application's config
    try:
        app_config = load_config('redirect_url')
    except (FileNotFoundError, ConfigurationError):
        logger.exception('Failed to load AppConfig for redirect URL function. Responding with 500.')
        return response_500()

    # 1- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
    # 2- Resolve the shortcode
    registry = build_registry(app_config, prefix=app_prefix())
    short_url = get_short_url(shortcode, event, fallback=registry.origin)
    logger.debug('Client requested short URL %s.', short_url)
    try:
        redirect = registry.resolve(
            shortcode,
            user_agent=_header(event, 'user-agent'),
            referrer=_header(event, 'referer'),
        )
    finally:
        registry.events.close(timeout=EVENT_LOG_DRAIN_SECONDS)

    # 3- Redirect client, or explain why not
    if redirect.status == RedirectStatus.NOT_FOUND:
        logger.info(
            'Short link not found. Responding with 404.',
            extra={'shortcode': shortcode, 'event': SHORT_LINK_NOT_FOUND},
        )
        return response_404(f"Short URL {short_url} doesn't exist", SHORT_LINK_NOT_FOUND)

    if redirect.status == RedirectStatus.EXPIRED:
        logger.info(
            'Short link expired. Responding with 410.',
            extra={'shortcode': shortcode, 'event': SHORT_LINK_EXPIRED},
        )
        return response_410(f'Short URL {short_url} has expired', SHORT_LINK_EXPIRED)

    logger.info(
        'Redirecting client to target URL. Responding with 302.',
        extra={'shortcode': shortcode, 'event': REDIRECT_SUCCESS, 'time_remaining': redirect.time_remaining},
    )
    return response_302(location=redirect.target)

import json
import logging
from typing import Any

from linkregistry.registry import build_registry
from linkregistry.constants import EVENT_LOG_DRAIN_SECONDS
from linkregistry.exceptions import ConfigurationError
from linkregistry.utils import load_config, app_prefix, base_url
from linkregistry.utils.helpers import guarantee_500_response
from linkregistry.lambdas.shorten_url.constants import (
    INVALID_JSON_BODY,
    INVALID_BATCH,
    NO_LINKS_CREATED,
    LINKS_CREATED,
)


logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET',
}


def response_500(message: str | None = None) -> dict:
    base = 'Internal Server Error'
    body = {'message': base if not message else f'{base} ({message})'}
    return {
        'statusCode': 500,
        'body': json.dumps(body),
    }


def response_400(message: str | None = None, error_code: str | None = None, errors: list | None = None) -> dict:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    if errors is not None:
        body['errors'] = errors
    return {
        'statusCode': 400,
        'headers': CORS_HEADERS,
        'body': json.dumps(body),
    }


def response_200(*, created: list, errors: list) -> dict:
    return {
        'statusCode': 200,
        'headers': CORS_HEADERS,
        'body': json.dumps(
            {
                'message': f'Successfully shortened {len(created)} URL(s)',
                'created': created,
                'errors': errors,
            }
        ),
    }


@guarantee_500_response
def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle incoming API Gateway requests to shorten a batch of URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Extract the batch of candidates from request body
    - Step 2: Validate and store every candidate (via LinkRegistry)
    - Step 3: Respond with the created links and the per-item errors

    Request body:
        {"urls": [{"url": "example.com/foo", "shortcode": "promo", "expiry": 60}, ...]}
        A bare JSON array of candidates is accepted too.

    HTTP responses:
        200: At least one link created
            created: stored links, each with its short_url
            errors: per-item errors for the rejected candidates
        400: Bad client request
            message: invalid JSON, rejected batch, or no candidate was valid
            errors: per-item errors
        500: Internal server error
            message: server experienced an internal error

    Args:
        event (dict):
            API Gateway event payload in Lambda Proxy format.
        context (Any):
            AWS Lambda context object containing runtime information.

    Returns:
        dict:
            API Gateway-compatible response including statusCode, headers, and body.

    Example:
        >>> event = {'body': '{"urls": [{"url": "example.com"}]}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        200
        >>> json.loads(response['body'])['created'][0]['target']
        'https://example.com'
    """
    # 0- Get application's config
    try:
        app_config = load_config('shorten_url')
    except (FileNotFoundError, ConfigurationError):
        logger.exception('Failed to load AppConfig for shorten URL function. Responding with 500.')
        return response_500()

    # 1- Extract the batch from request body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON_BODY)
    batch = request_body.get('urls') if isinstance(request_body, dict) else request_body

    # 2- Validate and store every candidate
    registry = build_registry(app_config, prefix=app_prefix())
    try:
        result = registry.add_links(batch)
    finally:
        registry.events.close(timeout=EVENT_LOG_DRAIN_SECONDS)
    payload = result.to_dict(origin=base_url(event, fallback=registry.origin))

    # 3- Respond with created links and per-item errors
    if not result.created:
        batch_rejected = len(result.errors) == 1 and result.errors[0].index == 0
        error_code = INVALID_BATCH if batch_rejected else NO_LINKS_CREATED
        message = result.errors[0].message if batch_rejected else 'no URL could be shortened'
        logger.info(
            'No short link created. Responding with 400.',
            extra={'event': error_code, 'errorCount': len(result.errors)},
        )
        return response_400(message=message, error_code=error_code, errors=payload['errors'])

    logger.info(
        'Short links created. Responding with 200.',
        extra={'event': LINKS_CREATED, 'created': len(result.created), 'errorCount': len(result.errors)},
    )
    return response_200(created=payload['created'], errors=payload['errors'])

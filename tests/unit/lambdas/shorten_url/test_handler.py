import json
from typing import cast

import pytest
from pytest import MonkeyPatch

from linkregistry.types import LambdaEvent, LambdaContext, LambdaConfiguration
from linkregistry.lambdas.shorten_url import app
from linkregistry.dao import ShortLinkMemoryDAO
from linkregistry.exceptions import MissingEnvironmentVariableError
from linkregistry.registry import LinkRegistry


def make_event(body) -> LambdaEvent:
    return cast(LambdaEvent, {
        'resource': '/shorten',
        'httpMethod': 'POST',
        'path': '/shorten',
        'requestContext': {'domainName': 'sho.rt', 'stage': 'test'},
        'body': body if isinstance(body, str) else json.dumps(body),
    })


class TestShortenUrlHandler:

    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'shorten_url'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {'memory': {}})

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, context: LambdaContext, config: LambdaConfiguration) -> None:
        self.dao = ShortLinkMemoryDAO()
        self.registry = LinkRegistry(self.dao)

        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        monkeypatch.setattr(app, 'build_registry', lambda *a, **kw: self.registry)

        self.context = context

    def test_lambda_handler(self) -> None:
        event = make_event({'urls': [{'url': 'example.com/foo', 'shortcode': 'promo', 'expiry': 60}, {'url': 'example.org'}]})

        response = app.lambda_handler(event, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 200
        assert body['message'] == 'Successfully shortened 2 URL(s)'
        assert body['errors'] == []
        assert [link['target'] for link in body['created']] == ['https://example.com/foo', 'https://example.org']
        assert body['created'][0]['short_url'] == 'https://sho.rt/promo'
        assert body['created'][0]['expiry_minutes'] == 60
        assert len(self.dao.list_all()) == 2

    def test_lambda_handler_with_bare_array(self) -> None:
        response = app.lambda_handler(make_event([{'url': 'example.com'}]), self.context)
        assert response['statusCode'] == 200

    def test_lambda_handler_with_partial_failure(self) -> None:
        event = make_event({'urls': [{'url': 'example.com'}, {'url': 'example.org', 'shortcode': 'ab'}]})

        response = app.lambda_handler(event, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 200
        assert len(body['created']) == 1
        assert body['errors'] == [
            {'index': 2, 'field': 'shortcode', 'reason': 'TooShort', 'message': 'URL 2 shortcode: Shortcode must be at least 3 characters long'}
        ]

    def test_lambda_handler_with_invalid_json(self) -> None:
        response = app.lambda_handler(make_event('{"urls": ['), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['message'] == 'Bad Request (invalid JSON body)'
        assert body['errorCode'] == 'INVALID_JSON_BODY'

    @pytest.mark.parametrize(
        'payload, message',
        [
            ({}, 'Invalid input format'),
            ({'urls': []}, 'At least one URL is required'),
            ({'urls': [{'url': 'a.com'}] * 6}, 'Maximum 5 URLs allowed at once'),
        ],
    )
    def test_lambda_handler_with_rejected_batch(self, payload, message) -> None:
        response = app.lambda_handler(make_event(payload), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['message'] == f'Bad Request ({message})'
        assert body['errorCode'] == 'INVALID_BATCH'
        assert body['errors'][0]['index'] == 0

    def test_lambda_handler_with_no_valid_candidate(self) -> None:
        response = app.lambda_handler(make_event({'urls': [{'url': ''}]}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['errorCode'] == 'NO_LINKS_CREATED'
        assert body['errors'][0]['message'] == 'URL 1: URL is required'

    def test_lambda_handler_with_missing_config(self, monkeypatch: MonkeyPatch) -> None:
        def fail(*args, **kwargs):
            raise MissingEnvironmentVariableError('APPCONFIG_APP_ID')

        monkeypatch.setattr(app, 'load_config', fail)

        response = app.lambda_handler(make_event({'urls': [{'url': 'a.com'}]}), self.context)
        assert response['statusCode'] == 500

    def test_lambda_handler_with_unexpected_error(self, monkeypatch: MonkeyPatch) -> None:
        monkeypatch.setattr(self.registry, 'add_links', lambda *a, **kw: 1 / 0)

        response = app.lambda_handler(make_event({'urls': [{'url': 'a.com'}]}), self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 500
        assert body['errorCode'] == 'UNKNOWN_INTERNAL_SERVER_ERROR'

"""Unit tests for event log credentials

Test coverage includes:

1. Token expiry parsing
   - Reads top-level and MapClaims `exp` claims; tolerates garbage.

2. Client credentials resolution
   - Reads the JSON secret from Secrets Manager.
   - Rejects missing environment, invalid JSON and non-object payloads.

3. CredentialProvider
   - refresh() stores a new token and never raises.
   - current() reuses a live token and refreshes an expiring one.
"""

import json
import base64
import urllib.error
from io import BytesIO
from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from linkregistry.constants import ENV
from linkregistry.exceptions import MissingEnvironmentVariableError
from linkregistry.eventlog.credentials import (
    BearerCredential,
    CredentialProvider,
    resolve_client_credentials,
    token_expiry,
)


def make_jwt(claims: dict) -> str:
    def segment(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode('utf-8')).decode('ascii').rstrip('=')

    return f'{segment({"alg": "HS256"})}.{segment(claims)}.signature'


EXP = int(datetime(2025, 10, 15, 13, 0, tzinfo=UTC).timestamp())


# -------------------------------
# 1. Token expiry parsing
# -------------------------------


@pytest.mark.parametrize('claims', [{'exp': EXP}, {'MapClaims': {'exp': EXP}}])
def test_token_expiry(claims):
    assert token_expiry(make_jwt(claims)) == datetime(2025, 10, 15, 13, 0, tzinfo=UTC)


@pytest.mark.parametrize('token', ['opaque-token', 'a.!!!.c', make_jwt({'sub': 'me'}), make_jwt({'exp': 'tomorrow'})])
def test_token_expiry_unreadable(token):
    assert token_expiry(token) is None


@freeze_time('2025-10-15 12:00:00')
def test_bearer_credential_expiry_leeway():
    assert not BearerCredential('t').is_expired()
    assert not BearerCredential('t', expires_at=datetime(2025, 10, 15, 12, 5, tzinfo=UTC)).is_expired()
    assert BearerCredential('t', expires_at=datetime(2025, 10, 15, 12, 0, 30, tzinfo=UTC)).is_expired()


# -------------------------------
# 2. Client credentials resolution
# -------------------------------


@pytest.fixture
def secrets_client():
    client = MagicMock()
    client.get_secret_value.return_value = {'SecretString': json.dumps({'client_id': 'id', 'client_secret': 'secret'})}
    return client


@pytest.fixture
def _secret_env(monkeypatch):
    monkeypatch.setenv(ENV.EventLog.SECRET, 'test/eventlog/credentials')


@pytest.mark.usefixtures('_secret_env')
def test_resolve_client_credentials(secrets_client):
    assert resolve_client_credentials(secrets_client) == {'client_id': 'id', 'client_secret': 'secret'}
    secrets_client.get_secret_value.assert_called_once_with(SecretId='test/eventlog/credentials')


def test_resolve_client_credentials_without_environment(monkeypatch, secrets_client):
    monkeypatch.delenv(ENV.EventLog.SECRET, raising=False)
    with pytest.raises(MissingEnvironmentVariableError):
        resolve_client_credentials(secrets_client)


@pytest.mark.usefixtures('_secret_env')
@pytest.mark.parametrize('secret', ['{not json', '["a list"]'])
def test_resolve_client_credentials_with_bad_payload(secrets_client, secret):
    secrets_client.get_secret_value.return_value = {'SecretString': secret}
    with pytest.raises(ValueError):
        resolve_client_credentials(secrets_client)


# -------------------------------
# 3. CredentialProvider
# -------------------------------


def auth_opener(body: dict):
    opener = MagicMock(side_effect=lambda request, timeout: BytesIO(json.dumps(body).encode('utf-8')))
    return opener


def test_refresh_stores_token():
    token = make_jwt({'exp': EXP})
    opener = auth_opener({'access_token': token})
    provider = CredentialProvider('https://logs.example.com/auth', {'client_id': 'id'}, opener=opener)

    result = provider.refresh()

    assert result.ok
    assert result.credential == BearerCredential(token, datetime(2025, 10, 15, 13, 0, tzinfo=UTC))
    request = opener.call_args.args[0]
    assert request.full_url == 'https://logs.example.com/auth'
    assert json.loads(request.data) == {'client_id': 'id'}


def test_refresh_accepts_token_field():
    provider = CredentialProvider('https://logs.example.com/auth', {}, opener=auth_opener({'token': 'opaque'}))
    assert provider.refresh().credential.token == 'opaque'


def test_refresh_without_token_in_response():
    provider = CredentialProvider('https://logs.example.com/auth', {}, opener=auth_opener({'error': 'nope'}))

    result = provider.refresh()

    assert not result.ok
    assert result.reason == 'auth response carries no token'


def test_refresh_with_unreachable_endpoint():
    opener = MagicMock(side_effect=urllib.error.URLError('connection refused'))
    provider = CredentialProvider('https://logs.example.com/auth', {}, opener=opener)

    result = provider.refresh()

    assert not result.ok
    assert 'connection refused' in result.reason


def test_current_reuses_live_token():
    opener = MagicMock()
    live = BearerCredential('live', expires_at=datetime.now(UTC) + timedelta(hours=1))
    provider = CredentialProvider('https://logs.example.com/auth', {}, credential=live, opener=opener)

    assert provider.current() is live
    opener.assert_not_called()


def test_current_refreshes_expiring_token():
    expiring = BearerCredential('old', expires_at=datetime.now(UTC) + timedelta(seconds=10))
    provider = CredentialProvider('https://logs.example.com/auth', {}, credential=expiring, opener=auth_opener({'token': 'new'}))

    assert provider.current().token == 'new'


def test_current_without_any_token():
    opener = MagicMock(side_effect=urllib.error.URLError('down'))
    provider = CredentialProvider('https://logs.example.com/auth', {}, opener=opener)
    assert provider.current() is None

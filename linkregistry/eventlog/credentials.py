"""Bearer credentials for the remote event log service.

Responsibilities:
    - Resolve client credentials from AWS Secrets Manager.
    - Hold the current bearer token and refresh it when it is about to expire.

The provider is an explicit object handed to whoever talks to the event log
service; there is no module-level token state.

Environment variables:
    - EVENT_LOG_SECRET     : Secrets Manager name for {"client_id": "...", "client_secret": "...", ...}
    - LOCALSTACK_ENDPOINT  : LocalStack endpoint URL for local development

Example:
    >>> provider = CredentialProvider(auth_url='https://logs.example.com/auth', client_credentials=resolve_client_credentials())
    >>> result = provider.refresh()
    >>> result.ok
    True
    >>> provider.current().token
    'eyJhbGciOi...'
"""

import os
import json
import base64
import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Any, Optional
from collections.abc import Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from linkregistry.constants import ENV
from linkregistry.types import SecretsManagerClient
from linkregistry.utils.helpers import require_environment
from linkregistry.utils.runtime import running_locally


logger = logging.getLogger(__name__)

# Tokens expiring within this window are treated as expired
EXPIRY_LEEWAY = timedelta(seconds=60)


@dataclass(frozen=True)
class BearerCredential:
    token: str
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        return self.expires_at <= now + EXPIRY_LEEWAY


@dataclass(frozen=True)
class RefreshResult:
    ok: bool
    credential: BearerCredential | None = None
    reason: str | None = None


def token_expiry(token: str) -> datetime | None:
    """Read the `exp` claim of a JWT without verifying it

    Both top-level `exp` and `MapClaims.exp` layouts are understood.
    Returns None when the token carries no readable expiry.
    """
    try:
        payload_segment = token.split('.')[1]
        padded = payload_segment + '=' * (-len(payload_segment) % 4)
        claims = json.loads(base64.urlsafe_b64decode(padded))
    except (IndexError, ValueError):
        return None

    exp = claims.get('exp') or (claims.get('MapClaims') or {}).get('exp')
    if not isinstance(exp, (int, float)):
        return None
    return datetime.fromtimestamp(exp, tz=UTC)


@require_environment(ENV.EventLog.SECRET)
def resolve_client_credentials(secrets_client: Optional[SecretsManagerClient] = None) -> dict[str, Any]:
    """Resolve the event log client credentials from Secrets Manager.

    The secret is expected to be a JSON object, posted as-is to the auth
    endpoint (e.g. {"client_id": "...", "client_secret": "...", "email": "..."}).

    Raises:
        MissingEnvironmentVariableError:
            If EVENT_LOG_SECRET environment variable is missing.
        botocore.exceptions.BotoCoreError / ClientError:
            On AWS Secrets Manager API failures.
        ValueError:
            If the secret payload is not a JSON object.
    """
    secret_name = os.environ[ENV.EventLog.SECRET]
    # fmt: off
    secrets_client_kwargs = {
        'endpoint_url': os.environ.get(ENV.LocalStack.ENDPOINT, 'http://localhost:4566'),
    } if running_locally() else {}
    # fmt: on
    sm = secrets_client or boto3.client('secretsmanager', **secrets_client_kwargs)

    try:
        raw = sm.get_secret_value(SecretId=secret_name).get('SecretString')
        payload = json.loads(raw or '{}')
    except (BotoCoreError, ClientError):
        raise
    except json.JSONDecodeError as e:
        raise ValueError('Invalid JSON in event log secret payload') from e

    if not isinstance(payload, dict):
        raise ValueError('Event log secret payload must be a JSON object')
    return payload


class CredentialProvider:
    """Hold and refresh the bearer token used by the event log service.

    Args:
        auth_url (str):
            Endpoint accepting a JSON POST of the client credentials and
            answering with {"access_token": ...} or {"token": ...}.
        client_credentials (dict):
            Payload posted to `auth_url`.
        credential (BearerCredential | None):
            Initial token, if one is already known.
        opener (Callable):
            `urllib.request.urlopen` compatible callable (overridable in tests).
        timeout (float):
            Seconds to wait for the auth endpoint.
    """

    def __init__(
        self,
        auth_url: str,
        client_credentials: dict[str, Any],
        credential: BearerCredential | None = None,
        opener: Callable[..., Any] = urllib.request.urlopen,
        timeout: float = 5.0,
    ):
        self.auth_url = auth_url
        self.client_credentials = client_credentials
        self._credential = credential
        self._opener = opener
        self._timeout = timeout
        self._lock = threading.Lock()

    def current(self) -> BearerCredential | None:
        """Return a usable credential, refreshing first when needed.

        Returns None when no valid token could be obtained.
        """
        credential = self._credential
        if credential is not None and not credential.is_expired():
            return credential
        result = self.refresh()
        return result.credential if result.ok else None

    def refresh(self) -> RefreshResult:
        """Request a new token from the auth endpoint. Never raises."""
        request = urllib.request.Request(
            self.auth_url,
            data=json.dumps(self.client_credentials).encode('utf-8'),
            headers={'Content-Type': 'application/json'},
            method='POST',
        )

        try:
            with self._opener(request, timeout=self._timeout) as response:
                body = json.load(response)
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.debug('Event log token refresh failed.', extra={'reason': str(e)})
            return RefreshResult(ok=False, reason=str(e))

        token = body.get('access_token') or body.get('token') if isinstance(body, dict) else None
        if not token:
            return RefreshResult(ok=False, reason='auth response carries no token')

        credential = BearerCredential(token=token, expires_at=token_expiry(token))
        with self._lock:
            self._credential = credential
        return RefreshResult(ok=True, credential=credential)

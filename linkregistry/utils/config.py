"""Utility functions for application configuration management.

This module provides a standardized interface for Lambda functions to
access configuration data stored in **AWS AppConfig**. Each environment
(`APP_ENV`) has a dedicated AppConfig *Environment* within the shared
AppConfig *Application* identified by `APP_NAME`.

The configuration JSON follows this structure:

    {
        "build": 7,
        "active_backend": "redis",
        "configs": {
            "shorten_url": {
                "redis": { ... }
            },
            "redirect_url": {
                "redis": { ... }
            }
        },
        "registry": {
            "origin": "https://sho.rt",
            "code_length": 6,
            "batch_max_size": 5,
            "sweep_interval_seconds": 300,
            "event_log": {
                "enabled": true,
                "url": "https://logs.example.com/logs",
                "auth_url": "https://logs.example.com/auth",
                "stack": "backend"
            }
        }
    }

Each Lambda loads its own section (e.g., `"shorten_url"`) plus the shared
`"registry"` section from this document.

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`), `'local'` by default.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    load_config(function_name: str) -> dict
        Load configuration for a given Lambda from AWS AppConfig (or a local
        AppConfig agent in SAM).

    registry_settings(app_config: dict) -> RegistrySettings
        Parse the `registry` section into typed settings.

Example:
    Typical usage inside a Lambda handler:

        >>> from linkregistry.utils.config import load_config
        >>> config = load_config('shorten_url')
        >>> config['redis']['host']
        'redis-15501.host.docker.internal'
"""

import os
import json
import functools
import logging
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from collections.abc import Callable

import boto3

from linkregistry.constants import ENV, CodeGeneration, Limits, SWEEP_INTERVAL_SECONDS
from linkregistry.exceptions import BadConfigurationError
from linkregistry.utils.helpers import require_environment
from linkregistry.utils.runtime import running_locally


logger = logging.getLogger(__name__)


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'

    Returns:
        str:
            Value of `APP_NAME` environment variable.
            None if variable is not set.
    """
    return os.environ.get(ENV.App.APP_NAME)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'linkregistry'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'linkregistry:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


@dataclass(frozen=True)
class EventLogSettings:
    enabled: bool = False
    url: str | None = None
    auth_url: str | None = None
    stack: str = 'backend'


@dataclass(frozen=True)
class RegistrySettings:
    origin: str = 'http://localhost:3000'
    code_length: int = CodeGeneration.LENGTH
    batch_max_size: int = Limits.BATCH_MAX_SIZE
    sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS
    event_log: EventLogSettings = field(default_factory=EventLogSettings)


def registry_settings(app_config: dict) -> RegistrySettings:
    """Parse the `registry` section of a loaded configuration

    Missing keys fall back to defaults.

    Raises:
        BadConfigurationError:
            If a value has the wrong type or is out of range.

    Example:
        >>> registry_settings({'registry': {'origin': 'https://sho.rt'}}).origin
        'https://sho.rt'
    """
    section = app_config.get('registry') or {}
    try:
        event_log = EventLogSettings(**(section.get('event_log') or {}))
        settings = RegistrySettings(
            origin=section.get('origin', RegistrySettings.origin),
            code_length=int(section.get('code_length', CodeGeneration.LENGTH)),
            batch_max_size=int(section.get('batch_max_size', Limits.BATCH_MAX_SIZE)),
            sweep_interval_seconds=int(section.get('sweep_interval_seconds', SWEEP_INTERVAL_SECONDS)),
            event_log=event_log,
        )
    except (TypeError, ValueError) as e:
        raise BadConfigurationError(f'Invalid registry configuration: {e}') from e

    if not Limits.SHORTCODE_MIN_LENGTH <= settings.code_length <= Limits.SHORTCODE_MAX_LENGTH:
        raise BadConfigurationError(f'code_length must be within [{Limits.SHORTCODE_MIN_LENGTH}, {Limits.SHORTCODE_MAX_LENGTH}] (given: {settings.code_length}).')
    if settings.batch_max_size < 1:
        raise BadConfigurationError(f'batch_max_size must be positive (given: {settings.batch_max_size}).')
    if settings.sweep_interval_seconds < 1:
        raise BadConfigurationError(f'sweep_interval_seconds must be positive (given: {settings.sweep_interval_seconds}).')
    return settings


def _extract(config: dict, function_name: str) -> dict:
    backend = config['active_backend']
    data = {backend: config['configs'][function_name][backend]}
    if 'registry' in config:
        data['registry'] = config['registry']
    return data


def _sam_load_local_appconfig(func: Callable[[str], dict]) -> Callable[[str], dict]:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM

    Behavior:
        - If the application is running locally and `APPCONFIG_AGENT_URL` is set
          to a safe local URL, fetch the app configuration JSON from the local AppConfig agent.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).
    """

    # ruff: noqa: E701
    def __validate_appconfig_url(url: str) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise ValueError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
            raise ValueError(f'Bad host {url}')
        if components.port not in {2772, None}:
            raise ValueError(f'Bad port {url}')
        return url

    # ruff: enable

    @functools.wraps(func)
    def wrapper(function_name: str, *args, **kwargs) -> dict:
        agent_url = __validate_appconfig_url(os.getenv(ENV.AppConfig.AGENT_URL))
        if not running_locally() or not agent_url:
            return func(function_name, *args, **kwargs)

        profile_name = os.getenv(ENV.AppConfig.PROFILE_NAME, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'functionName': function_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            config = json.load(r)

        logger.debug('Loaded AppConfig from local agent.', extra={'functionName': function_name, 'build': config.get('build')})
        return _extract(config, function_name)

    return wrapper


@_sam_load_local_appconfig
@require_environment(ENV.AppConfig.APP_ID, ENV.AppConfig.ENV_ID, ENV.AppConfig.PROFILE_ID)
def load_config(function_name: str) -> dict:
    """Load configuration for a given Lambda from AWS AppConfig

    Environment variables required:
        APPCONFIG_APP_ID       – AppConfig Application ID
        APPCONFIG_ENV_ID       – AppConfig Environment ID
        APPCONFIG_PROFILE_ID   – AppConfig Configuration Profile ID

    Args:
        function_name (str):
            Name of the Lambda (e.g., "shorten_url" or "redirect_url").

    Returns:
        dict: `{<backend>: {...}, 'registry': {...}}`

    Example:
        >>> app_config = load_config('shorten_url')
        >>> app_config['redis']['host']
        'redis-15501.host.docker.internal'
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'functionName': function_name})

    appconfig = boto3.client('appconfigdata')

    # Start an AppConfig data session
    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[ENV.AppConfig.APP_ID],
        EnvironmentIdentifier=os.environ[ENV.AppConfig.ENV_ID],
        ConfigurationProfileIdentifier=os.environ[ENV.AppConfig.PROFILE_ID],
    )['InitialConfigurationToken']

    # Fetch the configuration
    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    config = json.loads(content.decode('utf-8'))

    data = _extract(config, function_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'functionName': function_name, 'build': config.get('build')})
    return data

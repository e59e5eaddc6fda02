from enum import StrEnum


class TTL:
    """Link lifetime bounds in minutes."""

    DEFAULT_MINUTES = 30
    MIN_MINUTES = 1
    MAX_MINUTES = 525_600  # 60 * 24 * 365


class Limits:
    """Size limits enforced by the validators and the store."""

    URL_MAX_LENGTH = 2048
    SHORTCODE_MIN_LENGTH = 3
    SHORTCODE_MAX_LENGTH = 20
    BATCH_MAX_SIZE = 5
    CLICK_HISTORY = 100  # ring buffer capacity per link
    RECENT_URLS = 5


class CodeGeneration:
    """Random shortcode generation parameters."""

    LENGTH = 6
    ATTEMPTS_PER_LENGTH = 10


# Interval between two recurring sweeps (5 minutes)
SWEEP_INTERVAL_SECONDS = 300

# Longest a Lambda handler waits for queued event-log deliveries before responding
EVENT_LOG_DRAIN_SECONDS = 0.2

# Shortcodes that would shadow application routes
RESERVED_SHORTCODES = frozenset({'admin', 'api', 'www', 'app', 'help', 'about', 'contact', 'terms', 'privacy'})


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        PROJECT_ROOT = 'PROJECT_ROOT'
        AWS_SAM_LOCAL = 'AWS_SAM_LOCAL'
        LOG_LEVEL = 'LOG_LEVEL'

    class AppConfig(StrEnum):
        APP_ID = 'APPCONFIG_APP_ID'
        ENV_ID = 'APPCONFIG_ENV_ID'
        PROFILE_ID = 'APPCONFIG_PROFILE_ID'
        AGENT_URL = 'APPCONFIG_AGENT_URL'
        PROFILE_NAME = 'APPCONFIG_PROFILE_NAME'

    class EventLog(StrEnum):
        # Secrets Manager name holding credentials JSON: {"client_id": "...", "client_secret": "..."}
        SECRET = 'EVENT_LOG_SECRET'  # noqa: S105

    class LocalStack(StrEnum):
        ENDPOINT = 'LOCALSTACK_ENDPOINT'  # usually http://localstack:4566


# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'

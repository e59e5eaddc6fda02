import logging

from botocore.exceptions import BotoCoreError, ClientError

from linkregistry.eventlog.credentials import CredentialProvider, resolve_client_credentials
from linkregistry.eventlog.sinks import EventLog, AsyncEventSink, HttpEventSink
from linkregistry.exceptions import ConfigurationError
from linkregistry.utils.config import EventLogSettings


logger = logging.getLogger(__name__)


def build_event_log(settings: EventLogSettings) -> EventLog:
    """Build the event log described by `settings`

    Falls back to a silent EventLog when the remote sink is disabled or its
    credentials cannot be resolved. The registry works the same either way.
    """
    if not settings.enabled or not settings.url or not settings.auth_url:
        return EventLog()

    try:
        client_credentials = resolve_client_credentials()
    except (ConfigurationError, BotoCoreError, ClientError, ValueError) as error:
        logger.warning(
            'Event log credentials unavailable, remote event log disabled.',
            extra={'error': error.__class__.__name__, 'reason': str(error)},
        )
        return EventLog()

    provider = CredentialProvider(auth_url=settings.auth_url, client_credentials=client_credentials)
    return EventLog(AsyncEventSink(HttpEventSink(settings.url, credentials=provider, stack=settings.stack)))

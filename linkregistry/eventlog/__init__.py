from linkregistry.eventlog.credentials import BearerCredential, RefreshResult, CredentialProvider, resolve_client_credentials
from linkregistry.eventlog.sinks import EventSink, NullEventSink, HttpEventSink, AsyncEventSink, EventLog
from linkregistry.eventlog.factory import build_event_log


__all__ = [
    'BearerCredential',
    'RefreshResult',
    'CredentialProvider',
    'resolve_client_credentials',
    'EventSink',
    'NullEventSink',
    'HttpEventSink',
    'AsyncEventSink',
    'EventLog',
    'build_event_log',
]

"""Event log sinks

The registry reports what happens (links created, links visited, validation
failures, storage failures) to an external event log. Reporting is
fire-and-forget: a slow or failing sink never blocks or fails the registry
operation that triggered it.

Classes:
    EventSink:       interface, `emit(level, package, message, context) -> bool`
    NullEventSink:   drops every event
    HttpEventSink:   POSTs events to a remote log service with a bearer token
    AsyncEventSink:  runs another sink on a background thread pool
    EventLog:        domain-level facade used by the registry, never raises

Example:
    >>> sink = AsyncEventSink(HttpEventSink(url, credentials=provider))
    >>> events = EventLog(sink)
    >>> events.url_shortened(link)
"""

import json
import logging
import threading
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any
from collections.abc import Callable

from linkregistry.eventlog.credentials import CredentialProvider
from linkregistry.models import ShortLinkModel, ClickEventModel


logger = logging.getLogger(__name__)


class EventSink(ABC):
    @abstractmethod
    def emit(self, level: str, package: str, message: str, context: dict[str, Any] | None = None) -> bool:
        """Deliver one event. Returns True when the sink accepted it."""
        pass

    def close(self, timeout: float | None = None) -> None:
        pass


class NullEventSink(EventSink):
    def emit(self, level: str, package: str, message: str, context: dict[str, Any] | None = None) -> bool:
        return True


class HttpEventSink(EventSink):
    """POST events to a remote log service

    Payload: {"stack": ..., "level": ..., "package": ..., "message": "<message> <context json>"}.
    A 401 answer triggers one token refresh and one retry.
    """

    def __init__(
        self,
        url: str,
        credentials: CredentialProvider,
        stack: str = 'backend',
        opener: Callable[..., Any] = urllib.request.urlopen,
        timeout: float = 5.0,
    ):
        self.url = url
        self.credentials = credentials
        self.stack = stack
        self._opener = opener
        self._timeout = timeout

    def emit(self, level: str, package: str, message: str, context: dict[str, Any] | None = None) -> bool:
        credential = self.credentials.current()
        if credential is None:
            logger.debug('No event log token available, dropping event.', extra={'package': package})
            return False

        payload = {
            'stack': self.stack.lower(),
            'level': level.lower(),
            'package': package.lower(),
            'message': f'{message} {json.dumps(context or {}, default=str)}',
        }

        status = self._post(payload, credential.token)
        if status == 401:
            result = self.credentials.refresh()
            if result.ok:
                status = self._post(payload, result.credential.token)
        return status is not None and 200 <= status < 300

    def _post(self, payload: dict[str, Any], token: str) -> int | None:
        request = urllib.request.Request(
            self.url,
            data=json.dumps(payload).encode('utf-8'),
            headers={'Content-Type': 'application/json', 'Authorization': f'Bearer {token}'},
            method='POST',
        )
        try:
            with self._opener(request, timeout=self._timeout) as response:
                return response.status
        except urllib.error.HTTPError as e:
            return e.code
        except (urllib.error.URLError, OSError) as e:
            logger.debug('Event log unreachable.', extra={'reason': str(e)})
            return None


class AsyncEventSink(EventSink):
    """Deliver events on a background thread pool

    `emit()` only schedules delivery and returns True immediately. `close()`
    waits at most `timeout` seconds for queued events; whatever is still in
    flight afterwards keeps running on the pool threads without holding up
    the caller.
    """

    def __init__(self, sink: EventSink, max_workers: int = 2):
        self.sink = sink
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='eventlog')
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def emit(self, level: str, package: str, message: str, context: dict[str, Any] | None = None) -> bool:
        future = self._executor.submit(self.sink.emit, level, package, message, context)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._settle)
        return True

    def _settle(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            logger.debug('Event log delivery failed.', extra={'error': error.__class__.__name__, 'reason': str(error)})

    def close(self, timeout: float | None = None) -> None:
        self._executor.shutdown(wait=False)
        with self._lock:
            pending = set(self._pending)
        _, undelivered = wait(pending, timeout=timeout)
        if undelivered:
            logger.debug('Event log still delivering in the background.', extra={'pending': len(undelivered)})
            return
        self.sink.close()


class EventLog:
    """Domain-level reporting facade

    Every method swallows sink failures: the event log must never change the
    outcome of a registry operation.
    """

    def __init__(self, sink: EventSink | None = None):
        self.sink = sink or NullEventSink()

    def _emit(self, level: str, package: str, message: str, context: dict[str, Any] | None = None) -> None:
        try:
            self.sink.emit(level, package, message, context)
        except Exception as error:  # noqa: BLE001
            logger.debug('Event sink raised, event dropped.', extra={'error': error.__class__.__name__, 'package': package})

    def info(self, package: str, message: str, **context) -> None:
        self._emit('info', package, message, context)

    def warn(self, package: str, message: str, **context) -> None:
        self._emit('warn', package, message, context)

    def error(self, package: str, message: str, error: BaseException | None = None, **context) -> None:
        if error is not None:
            message = f'{message} - Error: {error}'
        self._emit('error', package, message, context)

    def url_shortened(self, link: ShortLinkModel) -> None:
        self.info('url-shortener', 'URL shortened', originalUrl=link.target, shortCode=link.shortcode, expiryTime=link.expires_at.isoformat())

    def url_accessed(self, link: ShortLinkModel, click: ClickEventModel) -> None:
        self.info(
            'url-redirect',
            'Short URL accessed',
            shortCode=link.shortcode,
            originalUrl=link.target,
            userAgent=click.user_agent,
            timestamp=click.timestamp.isoformat(),
        )

    def validation_failed(self, field: str, value: Any, reason: str) -> None:
        self.warn('validation', 'Validation failed', field=field, value=value, error=reason)

    def close(self, timeout: float | None = None) -> None:
        """Flush the sink, waiting at most `timeout` seconds (None waits for everything)"""
        try:
            self.sink.close(timeout=timeout)
        except Exception as error:  # noqa: BLE001
            logger.debug('Event sink failed to close.', extra={'error': error.__class__.__name__})

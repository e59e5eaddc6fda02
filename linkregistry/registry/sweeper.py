"""Expiry sweeping

Classes:
    ExpirySweeper:
        Remove links whose expiry has passed. `sweep()` never raises.
    SweepTimer:
        Run a sweeper on a background thread every `interval` seconds until stopped.

Example:
    >>> sweeper = ExpirySweeper(dao)
    >>> with SweepTimer(sweeper, interval=300):
    ...     serve_forever()
"""

import logging
import threading
from datetime import datetime, UTC

from linkregistry.constants import SWEEP_INTERVAL_SECONDS
from linkregistry.dao.base import ShortLinkBaseDAO
from linkregistry.dao.exceptions import DAOError
from linkregistry.eventlog import EventLog


logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(self, dao: ShortLinkBaseDAO, events: EventLog | None = None):
        self.dao = dao
        self.events = events or EventLog()

    def sweep(self, now: datetime | None = None) -> int:
        """Delete every link with expires_at < now and return how many were deleted.

        Storage failures are logged and reported as 0 deletions; the next
        sweep simply tries again.
        """
        now = now or datetime.now(UTC)
        try:
            deleted = self.dao.delete_expired_before(now)
        except DAOError as error:
            logger.exception('Expiry sweep failed, skipping.', extra={'error': error.__class__.__name__})
            self.events.error('storage', 'Failed to cleanup expired URLs', error)
            return 0

        if deleted:
            logger.info('Cleaned up expired short links.', extra={'deleted': deleted})
            self.events.info('storage', 'Cleaned up expired URLs', deletedCount=deleted)
        return deleted


class SweepTimer:
    """Recurring sweep on a daemon thread

    Args:
        sweeper (ExpirySweeper):
            Sweeper to run.
        interval (float):
            Seconds between two sweeps. Defaults to 5 minutes.
        run_immediately (bool):
            Sweep once as soon as the timer starts.
    """

    def __init__(self, sweeper: ExpirySweeper, interval: float = SWEEP_INTERVAL_SECONDS, run_immediately: bool = True):
        if interval <= 0:
            raise ValueError(f'Sweep interval must be positive (given value: {interval}).')
        self.sweeper = sweeper
        self.interval = interval
        self.run_immediately = run_immediately
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> 'SweepTimer':
        if self.running:
            return self
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name='expiry-sweeper', daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        if self.run_immediately:
            self._tick()
        while not self._stopped.wait(self.interval):
            self._tick()

    def _tick(self) -> None:
        # The loop must outlive any single failed sweep
        try:
            self.sweeper.sweep()
        except Exception:  # noqa: BLE001
            logger.exception('Unexpected error during scheduled sweep.')

    def __enter__(self) -> 'SweepTimer':
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

"""Unit tests for expiry sweeping

Test coverage includes:

1. ExpirySweeper
   - Deletes only expired links and is idempotent.
   - Storage failures are reported as zero deletions.

2. SweepTimer
   - Sweeps immediately and on every interval until stopped.
   - Survives a failing sweep.
"""

import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from linkregistry.dao.exceptions import DataStoreError
from linkregistry.registry import ExpirySweeper, SweepTimer


# -------------------------------
# 1. ExpirySweeper
# -------------------------------


def test_sweep_deletes_expired_links(dao, events, now, make_link):
    dao.insert(make_link('old1', created_at=now - timedelta(hours=1), minutes=10))
    dao.insert(make_link('old2', created_at=now - timedelta(hours=1), minutes=20))
    dao.insert(make_link('live'))
    sweeper = ExpirySweeper(dao, events)

    assert sweeper.sweep(now=now) == 2
    assert sweeper.sweep(now=now) == 0
    assert [link.shortcode for link in dao.list_all()] == ['live']
    events.info.assert_called_once_with('storage', 'Cleaned up expired URLs', deletedCount=2)


def test_sweep_with_storage_failure(events, now):
    dao = MagicMock()
    dao.delete_expired_before.side_effect = DataStoreError('down')

    assert ExpirySweeper(dao, events).sweep(now=now) == 0
    events.error.assert_called_once()


# -------------------------------
# 2. SweepTimer
# -------------------------------


class CountingSweeper:
    def __init__(self, target: int, fail_first: bool = False):
        self.calls = 0
        self.target = target
        self.fail_first = fail_first
        self.done = threading.Event()

    def sweep(self):
        self.calls += 1
        if self.calls >= self.target:
            self.done.set()
        if self.fail_first and self.calls == 1:
            raise RuntimeError('boom')
        return 0


def test_timer_sweeps_repeatedly():
    sweeper = CountingSweeper(target=3)

    with SweepTimer(sweeper, interval=0.01) as timer:
        assert timer.running
        assert sweeper.done.wait(timeout=5)

    assert not timer.running
    assert sweeper.calls >= 3


def test_timer_survives_failing_sweep():
    sweeper = CountingSweeper(target=2, fail_first=True)

    timer = SweepTimer(sweeper, interval=0.01).start()
    try:
        assert sweeper.done.wait(timeout=5)
    finally:
        timer.stop()


def test_timer_without_immediate_run():
    sweeper = CountingSweeper(target=1)

    timer = SweepTimer(sweeper, interval=60, run_immediately=False).start()
    timer.stop()

    assert sweeper.calls == 0


def test_timer_start_is_idempotent():
    timer = SweepTimer(CountingSweeper(target=1), interval=60, run_immediately=False)
    try:
        thread = timer.start()._thread
        assert timer.start()._thread is thread
    finally:
        timer.stop()


@pytest.mark.parametrize('interval', [0, -1])
def test_timer_with_invalid_interval(interval):
    with pytest.raises(ValueError, match='Sweep interval must be positive'):
        SweepTimer(CountingSweeper(target=1), interval=interval)

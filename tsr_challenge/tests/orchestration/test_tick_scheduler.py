"""Tests for the tick schedulers."""
import threading
from unittest.mock import Mock

import pytest

from tsr_challenge.orchestration.scheduler import ManualTickScheduler, ThreadingTickScheduler


class TestManualTickScheduler:
    """Test suite for ManualTickScheduler."""

    def test_ticks_fire_on_advance(self):
        scheduler = ManualTickScheduler()
        callback = Mock()
        scheduler.schedule_repeating(1.0, callback)

        scheduler.advance(0.5)
        assert callback.call_count == 0
        scheduler.advance(3.5)
        assert callback.call_count == 4
        assert scheduler.now == pytest.approx(4.0)

    def test_cancel_stops_ticks(self):
        scheduler = ManualTickScheduler()
        callback = Mock()
        handle = scheduler.schedule_repeating(1.0, callback)

        scheduler.advance(2)
        handle.cancel()
        scheduler.advance(5)

        assert callback.call_count == 2
        assert handle.cancelled
        assert scheduler.active_jobs == 0

    def test_callback_may_cancel_itself(self):
        scheduler = ManualTickScheduler()
        calls = []
        holder = {}

        def tick():
            calls.append(scheduler.now)
            if len(calls) == 3:
                holder['handle'].cancel()

        holder['handle'] = scheduler.schedule_repeating(1.0, tick)
        scheduler.advance(10)

        assert calls == [1.0, 2.0, 3.0]

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            ManualTickScheduler().schedule_repeating(0, Mock())


class TestThreadingTickScheduler:
    """Test suite for ThreadingTickScheduler."""

    def test_ticks_until_cancelled(self):
        fired = threading.Event()
        callback = Mock(side_effect=lambda: fired.set())
        handle = ThreadingTickScheduler().schedule_repeating(0.01, callback)

        assert fired.wait(2.0)
        handle.cancel()
        assert callback.call_count >= 1

    def test_callback_errors_do_not_stop_ticking(self):
        seen = []
        done = threading.Event()

        def flaky():
            seen.append(1)
            if len(seen) >= 2:
                done.set()
            raise RuntimeError('boom')

        handle = ThreadingTickScheduler().schedule_repeating(0.01, flaky)
        assert done.wait(2.0)
        handle.cancel()

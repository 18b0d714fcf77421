"""Tests for the background poll loop."""

import threading

from church_reports.core.scheduler_background import ReportScheduler
from church_reports.schemas.scheduler import ReportExecutionResponse


class FakeRunner:
    def __init__(self, error=None):
        self.calls = []
        self.error = error
        self.polled = threading.Event()

    def run_due(self, now=None):
        self.calls.append(now)
        self.polled.set()
        if self.error:
            raise self.error
        return [ReportExecutionResponse(id=1, schedule_id=1, executed_at=now, status="failed")]


def test_check_now_delegates_to_runner():
    runner = FakeRunner()
    scheduler = ReportScheduler(runner=runner, check_interval=60)
    results = scheduler.check_now()
    assert len(results) == 1
    assert runner.calls == [scheduler.last_check]


def test_check_now_swallows_runner_errors(caplog):
    scheduler = ReportScheduler(runner=FakeRunner(error=RuntimeError("database went away")), check_interval=60)
    assert scheduler.check_now() == []
    assert "database went away" in caplog.text


def test_start_polls_and_stop_wakes_the_loop():
    runner = FakeRunner()
    scheduler = ReportScheduler(runner=runner, check_interval=3600)
    scheduler.start()
    try:
        assert runner.polled.wait(timeout=5)
        assert scheduler.running
    finally:
        scheduler.stop()
    assert not scheduler.running
    assert not scheduler.scheduler_thread.is_alive()

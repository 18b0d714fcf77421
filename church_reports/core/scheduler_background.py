#!/usr/bin/env python3
"""
Background scheduler thread for automated report execution
"""

import threading
import logging
from datetime import datetime
from typing import Optional

from church_reports.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

class ReportScheduler:
    """Background poll loop calling the runner's run_due on a fixed interval"""

    def __init__(self, runner=None, check_interval: Optional[int] = None):
        self.running = False
        self.scheduler_thread = None
        self.check_interval = check_interval or settings.SCHEDULER_CHECK_INTERVAL
        self.runner = runner
        self.last_check = None
        self._stop_event = threading.Event()

    def get_runner(self):
        if self.runner is None:
            from church_reports.services.notifier import build_notifier
            from church_reports.services.report_runner import ReportRunner
            self.runner = ReportRunner(
                notifier=build_notifier(),
                max_workers=settings.SCHEDULER_MAX_WORKERS
            )
        return self.runner

    def start(self):
        """Start the scheduler thread"""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        self.running = True
        self._stop_event.clear()
        self.scheduler_thread = threading.Thread(target=self._run_scheduler, daemon=True)
        self.scheduler_thread.start()
        logger.info("Report scheduler started")

    def stop(self):
        """Stop the scheduler thread"""
        self.running = False
        self._stop_event.set()
        if self.scheduler_thread:
            self.scheduler_thread.join(timeout=5)
        logger.info("Report scheduler stopped")

    def _run_scheduler(self):
        """Main scheduler loop - runs in background thread"""
        while self.running:
            self.check_now()
            # Sleep for check_interval seconds, waking early on stop
            self._stop_event.wait(self.check_interval)

    def check_now(self):
        """One poll: run every due schedule; errors are logged, never raised"""
        try:
            self.last_check = datetime.now()
            results = self.get_runner().run_due(self.last_check)
            if results:
                failed = sum(1 for result in results if result.status == "failed")
                logger.info(f"Scheduler ran {len(results)} report(s), {failed} failed")
            return results
        except Exception as e:
            logger.error(f"Error in scheduler loop: {e}")
            return []

# Global scheduler instance
_scheduler = ReportScheduler()

def start_scheduler():
    """Start the global scheduler"""
    _scheduler.start()

def stop_scheduler():
    """Stop the global scheduler"""
    _scheduler.stop()

def get_runner():
    """Runner shared by the poll loop and manual runs"""
    return _scheduler.get_runner()

def get_scheduler_status():
    """Get scheduler status"""
    return {
        "running": _scheduler.running,
        "check_interval": _scheduler.check_interval,
        "last_check": _scheduler.last_check.isoformat() if _scheduler.last_check else None,
        "max_workers": settings.SCHEDULER_MAX_WORKERS,
        "email_enabled": settings.email_configured
    }

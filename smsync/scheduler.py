# SMSYNC Scheduler
# Cron-triggered routine runs, serialized by a skip-if-running guard

import logging
import threading
from collections.abc import Callable
from typing import Optional

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from smsync.config.schema import SmsyncConfig
from smsync.sync.engine import RoutineResult, SyncEngine, SyncReport

logger = logging.getLogger(__name__)


class RoutineGuard:
    """
    Lets one routine run at a time.

    A trigger that fires while another routine holds the guard is skipped,
    not queued.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.running: Optional[str] = None

    def run(self, engine: SyncEngine, name: str) -> Optional[RoutineResult]:
        """Run a routine, or return None if another one is in progress."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Skipping %s sync: %s sync still running", name, self.running)
            return None
        try:
            self.running = name
            return engine.run_routine(name)
        finally:
            self.running = None
            self._lock.release()


class SyncScheduler:
    """Schedules the engine's routines on their cron expressions."""

    def __init__(
        self,
        engine: SyncEngine,
        config: SmsyncConfig,
        *,
        scheduler: Optional[BaseScheduler] = None,
        guard: Optional[RoutineGuard] = None,
    ):
        self.engine = engine
        self.config = config
        self.scheduler = scheduler or BlockingScheduler()
        self.guard = guard or RoutineGuard()

    def make_job(self, name: str) -> Callable[[], None]:
        """Zero-argument job for a routine."""

        def job() -> None:
            logger.info("[SCHEDULED] %s sync triggered", name.capitalize())
            self.guard.run(self.engine, name)

        job.__name__ = f"sync_{name}"
        return job

    def configure(self) -> list[str]:
        """
        Register a cron job per enabled routine.

        Returns:
            Names of the scheduled routines.
        """
        scheduled = []
        for name in self.config.get_enabled_routines():
            expression = self.config.get_schedule(name)
            if not expression:
                logger.info("No schedule for %s sync, not scheduling it", name)
                continue
            self.scheduler.add_job(
                self.make_job(name),
                trigger=CronTrigger.from_crontab(expression),
                id=f"sync_{name}",
                name=f"{name} sync",
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            logger.info("Scheduled %s sync: %s", name, expression)
            scheduled.append(name)
        return scheduled

    def run_initial_pass(self) -> SyncReport:
        """Run every enabled routine once, in order."""
        report = SyncReport()
        for name in self.config.get_enabled_routines():
            result = self.guard.run(self.engine, name)
            if result is not None:
                report.results[name] = result
        return report

    def start(self) -> None:
        """Start the scheduler. Blocks with the default BlockingScheduler."""
        self.scheduler.start()

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

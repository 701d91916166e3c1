"""
Recurring driver for the SMS reminder cycle.

Single-flight: a tick that arrives while the previous cycle is still running
(e.g. sleeping between rate-limited sends) is skipped, never queued. The busy
flag lives on the scheduler instance; set ``lock_path`` to also hold a file
lock so two processes on the same host cannot overlap either.
"""
from __future__ import annotations
import threading
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from filelock import FileLock, Timeout

from .agents.reminder_agent import ReminderAgent
from .models.reminder import CycleSummary
from .utils.config import config
from .utils.date_utils import get_current_clinic_time

logger = logging.getLogger(__name__)

JOB_ID = "sms_reminders"


@dataclass
class SchedulerState:
    initialized: bool = False
    is_processing: bool = False
    skipped_ticks: int = 0
    last_started_at: Optional[str] = None
    last_finished_at: Optional[str] = None
    last_summary: Optional[CycleSummary] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def try_begin(self) -> bool:
        """Idle -> Running; False if already running"""
        with self._lock:
            if self.is_processing:
                self.skipped_ticks += 1
                return False
            self.is_processing = True
            self.last_started_at = get_current_clinic_time().isoformat()
            return True

    def record_skip(self):
        with self._lock:
            self.skipped_ticks += 1

    def finish(self, summary: Optional[CycleSummary]):
        with self._lock:
            self.is_processing = False
            self.last_finished_at = get_current_clinic_time().isoformat()
            if summary is not None:
                self.last_summary = summary


class ReminderScheduler:
    def __init__(self, agent: Optional[ReminderAgent] = None, interval_minutes: Optional[int] = None,
                 lock_path: Optional[str] = None):
        self.agent = agent or ReminderAgent()
        self.interval_minutes = config.REMINDER_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
        self.lock_path = lock_path if lock_path is not None else config.REMINDER_LOCK_PATH
        self.state = SchedulerState()
        self._scheduler: Optional[BackgroundScheduler] = None

        narrowest = min(t.width for t in self.agent.thresholds)
        if self.interval_minutes <= 0 or self.interval_minutes * 60 > narrowest.total_seconds():
            raise ValueError(
                f"Scan interval of {self.interval_minutes} min must be positive and no wider than "
                f"the narrowest reminder window ({narrowest})"
            )

    def run_cycle(self, now: Optional[datetime] = None) -> CycleSummary:
        """Run one reminder cycle unless one is already in progress"""
        if not self.state.try_begin():
            logger.warning("Previous reminder run still active. Skipping...")
            return CycleSummary(skipped=True, skipped_reason="already_running")

        summary = None
        file_lock = FileLock(self.lock_path, timeout=0) if self.lock_path else None
        try:
            if file_lock is not None:
                try:
                    file_lock.acquire()
                except Timeout:
                    logger.warning(f"Reminder lock {self.lock_path} held by another process. Skipping...")
                    self.state.record_skip()
                    summary = CycleSummary(skipped=True, skipped_reason="locked_by_other_process")
                    return summary

            summary = self.agent.process_reminders(now)
            return summary
        except Exception as e:
            logger.exception("Reminder cycle failed")
            summary = CycleSummary(error=str(e))
            return summary
        finally:
            if file_lock is not None and file_lock.is_locked:
                file_lock.release()
            self.state.finish(summary)

    def start(self):
        """Register the interval job and start the background scheduler"""
        if self._scheduler is not None:
            return
        self._scheduler = BackgroundScheduler(timezone=self.agent.tz)
        self._scheduler.add_job(
            self.run_cycle,
            IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Send SMS appointment reminders",
            # let run_cycle see and record overlapping ticks
            max_instances=2,
            coalesce=True,
        )
        self._scheduler.start()
        self.state.initialized = True
        logger.info(f"Automated SMS reminder service initialized (interval: {self.interval_minutes}m)")

    def shutdown(self, wait: bool = True):
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
        self.state.initialized = False

    def status(self) -> Dict[str, Any]:
        return {
            "initialized": self.state.initialized,
            "is_processing": self.state.is_processing,
            "interval_minutes": self.interval_minutes,
            "skipped_ticks": self.state.skipped_ticks,
            "last_started_at": self.state.last_started_at,
            "last_finished_at": self.state.last_finished_at,
        }

from __future__ import annotations

import logging
import threading
from typing import Optional

import schedule

from ..core.constants import (
    DEFAULT_DAILY_REMINDER_AT,
    DEFAULT_LOW_ATTENDANCE_AT,
    DEFAULT_LOW_ATTENDANCE_MIN_CLASSES,
    DEFAULT_TIMEZONE,
    DEFAULT_WEEKLY_SUMMARY_AT,
)
from .jobs import run_daily_reminder_job, run_low_attendance_job, run_weekly_summary_job

logger = logging.getLogger(__name__)


def register_jobs(
    scheduler: schedule.Scheduler,
    container,
    *,
    tz: str = DEFAULT_TIMEZONE,
    low_attendance_at: str = DEFAULT_LOW_ATTENDANCE_AT,
    weekly_summary_at: str = DEFAULT_WEEKLY_SUMMARY_AT,
    daily_reminder_at: str = DEFAULT_DAILY_REMINDER_AT,
    min_classes: int = DEFAULT_LOW_ATTENDANCE_MIN_CLASSES,
) -> schedule.Scheduler:
    """Nightly low-attendance scan, Sunday summary, weekday morning reminder."""
    scheduler.every().day.at(low_attendance_at, tz).do(run_low_attendance_job, container, min_classes=min_classes)
    scheduler.every().sunday.at(weekly_summary_at, tz).do(run_weekly_summary_job, container)
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday"):
        getattr(scheduler.every(), day).at(daily_reminder_at, tz).do(run_daily_reminder_job, container)
    return scheduler


def build_scheduler(container, settings=None) -> schedule.Scheduler:
    return register_jobs(
        schedule.Scheduler(),
        container,
        tz=getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE),
        low_attendance_at=getattr(settings, "LOW_ATTENDANCE_AT", DEFAULT_LOW_ATTENDANCE_AT),
        weekly_summary_at=getattr(settings, "WEEKLY_SUMMARY_AT", DEFAULT_WEEKLY_SUMMARY_AT),
        daily_reminder_at=getattr(settings, "DAILY_REMINDER_AT", DEFAULT_DAILY_REMINDER_AT),
        min_classes=int(getattr(settings, "LOW_ATTENDANCE_MIN_CLASSES", DEFAULT_LOW_ATTENDANCE_MIN_CLASSES)),
    )


def run_scheduler(
    container,
    stop_event: Optional[threading.Event] = None,
    *,
    settings=None,
    poll_seconds: float = 30,
) -> None:
    """Run registered jobs until `stop_event` is set."""
    stop_event = stop_event or threading.Event()
    scheduler = build_scheduler(container, settings)
    logger.info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    while not stop_event.is_set():
        scheduler.run_pending()
        stop_event.wait(poll_seconds)
    logger.info("Scheduler stopped")

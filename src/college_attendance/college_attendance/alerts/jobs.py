"""Recurring notification jobs.

Each job takes its collaborators explicitly and never raises: problems are logged and
reflected in the returned report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.constants import DEFAULT_LOW_ATTENDANCE_MIN_CLASSES
from ..notifications.messages import daily_reminder_message
from ..notifications.model import DispatchReport

logger = logging.getLogger(__name__)


@dataclass
class JobReport:
    name: str
    ok: bool = True
    error: Optional[str] = None
    alerts: int = 0
    dispatch: DispatchReport = field(default_factory=DispatchReport)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "error": self.error,
            "alerts": self.alerts,
            **self.dispatch.to_dict(),
        }


def _failed(report: JobReport, exc: Exception) -> JobReport:
    logger.exception("Job %s failed", report.name)
    report.ok = False
    report.error = str(exc) or type(exc).__name__
    return report


def run_low_attendance_job(container, *, min_classes: int = DEFAULT_LOW_ATTENDANCE_MIN_CLASSES) -> JobReport:
    report = JobReport(name="low_attendance")
    try:
        batch = container.alert_scanner.scan(min_classes=min_classes)
    except Exception as e:
        return _failed(report, e)
    report.alerts = len(batch.alerts)
    report.dispatch = batch.dispatch
    logger.info("Low attendance alerts: %d sent, %d failed", batch.dispatch.succeeded, batch.dispatch.failed)
    return report


def run_weekly_summary_job(container) -> JobReport:
    report = JobReport(name="weekly_summary")
    try:
        students = [s for s in container.students_repo.list_active() if s.can_receive_push]
    except Exception as e:
        return _failed(report, e)

    for student in students:
        try:
            percentage = container.aggregator.overall(student.student_id).percentage
            report.dispatch.add(container.dispatcher.notify_weekly_summary(student, percentage))
        except Exception:
            logger.exception("Weekly summary for %s failed", student.roll_number)
            report.ok = False

    logger.info("Weekly summaries sent: %d", report.dispatch.succeeded)
    return report


def run_daily_reminder_job(container) -> JobReport:
    report = JobReport(name="daily_reminder")
    try:
        students = container.students_repo.list_active()
        report.dispatch = container.dispatcher.deliver_many(
            (s, daily_reminder_message()) for s in students if s.can_receive_push
        )
    except Exception as e:
        return _failed(report, e)

    logger.info("Daily reminders sent: %d", report.dispatch.succeeded)
    return report

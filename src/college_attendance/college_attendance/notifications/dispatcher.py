from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Iterable, Optional, Sequence, Tuple

from ..core.constants import (
    DEFAULT_ATTENDANCE_THRESHOLD,
    DEFAULT_DISPATCH_WORKERS,
    DEFAULT_PUSH_TIMEOUT_SECONDS,
    EXCELLENT_ATTENDANCE,
)
from ..core.enums import DispatchOutcome, PeriodStatus
from ..core.exceptions import DispatchFailure
from ..students.model import Student
from ..subjects.model import Subject
from .messages import daily_reminder_message, low_attendance_message, marked_message, weekly_summary_message
from .model import DispatchReport, DispatchResult, PushMessage
from .notifier import PushNotifier

logger = logging.getLogger(__name__)

REASON_NO_TARGET = "no device token"
REASON_OPTED_OUT = "notifications disabled"


def skip_reason(student: Student) -> Optional[str]:
    if not student.opted_in:
        return REASON_OPTED_OUT
    if not student.has_target:
        return REASON_NO_TARGET
    return None


class NotificationDispatcher:
    """Composes messages and hands them to the push notifier.

    Each send is bounded by `timeout` seconds; a timeout or a notifier error is a failed
    result for that student only. Students without a device token or with notifications
    turned off are skipped, which is not a failure.
    """

    def __init__(
        self,
        notifier: PushNotifier,
        *,
        threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
        excellent: int = EXCELLENT_ATTENDANCE,
        timeout: float = DEFAULT_PUSH_TIMEOUT_SECONDS,
        workers: int = DEFAULT_DISPATCH_WORKERS,
    ):
        self._notifier = notifier
        self._threshold = threshold
        self._excellent = excellent
        self._timeout = timeout
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push")

    def deliver(self, student: Student, message: PushMessage) -> DispatchResult:
        reason = skip_reason(student)
        if reason:
            return DispatchResult.skipped(student.student_id, reason)

        future = self._pool.submit(
            self._notifier.send, student.device_token, message.title, message.body, message.payload()
        )
        try:
            ok = future.result(timeout=self._timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning("Push to %s timed out after %ss", student.roll_number, self._timeout)
            return DispatchResult.failed(student.student_id, "timeout")
        except DispatchFailure as e:
            logger.warning("Push to %s failed: %s", student.roll_number, e)
            return DispatchResult.failed(student.student_id, str(e))
        except Exception as e:
            logger.exception("Unexpected notifier error for %s", student.roll_number)
            return DispatchResult.failed(student.student_id, str(e) or type(e).__name__)

        if not ok:
            logger.warning("Push to %s was rejected", student.roll_number)
            return DispatchResult.failed(student.student_id, "rejected")
        return DispatchResult(student.student_id, DispatchOutcome.SENT)

    def deliver_many(self, items: Iterable[Tuple[Student, PushMessage]]) -> DispatchReport:
        report = DispatchReport()
        for student, message in items:
            report.add(self.deliver(student, message))
        return report

    def notify_marked(self, student: Student, subject: Subject, status: PeriodStatus, percentage: int) -> DispatchResult:
        return self.deliver(student, self.marked(subject, status, percentage))

    def notify_updated(self, student: Student, subject: Subject, status: PeriodStatus, percentage: int) -> DispatchResult:
        return self.deliver(student, self.marked(subject, status, percentage, updated=True))

    def notify_low_attendance(
        self, student: Student, subject: Subject, percentage: int, classes_needed: int
    ) -> DispatchResult:
        message = low_attendance_message(
            subject_id=subject.subject_id,
            subject_name=subject.name,
            percentage=percentage,
            classes_needed=classes_needed,
            threshold=self._threshold,
        )
        return self.deliver(student, message)

    def notify_weekly_summary(self, student: Student, percentage: int) -> DispatchResult:
        message = weekly_summary_message(percentage=percentage, threshold=self._threshold, excellent=self._excellent)
        return self.deliver(student, message)

    def notify_daily_reminder(self, student: Student) -> DispatchResult:
        return self.deliver(student, daily_reminder_message())

    def marked(self, subject: Subject, status: PeriodStatus, percentage: int, *, updated: bool = False) -> PushMessage:
        return marked_message(
            subject_id=subject.subject_id,
            subject_name=subject.name,
            status=status,
            percentage=percentage,
            threshold=self._threshold,
            excellent=self._excellent,
            updated=updated,
        )

    def broadcast(self, students: Sequence[Student], message: PushMessage) -> DispatchReport:
        """One multi-target send for every reachable student."""
        report = DispatchReport()
        reachable = []
        for student in students:
            reason = skip_reason(student)
            if reason:
                report.add(DispatchResult.skipped(student.student_id, reason))
            else:
                reachable.append(student)
        if not reachable:
            return report

        future = self._pool.submit(
            self._notifier.send_many,
            [s.device_token for s in reachable],
            message.title,
            message.body,
            message.payload(),
        )
        try:
            outcome = future.result(timeout=self._timeout)
        except FutureTimeout:
            logger.warning("Broadcast to %d students timed out", len(reachable))
            outcome = None
        except DispatchFailure as e:
            logger.warning("Broadcast to %d students failed: %s", len(reachable), e)
            outcome = None
        except Exception:
            logger.exception("Unexpected notifier error broadcasting to %d students", len(reachable))
            outcome = None

        for i, student in enumerate(reachable):
            if outcome is not None and i < len(outcome.outcomes) and outcome.outcomes[i]:
                report.add(DispatchResult(student.student_id, DispatchOutcome.SENT))
            else:
                report.add(DispatchResult.failed(student.student_id, "broadcast failed"))
        logger.info("Broadcast %r: %s", message.title, report.to_dict())
        return report

    def close(self) -> None:
        self._pool.shutdown(wait=False)

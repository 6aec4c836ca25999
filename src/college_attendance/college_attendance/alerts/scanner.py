from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..attendance.aggregator import AttendanceAggregator
from ..common.validators import require_branch, require_semester, require_threshold
from ..core.constants import DEFAULT_ATTENDANCE_THRESHOLD
from ..notifications.dispatcher import NotificationDispatcher, skip_reason
from ..notifications.model import DispatchReport
from ..students.model import Student
from ..students.repository import StudentRepository
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository

logger = logging.getLogger(__name__)


def classes_needed(attended: int, total: int, threshold: int = DEFAULT_ATTENDANCE_THRESHOLD) -> int:
    """Consecutive classes to attend so attended/total reaches `threshold` percent.

    ceil((threshold*total - 100*attended) / (100 - threshold)), never negative.
    """
    threshold = require_threshold(threshold)
    numerator = threshold * total - 100 * attended
    if numerator <= 0:
        return 0
    return -(-numerator // (100 - threshold))


@dataclass(frozen=True)
class LowAttendanceAlert:
    student_id: int
    roll_number: str
    subject_id: int
    subject_name: str
    total_classes: int
    attended_classes: int
    percentage: int
    classes_needed: int

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "roll_number": self.roll_number,
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "total_classes": self.total_classes,
            "attended_classes": self.attended_classes,
            "percentage": self.percentage,
            "classes_needed": self.classes_needed,
        }


@dataclass
class AlertBatch:
    threshold: int
    alerts: List[LowAttendanceAlert] = field(default_factory=list)
    students_scanned: int = 0
    notified: int = 0
    opted_out: int = 0
    no_target: int = 0
    dispatch: DispatchReport = field(default_factory=DispatchReport)

    @property
    def failed(self) -> int:
        return self.dispatch.failed

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "students_scanned": self.students_scanned,
            "alerts": [a.to_dict() for a in self.alerts],
            "notified": self.notified,
            "opted_out": self.opted_out,
            "no_target": self.no_target,
            "dispatch": self.dispatch.to_dict(),
        }


class ThresholdAlertScanner:
    """Finds student/subject pairs below the threshold and pushes one alert per pair."""

    def __init__(
        self,
        students: StudentRepository,
        subjects: SubjectRepository,
        aggregator: AttendanceAggregator,
        dispatcher: NotificationDispatcher,
        *,
        threshold: int = DEFAULT_ATTENDANCE_THRESHOLD,
    ):
        self._students = students
        self._subjects = subjects
        self._aggregator = aggregator
        self._dispatcher = dispatcher
        self._threshold = require_threshold(threshold)

    def find_low_attendance(
        self,
        students: Sequence[Student],
        *,
        threshold: int,
        min_classes: int = 1,
    ) -> List[Tuple[Student, Subject, LowAttendanceAlert]]:
        subjects_by_class: Dict[Tuple[str, int], Sequence[Subject]] = {}
        found = []
        for student in students:
            key = (student.branch, student.semester)
            if key not in subjects_by_class:
                subjects_by_class[key] = self._subjects.list_for_class(*key)

            for subject in subjects_by_class[key]:
                summary = self._aggregator.summarize(student.student_id, subject.subject_id)
                if summary.total_classes <= 0 or summary.total_classes < min_classes:
                    continue
                if summary.percentage >= threshold:
                    continue
                alert = LowAttendanceAlert(
                    student_id=student.student_id,
                    roll_number=student.roll_number,
                    subject_id=subject.subject_id,
                    subject_name=subject.name,
                    total_classes=summary.total_classes,
                    attended_classes=summary.attended_classes,
                    percentage=summary.percentage,
                    classes_needed=classes_needed(summary.attended_classes, summary.total_classes, threshold),
                )
                found.append((student, subject, alert))
        return found

    def scan(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        threshold: Optional[int] = None,
        min_classes: int = 1,
    ) -> AlertBatch:
        threshold = require_threshold(threshold if threshold is not None else self._threshold)
        branch = require_branch(branch) if branch else None
        semester = require_semester(semester) if semester is not None else None

        students = [s for s in self._students.list_active(branch=branch, semester=semester) if s.is_active]
        batch = AlertBatch(threshold=threshold, students_scanned=len(students))

        flagged = self.find_low_attendance(students, threshold=threshold, min_classes=min_classes)
        counted = set()
        for student, subject, alert in flagged:
            batch.alerts.append(alert)

            reason = skip_reason(student)
            if reason and student.student_id not in counted:
                if student.opted_in:
                    batch.no_target += 1
                else:
                    batch.opted_out += 1
            counted.add(student.student_id)
            if reason:
                continue

            result = self._dispatcher.notify_low_attendance(student, subject, alert.percentage, alert.classes_needed)
            batch.dispatch.add(result)

        batch.notified = len({r.student_id for r in batch.dispatch.results if r.sent})
        logger.info(
            "Low attendance scan (threshold %d%%): %d students, %d alerts, %d notified, %d opted out, %d without token, %d failed",
            threshold,
            batch.students_scanned,
            len(batch.alerts),
            batch.notified,
            batch.opted_out,
            batch.no_target,
            batch.failed,
        )
        return batch

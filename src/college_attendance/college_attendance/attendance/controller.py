from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import current_principal, json_body, json_endpoint
from ..common.validators import require_positive
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.principal import Principal, require_role
from .service import parse_slots, parse_statuses


def register(app: Flask, container) -> None:
    def _require_reader(actor: Principal, student_id: int) -> None:
        require_role(actor, Role.ADMIN, Role.TEACHER, Role.STUDENT)
        if actor.is_student and actor.principal_id != int(student_id):
            raise AuthorizationError("You can only view your own attendance")

    def _marking_args(data: dict) -> dict:
        return {
            "schedule_id": require_positive(data.get("schedule_id"), "Schedule id"),
            "attend_date": data.get("date") or "",
            "periods": parse_slots(data.get("periods")),
            "statuses": parse_statuses(data.get("attendance")),
        }

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @json_endpoint
    def attendance_mark():
        result = container.marking_service.mark(actor=current_principal(), **_marking_args(json_body()))
        return jsonify({"success": True, "message": "Attendance marked successfully", "data": result.to_dict()}), 201

    @app.route("/api/attendance/edit", methods=["PUT"], endpoint="attendance_edit")
    @json_endpoint
    def attendance_edit():
        result = container.marking_service.edit(actor=current_principal(), **_marking_args(json_body()))
        return jsonify({"success": True, "message": "Attendance updated successfully", "data": result.to_dict()}), 200

    @app.route("/api/attendance/summary/<int:student_id>/<int:subject_id>", methods=["GET"], endpoint="attendance_summary")
    @json_endpoint
    def attendance_summary(student_id: int, subject_id: int):
        _require_reader(current_principal(), student_id)
        container.student_service.get(student_id)
        container.subject_service.get(subject_id)
        summary = container.aggregator.summarize(student_id, subject_id)
        return jsonify({"success": True, "data": summary.to_dict()}), 200

    @app.route("/api/attendance/monthly/<int:student_id>/<int:subject_id>", methods=["GET"], endpoint="attendance_monthly")
    @json_endpoint
    def attendance_monthly(student_id: int, subject_id: int):
        _require_reader(current_principal(), student_id)
        container.student_service.get(student_id)
        container.subject_service.get(subject_id)
        buckets = container.aggregator.monthly_breakdown(student_id, subject_id)
        return jsonify({"success": True, "data": [b.to_dict() for b in buckets]}), 200

    @app.route("/api/attendance/class/<int:subject_id>", methods=["GET"], endpoint="attendance_class")
    @json_endpoint
    def attendance_class(subject_id: int):
        require_role(current_principal(), Role.ADMIN, Role.TEACHER)
        subject = container.subject_service.get(subject_id)

        date_s = request.args.get("date")
        if date_s:
            day = container.aggregator.day_summary(subject.subject_id, parse_iso_date(date_s))
            return jsonify(
                {
                    "success": True,
                    "data": {
                        "date": day.attend_date.isoformat(),
                        "subject": {"code": subject.code, "name": subject.name},
                        "total_students": day.total_students,
                        "present_count": day.present_count,
                        "absent_count": day.absent_count,
                        "percentage": day.percentage,
                    },
                }
            ), 200

        students = container.students_repo.find_eligible(subject.branch, subject.semester)
        report = container.aggregator.class_report(subject.subject_id, [s.student_id for s in students])
        rolls = {s.student_id: s.roll_number for s in students}
        return jsonify(
            {
                "success": True,
                "data": {
                    "subject": {"code": subject.code, "name": subject.name},
                    "class": f"{subject.branch} - Sem {subject.semester}",
                    "overall_percentage": report.overall_percentage,
                    "total_sessions": report.total_sessions,
                    "total_students": report.total_students,
                    "students": [
                        {
                            "student_id": row.student_id,
                            "roll_number": rolls.get(row.student_id),
                            **row.summary.to_dict(),
                            "status": row.standing.value,
                        }
                        for row in report.rows
                    ],
                },
            }
        ), 200

    @app.route("/api/attendance/roster/<int:schedule_id>", methods=["GET"], endpoint="attendance_roster")
    @json_endpoint
    def attendance_roster(schedule_id: int):
        attend_date = request.args.get("date") or container.clock.today()
        entries = container.marking_service.roster(
            actor=current_principal(), schedule_id=schedule_id, attend_date=attend_date
        )
        return jsonify({"success": True, "count": len(entries), "data": [e.to_dict() for e in entries]}), 200

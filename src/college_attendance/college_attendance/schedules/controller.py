from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_principal, json_body, json_endpoint
from ..common.validators import require_positive
from ..core.enums import Role
from ..users.principal import require_role


def register(app: Flask, container) -> None:
    @app.route("/api/schedules/check-conflict", methods=["POST"], endpoint="schedules_check_conflict")
    @json_endpoint
    def schedules_check_conflict():
        require_role(current_principal(), Role.ADMIN)
        data = json_body()
        exclude = data.get("exclude_schedule_id")
        check = container.conflict_detector.has_conflict(
            require_positive(data.get("teacher_id"), "Teacher id"),
            data.get("days") or [],
            data.get("start_time") or "",
            data.get("end_time") or "",
            exclude_schedule_id=require_positive(exclude, "Schedule id") if exclude else None,
        )
        return jsonify({"success": True, **check.to_dict()}), 200

    @app.route("/api/schedules", methods=["POST"], endpoint="schedules_create")
    @json_endpoint
    def schedules_create():
        data = json_body()
        schedule_id = container.schedule_service.create(
            actor=current_principal(),
            teacher_id=require_positive(data.get("teacher_id"), "Teacher id"),
            subject_id=require_positive(data.get("subject_id"), "Subject id"),
            branch=data.get("branch") or "",
            semester=data.get("semester"),
            days=data.get("days") or [],
            period=data.get("period") or "",
            start_time=data.get("start_time") or "",
            end_time=data.get("end_time") or "",
        )
        return jsonify({"success": True, "message": "Schedule created successfully", "schedule_id": schedule_id}), 201

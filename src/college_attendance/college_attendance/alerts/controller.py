from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_principal, json_endpoint
from ..core.enums import Role
from ..users.principal import require_role


def register(app: Flask, container) -> None:
    @app.route("/api/alerts/low-attendance", methods=["POST"], endpoint="alerts_low_attendance")
    @json_endpoint
    def alerts_low_attendance():
        """On-demand scan. Body fields are optional: branch, semester, threshold, min_classes."""
        require_role(current_principal(), Role.ADMIN)
        data = request.get_json(silent=True) or {}
        batch = container.alert_scanner.scan(
            branch=data.get("branch") or None,
            semester=data.get("semester"),
            threshold=data.get("threshold"),
            min_classes=int(data.get("min_classes") or 1),
        )
        return jsonify({"success": True, "data": batch.to_dict()}), 200

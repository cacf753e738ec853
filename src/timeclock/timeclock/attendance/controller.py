from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.exceptions import ValidationError
from ..employees.model import Actor

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if Actor.from_session(session) is None:
                return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/attendance/clock", methods=["POST"], endpoint="api_attendance_clock")
    def api_attendance_clock():
        """Kiosk tap endpoint: NFC UID or employee code plus mandatory location.

        Without eventType the event is auto-detected from the employee's last event.
        """
        try:
            result = container.clock_service.clock(request.get_json(silent=True))
        except Exception:
            logger.exception("Clock request failed")
            return jsonify({"accepted": False, "reason": "Internal server error"}), 500

        return jsonify(result.to_dict()), 200 if result.accepted else 400

    @app.route("/api/attendance/last-event", methods=["GET"], endpoint="api_attendance_last_event")
    @login_required
    def api_attendance_last_event():
        actor = Actor.from_session(session)
        try:
            event = container.clock_service.last_event_for_user(actor)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Error fetching last event")
            return jsonify({"error": "Internal server error"}), 500

        return jsonify({"event": event.to_dict() if event else None}), 200

    @app.route("/api/attendance/state/<employee_id>", methods=["GET"], endpoint="api_attendance_state")
    @login_required
    def api_attendance_state(employee_id: str):
        actor = Actor.from_session(session)
        if not actor.is_manager:
            return jsonify({"error": "Unauthorized"}), 401

        employee = container.employees_repo.get_by_id(employee_id)
        if not employee or employee.company_id != actor.company_id:
            return jsonify({"error": "Employee not found or does not belong to your company."}), 404

        try:
            day = container.clock_service.current_state(employee.employee_id, employee.company_id)
        except Exception:
            logger.exception("Error loading state for employee %s", employee_id)
            return jsonify({"error": "Internal server error"}), 500

        return (
            jsonify(
                {
                    "employeeId": employee.employee_id,
                    "state": day.state.value,
                    "since": day.since.isoformat() if day.since else None,
                    "lastEvent": day.last_event.to_dict() if day.last_event else None,
                }
            ),
            200,
        )

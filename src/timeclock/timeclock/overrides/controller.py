from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.enums import RejectionKind
from ..employees.model import Actor
from .service import UNAUTHORIZED, OverrideResult


def _respond(result: OverrideResult):
    if result.success:
        return jsonify(result.to_dict()), 200
    if result.kind == RejectionKind.UNAUTHORIZED:
        return jsonify(result.to_dict()), 401
    return jsonify(result.to_dict()), 400


def register(app: Flask, container: Container) -> None:
    gate = container.override_gate

    def _actor_and_notes():
        body = request.get_json(silent=True) or {}
        return Actor.from_session(session), body.get("notes")

    @app.route("/api/attendance/manage/<employee_id>/break", methods=["POST"], endpoint="manage_break")
    def manage_break(employee_id: str):
        actor, notes = _actor_and_notes()
        if actor is None:
            return jsonify({"success": False, "error": UNAUTHORIZED}), 401
        return _respond(gate.put_on_break(actor, employee_id=employee_id, notes=notes))

    @app.route("/api/attendance/manage/<employee_id>/end-break", methods=["POST"], endpoint="manage_end_break")
    def manage_end_break(employee_id: str):
        actor, notes = _actor_and_notes()
        if actor is None:
            return jsonify({"success": False, "error": UNAUTHORIZED}), 401
        return _respond(gate.end_break(actor, employee_id=employee_id, notes=notes))

    @app.route("/api/attendance/manage/<employee_id>/clock-out", methods=["POST"], endpoint="manage_clock_out")
    def manage_clock_out(employee_id: str):
        actor, notes = _actor_and_notes()
        if actor is None:
            return jsonify({"success": False, "error": UNAUTHORIZED}), 401
        return _respond(gate.clock_out_employee(actor, employee_id=employee_id, notes=notes))

from __future__ import annotations

import csv
import io
import logging
from datetime import date, timedelta
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date, utc_now
from ..container import Container
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import ReportType
from ..core.exceptions import ValidationError
from ..employees.model import Actor
from .service import EVENT_EXPORT_HEADERS, TIMESHEET_EXPORT_HEADERS

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def manager_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = Actor.from_session(session)
            if actor is None or not actor.is_manager:
                return jsonify({"error": "Unauthorized"}), 401
            if not actor.company_id:
                return jsonify({"error": "No company found"}), 400
            return view(actor, *args, **kwargs)

        return wrapper

    def _parse_date(value: str) -> date:
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValidationError("Invalid date (expected YYYY-MM-DD)")

    def _range_from_args() -> tuple[date, date]:
        today = utc_now().date()
        start_s = request.args.get("start") or (today - timedelta(days=DEFAULT_REPORT_DAYS)).strftime("%Y-%m-%d")
        end_s = request.args.get("end") or today.strftime("%Y-%m-%d")
        return _parse_date(start_s), _parse_date(end_s)

    def _write_csv(*, headers: list[str], rows: list[dict], filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=headers, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/reports/timesheets", methods=["GET"], endpoint="api_report_timesheets")
    @manager_required
    def api_report_timesheets(actor: Actor):
        try:
            start, end = _range_from_args()
            data = reports.build_timesheet_report(
                company_id=actor.company_id,
                start=start,
                end=end,
                employee_id=request.args.get("employeeId") or None,
            )
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Timesheet report failed")
            return jsonify({"error": "Internal server error"}), 500

        return (
            jsonify({"start": start.isoformat(), "end": end.isoformat(), "rows": data.rows, "summary": data.summary}),
            200,
        )

    @app.route("/api/reports/export.csv", methods=["GET"], endpoint="api_report_export")
    @manager_required
    def api_report_export(actor: Actor):
        try:
            start, end = _range_from_args()
            report_type = ReportType(request.args.get("reportType") or ReportType.TIMESHEET.value)
            employee_id = request.args.get("employeeId") or None

            if report_type == ReportType.EVENTS:
                headers = EVENT_EXPORT_HEADERS
                rows = reports.build_event_export(
                    company_id=actor.company_id, start=start, end=end, employee_id=employee_id
                )
            else:
                headers = TIMESHEET_EXPORT_HEADERS
                rows = reports.build_timesheet_export(
                    company_id=actor.company_id, start=start, end=end, employee_id=employee_id
                )
        except (ValidationError, ValueError) as e:
            # ValueError: unknown reportType
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Report export failed")
            return jsonify({"error": "Internal server error"}), 500

        filename = f"report-{report_type.value.lower()}-{start.strftime('%Y%m%d')}-{end.strftime('%Y%m%d')}.csv"
        return _write_csv(headers=headers, rows=rows, filename=filename)

    @app.route("/api/timesheets/me", methods=["GET"], endpoint="api_my_timesheets")
    def api_my_timesheets():
        actor = Actor.from_session(session)
        if actor is None:
            return jsonify({"error": "Unauthorized"}), 401

        try:
            start, end = _range_from_args()
            data = reports.my_timesheets(actor, start=start, end=end)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except Exception:
            logger.exception("Loading own timesheets failed")
            return jsonify({"error": "Internal server error"}), 500

        return jsonify({"rows": data.rows, "summary": data.summary}), 200

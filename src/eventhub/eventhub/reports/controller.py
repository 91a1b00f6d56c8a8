from __future__ import annotations

import csv
import io

from flask import Flask, Response, jsonify, request

from ..common.web import current_operator, login_required
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from .service import ATTENDEE_CSV_FIELDS


def _write_attendee_csv(rows: list[dict]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=ATTENDEE_CSV_FIELDS)
    writer.writeheader()
    for r in rows:
        writer.writerow(r)
    return buf.getvalue()


def register(app: Flask, container: Container) -> None:
    @app.route("/events/<int:event_id>/attendee-stats", methods=["GET"], endpoint="attendee_stats")
    @login_required
    def attendee_stats(event_id: int):
        stats = container.report_service.attendee_stats(event_id=event_id, operator=current_operator())
        return jsonify({"success": True, "event_id": event_id, "statistics": stats})

    @app.route("/events/<int:event_id>/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def attendance_stats(event_id: int):
        return jsonify(container.report_service.attendance_stats(event_id=event_id, operator=current_operator()))

    @app.route("/events/<int:event_id>/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history(event_id: int):
        history = container.report_service.scan_history(
            event_id=event_id,
            operator=current_operator(),
            limit=request.args.get("limit", DEFAULT_HISTORY_LIMIT),
            offset=request.args.get("offset", 0),
        )
        return jsonify({"history": history, "total": len(history)})

    @app.route("/events/<int:event_id>/ticket-sales", methods=["GET"], endpoint="ticket_sales")
    @login_required
    def ticket_sales(event_id: int):
        report = container.report_service.ticket_sales(event_id=event_id, operator=current_operator())
        return jsonify({"ticket_types": report.rows, "summary": report.summary})

    @app.route("/events/<int:event_id>/attendees.csv", methods=["GET"], endpoint="attendees_csv")
    @login_required
    def attendees_csv(event_id: int):
        rows = container.report_service.attendee_rows(event_id=event_id, operator=current_operator())
        return Response(
            _write_attendee_csv(rows),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename=event_{event_id}_attendees.csv"},
        )

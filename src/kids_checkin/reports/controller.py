from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import error_response, internal_error, make_auth_decorators, ok
from ..common.validators import optional_text
from ..container import Container
from ..core.exceptions import DomainError, ValidationError
from ..transport.flask_envelope import request_json
from .service import ReportFilter


def _filter_from(data: dict) -> ReportFilter:
    try:
        start = parse_iso_date(data["startDate"]) if data.get("startDate") else None
        end = parse_iso_date(data["endDate"]) if data.get("endDate") else None
    except (TypeError, ValueError):
        raise ValidationError("Dates must be YYYY-MM-DD")
    if start and end and start > end:
        raise ValidationError("Start date is after end date")
    return ReportFilter(
        start=start,
        end=end,
        child_id=optional_text(data.get("childId")),
        parent_id=optional_text(data.get("parentId")),
    )


def register(app: Flask, container: Container) -> None:
    token_required, _ = make_auth_decorators(container.auth_service)
    reports = container.report_service

    @app.route("/api/attendance/reports/session", methods=["POST"], endpoint="session_report")
    @token_required
    def session_report():
        try:
            raw = request_json().get("date")
            try:
                day = parse_iso_date(raw)
            except (TypeError, ValueError):
                raise ValidationError("date must be YYYY-MM-DD")
            return ok([row.to_dict() for row in reports.session_report(day)])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("building session report")

    @app.route("/api/attendance/reports/summary", methods=["POST"], endpoint="report_summary")
    @token_required
    def report_summary():
        try:
            rows, summary = reports.build(_filter_from(request_json()))
            return ok({"summary": summary.to_dict(), "rows": [row.to_dict() for row in rows]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("building report")

    @app.route("/api/attendance/reports/today", methods=["POST"], endpoint="report_today")
    @token_required
    def report_today():
        try:
            return ok(reports.today_overview().to_dict())
        except Exception:
            return internal_error("building dashboard")

    @app.route("/api/attendance/reports/export", methods=["POST"], endpoint="report_export")
    @token_required
    def report_export():
        """CSV export, returned inside the envelope like every other body."""
        try:
            rows, _ = reports.build(_filter_from(request_json()))
            return ok({"filename": "attendance-report.csv", "csv": reports.export_csv(rows)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("exporting report")

from __future__ import annotations

from flask import Flask, g

from ..common.http import error_response, internal_error, make_auth_decorators, ok
from ..common.validators import optional_text, require_id_list, require_non_empty
from ..container import Container
from ..core.enums import MarkAction
from ..core.exceptions import DomainError, ValidationError
from ..transport.flask_envelope import request_json
from .model import AttendanceQuery, CloseSelector


def _selector_from(data: dict) -> CloseSelector:
    if data.get("recordId"):
        return CloseSelector.record(require_non_empty(data["recordId"], "Record"))
    if data.get("childId"):
        return CloseSelector.child(require_non_empty(data["childId"], "Child"))
    if data.get("parentId"):
        if data.get("mode", "all") != "all":
            raise ValidationError("Unknown check-out mode")
        return CloseSelector.parent(require_non_empty(data["parentId"], "Parent"))
    raise ValidationError("recordId, childId or parentId is required")


def register(app: Flask, container: Container) -> None:
    token_required, _ = make_auth_decorators(container.auth_service)
    svc = container.attendance_service

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="checkin")
    @token_required
    def checkin():
        data = request_json()
        try:
            record = svc.check_in(
                require_non_empty(data.get("childId"), "Child"),
                staff_id=g.staff.staff_id,
                parent_id=optional_text(data.get("parentId")),
                notes=optional_text(data.get("notes")),
            )
            return ok(record.to_dict(), 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("checking in")

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="checkout")
    @token_required
    def checkout():
        data = request_json()
        try:
            result = svc.check_out(
                _selector_from(data),
                staff_id=g.staff.staff_id,
                notes=optional_text(data.get("notes")),
            )
            if isinstance(result, list):
                return ok([r.to_dict() for r in result])
            return ok(result.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("checking out")

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="mark_attendance")
    @token_required
    def mark_attendance():
        """Bulk check-in/check-out for several children, all or nothing."""
        data = request_json()
        try:
            child_ids = require_id_list(data.get("childIds"), "Children")
            try:
                action = MarkAction(data.get("action"))
            except ValueError:
                raise ValidationError("action must be CheckIn or CheckOut")

            notes = optional_text(data.get("notes"))
            if action == MarkAction.CHECK_IN:
                records = svc.check_in_many(
                    child_ids,
                    staff_id=g.staff.staff_id,
                    parent_id=optional_text(data.get("parentId")),
                    notes=notes,
                )
            else:
                records = svc.check_out_many(child_ids, staff_id=g.staff.staff_id, notes=notes)
            return ok([r.to_dict() for r in records])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("marking attendance")

    @app.route("/api/attendance/open", methods=["POST"], endpoint="list_open")
    @token_required
    def list_open():
        try:
            parent_id = require_non_empty(request_json().get("parentId"), "Parent")
            return ok([r.to_dict() for r in svc.list_open_for(parent_id)])
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("loading open sessions")

    @app.route("/api/attendance/list", methods=["POST"], endpoint="list_attendance")
    @token_required
    def list_attendance():
        data = request_json()
        try:
            query = AttendanceQuery(
                child_id=optional_text(data.get("childId")),
                parent_id=optional_text(data.get("parentId")),
                open_only=bool(data.get("openOnly", False)),
                limit=int(data.get("limit") or 500),
            )
            return ok([r.to_dict() for r in svc.list_records(query)])
        except (TypeError, ValueError):
            return error_response(ValidationError("limit must be a number"))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("loading attendance")

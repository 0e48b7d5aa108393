from __future__ import annotations

from flask import Flask

from ..common.http import error_response, internal_error, make_auth_decorators, ok
from ..container import Container
from ..core.exceptions import DomainError
from ..transport.flask_envelope import request_json


def register(app: Flask, container: Container) -> None:
    token_required, admin_required = make_auth_decorators(container.auth_service)

    @app.route("/api/parents", methods=["POST"], endpoint="create_parent")
    @admin_required
    def create_parent():
        try:
            parent = container.family_service.create_parent(request_json())
            return ok(parent.to_dict(), 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("adding parent")

    @app.route("/api/parents/list", methods=["POST"], endpoint="list_parents")
    @token_required
    def list_parents():
        return ok([p.to_dict() for p in container.family_service.list_parents()])

    @app.route("/api/parents/delete", methods=["POST"], endpoint="delete_parent")
    @admin_required
    def delete_parent():
        try:
            container.family_service.delete_parent(request_json().get("id", ""))
            return ok({"deleted": True})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("deleting parent")

    @app.route("/api/parents/<parent_id>/children", methods=["POST"], endpoint="create_child")
    @admin_required
    def create_child(parent_id: str):
        try:
            child = container.family_service.create_child(parent_id, request_json())
            return ok(child.to_dict(), 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("adding child")

    @app.route("/api/children/list", methods=["POST"], endpoint="list_children")
    @token_required
    def list_children():
        return ok([c.to_dict() for c in container.family_service.list_children()])

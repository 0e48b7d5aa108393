from __future__ import annotations

import logging

from flask import Flask, g

from ..common.http import error_response, internal_error, make_auth_decorators, ok
from ..container import Container
from ..core.exceptions import DomainError
from ..transport.flask_envelope import request_json

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    token_required, admin_required = make_auth_decorators(container.auth_service)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request_json()
        try:
            result = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
            logger.info("staff %s signed in", result.staff.staff_id)
            return ok(result.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("signing in")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    @token_required
    def logout():
        # Tokens are stateless; the device drops its copy.
        logger.info("staff %s signed out", g.staff.staff_id)
        return ok({"loggedOut": True})

    @app.route("/api/auth/me", methods=["POST"], endpoint="me")
    @token_required
    def me():
        return ok(g.staff.to_public_dict())

    @app.route("/api/auth/register", methods=["POST"], endpoint="register_staff")
    @admin_required
    def register_staff():
        try:
            staff = container.staff_service.create_account(current_role=g.staff.role, data=request_json())
            return ok(staff.to_public_dict(), 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("adding staff")

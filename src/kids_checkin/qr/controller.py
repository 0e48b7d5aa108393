from __future__ import annotations

import logging

from flask import Flask, g

from ..common.http import error_response, internal_error, make_auth_decorators, ok
from ..container import Container
from ..core.exceptions import DomainError
from ..transport.flask_envelope import request_json
from .payload import parse_scan_payload

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    token_required, admin_required = make_auth_decorators(container.auth_service)

    @app.route("/api/parents/qr", methods=["POST"], endpoint="parent_qr")
    @admin_required
    def parent_qr():
        """Parent QR code as a base64 PNG plus the raw payload it encodes."""
        try:
            parent_id = request_json().get("id", "")
            payload = container.qr_service.issue_payload(parent_id)
            return ok({"payload": payload.to_json(), "png": container.qr_service.render_png_base64(parent_id)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("generating QR code")

    @app.route("/api/scan", methods=["POST"], endpoint="scan")
    @token_required
    def scan():
        try:
            payload = parse_scan_payload(request_json().get("qrData", ""))
            family = container.qr_service.resolve(payload)
            logger.info("staff %s scanned family %s", g.staff.staff_id, payload.family_id)
            return ok(family.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            return internal_error("resolving QR code")

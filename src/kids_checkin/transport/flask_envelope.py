from __future__ import annotations

import json
import logging

from flask import Flask, g, jsonify, request

from ..core.constants import BYPASS_HEADER, ENCRYPTED_HEADER
from ..core.exceptions import TransportError, ValidationError
from .codec import TransportCodec

logger = logging.getLogger(__name__)


def _wants_bypass() -> bool:
    return request.headers.get(BYPASS_HEADER, "").lower() == "true"


def _plain_error(code: str, message: str):
    # Sent unsealed: the peer may not share our key.
    g.bypass = True
    return jsonify({"success": False, "code": code, "error": message}), 400


def request_json() -> dict:
    """Opened request body of the current call ({} when there is none)."""
    return getattr(g, "request_json", None) or {}


def install_envelope(app: Flask, codec: TransportCodec, *, plaintext_endpoints: set[str]) -> None:
    """Open request bodies before views run and seal JSON responses after.

    Only endpoints listed in ``plaintext_endpoints`` accept the bypass header.
    """

    @app.before_request
    def _open_request_body():
        g.request_json = {}
        g.bypass = False

        if request.endpoint in plaintext_endpoints:
            g.bypass = True
            return None

        if _wants_bypass():
            logger.warning("bypass refused for endpoint %s", request.endpoint)
            return _plain_error("bypass_refused", "Encryption bypass is not allowed here")

        raw = request.get_data(as_text=True)
        if not raw:
            return None

        try:
            body = json.loads(codec.open(raw) or "{}")
        except TransportError as e:
            return _plain_error(TransportError.code, str(e))
        except ValueError:
            return _plain_error(TransportError.code, "Request body is not JSON")

        if not isinstance(body, dict):
            return _plain_error(ValidationError.code, "Request body must be an object")
        g.request_json = body
        return None

    @app.after_request
    def _seal_response_body(response):
        if getattr(g, "bypass", False):
            return response
        if response.mimetype != "application/json":
            return response

        response.set_data(codec.seal(response.get_data(as_text=True)))
        response.mimetype = "text/plain"
        response.headers[ENCRYPTED_HEADER] = "true"
        return response

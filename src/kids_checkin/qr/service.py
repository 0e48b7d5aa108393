from __future__ import annotations

import base64
import io
import logging
from datetime import datetime, timedelta, timezone

import jwt
import qrcode

from ..core.exceptions import NotFoundError, ScanRejectedError
from ..families.model import FamilyView
from ..families.service import FamilyService
from .payload import ScanPayload

logger = logging.getLogger(__name__)

_AUDIENCE = "family-qr"


class QrService:
    """Issues parent QR payloads and resolves scanned ones to a family.

    The secret is a signed token bound to the parent id, so a payload with a
    forged or swapped family id is rejected.
    """

    def __init__(self, families: FamilyService, *, secret: str, valid_days: int = 365):
        if not secret:
            raise ValueError("QR secret is not configured")
        self._families = families
        self._secret = secret
        self._valid_for = timedelta(days=int(valid_days))

    def issue_payload(self, parent_id: str, *, now: datetime | None = None) -> ScanPayload:
        parent = self._families.get_parent(parent_id)
        now = now or datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": parent.parent_id, "aud": _AUDIENCE, "iat": now, "exp": now + self._valid_for},
            self._secret,
            algorithm="HS256",
        )
        return ScanPayload(family_id=parent.parent_id, secret=token)

    def render_png(self, parent_id: str) -> bytes:
        payload = self.issue_payload(parent_id)
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(payload.to_json())
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def render_png_base64(self, parent_id: str) -> str:
        return base64.b64encode(self.render_png(parent_id)).decode("ascii")

    def resolve(self, payload: ScanPayload) -> FamilyView:
        try:
            claims = jwt.decode(
                payload.secret,
                self._secret,
                algorithms=["HS256"],
                audience=_AUDIENCE,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise ScanRejectedError("QR code expired, please print a new one")
        except jwt.InvalidTokenError:
            raise ScanRejectedError("QR code is not valid")

        if claims.get("sub") != payload.family_id:
            logger.warning("QR secret issued for another family was presented")
            raise ScanRejectedError("QR code is not valid")

        try:
            return self._families.get_family(payload.family_id)
        except NotFoundError:
            raise NotFoundError("Family not found. Please try scanning again.")

"""Parent QR payload: ``{"family": <parent id>, "s": <secret>}``.

Parsing happens on the scanning device before any network call, so a bad
scan is reported as a ValidationError and never costs a round trip.
"""
from __future__ import annotations

import json
from dataclasses import dataclass

from ..core.exceptions import ValidationError

FAMILY_FIELD = "family"
SECRET_FIELD = "s"


@dataclass(frozen=True)
class ScanPayload:
    family_id: str
    secret: str

    def to_json(self) -> str:
        return json.dumps({FAMILY_FIELD: self.family_id, SECRET_FIELD: self.secret}, separators=(",", ":"))


def _required(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Invalid QR code. Please scan a parent QR code.")
    return value.strip()


def parse_scan_payload(raw: str) -> ScanPayload:
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("Empty QR code")
    try:
        data = json.loads(raw)
    except ValueError:
        raise ValidationError("Invalid QR code format. Please scan a valid parent QR code.")
    if not isinstance(data, dict):
        raise ValidationError("Invalid QR code format. Please scan a valid parent QR code.")

    return ScanPayload(family_id=_required(data, FAMILY_FIELD), secret=_required(data, SECRET_FIELD))

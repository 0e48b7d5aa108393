from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Optional, Sequence

from ..attendance.model import AttendanceRecord, record_from_dict
from ..core.constants import BYPASS_HEADER, ENCRYPTED_HEADER
from ..core.enums import MarkAction
from ..core.exceptions import (
    AuthError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ScanRejectedError,
    TransportError,
    ValidationError,
)
from ..families.model import Child, FamilyView, Parent, child_from_dict, family_from_dict, parent_from_dict
from ..qr.payload import ScanPayload, parse_scan_payload
from ..transport.codec import TransportCodec
from .token_store import SessionContext
from .transport import RawResponse, Transport

logger = logging.getLogger(__name__)


def _error_for(resp: RawResponse, body: dict) -> DomainError:
    message = str(body.get("error") or f"HTTP {resp.status}")
    code = body.get("code")

    if resp.status == 401:
        return AuthError(message)
    if resp.status == 403:
        if code == ScanRejectedError.code:
            return ScanRejectedError(message)
        return AuthorizationError(message)
    if resp.status == 404:
        return NotFoundError(message)
    if resp.status == 409:
        return ConflictError(message)
    if resp.status == 400:
        if code in (TransportError.code, "bypass_refused"):
            return TransportError(message)
        return ValidationError(message)
    return TransportError(message)


class ApiClient:
    """Staff-device API client.

    Every body crosses the wire sealed by the transport codec unless the call
    passes ``bypass_encryption=True``; every call except login carries the
    bearer token held by the session context.
    """

    def __init__(self, transport: Transport, codec: TransportCodec, session: SessionContext):
        self._transport = transport
        self._codec = codec
        self.session = session

    def request(
        self,
        endpoint: str,
        *,
        method: str = "POST",
        body: Optional[dict] = None,
        authenticated: bool = True,
        bypass_encryption: bool = False,
    ) -> Any:
        headers: dict[str, str] = {}
        token = self.session.tokens.current_token()
        if authenticated and token:
            headers["Authorization"] = f"Bearer {token}"

        payload: Optional[str] = None
        if bypass_encryption:
            headers[BYPASS_HEADER] = "true"
            headers["Content-Type"] = "application/json"
            if body is not None:
                payload = json.dumps(body)
        else:
            headers["Content-Type"] = "text/plain"
            if body is not None:
                payload = self._codec.seal(json.dumps(body))

        resp = self._transport.call(endpoint, method, payload, headers)
        data = self._decode(resp, bypass_encryption=bypass_encryption)

        if 200 <= resp.status < 300:
            return data.get("data", data)

        error = _error_for(resp, data)
        if isinstance(error, AuthError) and authenticated:
            logger.info("credential rejected on %s, clearing session", endpoint)
            self.session.teardown()
        raise error

    def _decode(self, resp: RawResponse, *, bypass_encryption: bool) -> dict:
        text = resp.text or ""
        if resp.header(ENCRYPTED_HEADER).lower() == "true":
            text = self._codec.open(text)
        elif not bypass_encryption and 200 <= resp.status < 300:
            # A success body must be sealed; plaintext here means desync or tampering.
            raise TransportError("Response was not encrypted")

        if not text:
            return {}
        try:
            data = json.loads(text)
        except ValueError:
            if 200 <= resp.status < 300:
                raise TransportError("Response body is not JSON")
            return {"error": text}
        return data if isinstance(data, dict) else {"data": data}

    # Auth

    def login(self, email: str, password: str) -> dict:
        data = self.request("/api/auth/login", body={"email": email, "password": password}, authenticated=False)
        self.session.begin(data["token"], data["user"])
        return data["user"]

    def logout(self) -> None:
        try:
            if self.session.tokens.current_token():
                self.request("/api/auth/logout")
        except DomainError as e:
            logger.info("logout call failed: %s", e)
        finally:
            self.session.teardown()

    def me(self) -> dict:
        return self.request("/api/auth/me")

    def register_staff(self, staff: dict) -> dict:
        return self.request("/api/auth/register", body=staff)

    def health_check(self) -> bool:
        try:
            data = self.request("/health", method="GET", authenticated=False, bypass_encryption=True)
        except DomainError:
            return False
        return bool(data.get("success", data.get("status") == "ok")) if isinstance(data, dict) else False

    # Families

    def list_parents(self) -> list[Parent]:
        return [parent_from_dict(p) for p in self.request("/api/parents/list")]

    def create_parent(self, parent: dict) -> Parent:
        return parent_from_dict(self.request("/api/parents", body=parent))

    def delete_parent(self, parent_id: str) -> None:
        self.request("/api/parents/delete", body={"id": parent_id})

    def parent_qr(self, parent_id: str) -> dict:
        return self.request("/api/parents/qr", body={"id": parent_id})

    def list_children(self) -> list[Child]:
        return [child_from_dict(c) for c in self.request("/api/children/list")]

    def create_child(self, parent_id: str, child: dict) -> Child:
        return child_from_dict(self.request(f"/api/parents/{parent_id}/children", body=child))

    # QR

    def resolve_scan(self, payload: ScanPayload) -> FamilyView:
        return family_from_dict(self.request("/api/scan", body={"qrData": payload.to_json()}))

    def scan(self, raw: str) -> FamilyView:
        """Parse locally (ValidationError, no network) then resolve on the server."""
        return self.resolve_scan(parse_scan_payload(raw))

    # Attendance

    def check_in(self, child_id: str, notes: Optional[str] = None, *, parent_id: Optional[str] = None) -> AttendanceRecord:
        body = {"childId": child_id, "notes": notes}
        if parent_id:
            body["parentId"] = parent_id
        return record_from_dict(self.request("/api/attendance/checkin", body=body))

    def check_out(self, record_id: str, notes: Optional[str] = None) -> AttendanceRecord:
        return record_from_dict(self.request("/api/attendance/checkout", body={"recordId": record_id, "notes": notes}))

    def check_out_child(self, child_id: str, notes: Optional[str] = None) -> AttendanceRecord:
        return record_from_dict(self.request("/api/attendance/checkout", body={"childId": child_id, "notes": notes}))

    def check_out_family(self, parent_id: str, notes: Optional[str] = None) -> list[AttendanceRecord]:
        data = self.request("/api/attendance/checkout", body={"parentId": parent_id, "mode": "all", "notes": notes})
        return [record_from_dict(r) for r in data]

    def mark_attendance(self, child_ids: Sequence[str], action: MarkAction, *, parent_id: Optional[str] = None) -> list[AttendanceRecord]:
        body = {"childIds": list(child_ids), "action": action.value}
        if parent_id:
            body["parentId"] = parent_id
        return [record_from_dict(r) for r in self.request("/api/attendance/mark", body=body)]

    def list_open_for(self, parent_id: str) -> list[AttendanceRecord]:
        return [record_from_dict(r) for r in self.request("/api/attendance/open", body={"parentId": parent_id})]

    def list_records(self, **filters: Any) -> list[AttendanceRecord]:
        return [record_from_dict(r) for r in self.request("/api/attendance/list", body=filters)]

    # Reports

    def session_report(self, day: date) -> list[dict]:
        return self.request("/api/attendance/reports/session", body={"date": day.isoformat()})

    def report_summary(self, **filters: Any) -> dict:
        return self.request("/api/attendance/reports/summary", body=filters)

    def today_overview(self) -> dict:
        return self.request("/api/attendance/reports/today")

    def export_report(self, **filters: Any) -> str:
        return self.request("/api/attendance/reports/export", body=filters)["csv"]

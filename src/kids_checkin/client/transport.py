from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import requests

from ..core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    status: int
    text: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


class Transport(Protocol):
    """Single network primitive the client is built on."""

    def call(
        self,
        endpoint: str,
        method: str,
        body: Optional[str],
        headers: Mapping[str, str],
    ) -> RawResponse:
        raise NotImplementedError


class RequestsTransport(Transport):
    def __init__(self, base_url: str, *, timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS, session: requests.Session | None = None):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def call(
        self,
        endpoint: str,
        method: str,
        body: Optional[str],
        headers: Mapping[str, str],
    ) -> RawResponse:
        url = f"{self._base_url}{endpoint}"
        try:
            resp = self._session.request(
                method,
                url,
                data=body.encode("utf-8") if body is not None else None,
                headers=dict(headers),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, endpoint, e.__class__.__name__)
            raise TransportError("Network error, please try again") from e
        return RawResponse(status=resp.status_code, text=resp.text, headers=dict(resp.headers))

    def close(self) -> None:
        self._session.close()

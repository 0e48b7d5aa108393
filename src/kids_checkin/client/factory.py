from __future__ import annotations

from pathlib import Path
from types import ModuleType

from ..core.constants import DEFAULT_HEALTH_POLL_SECONDS, DEFAULT_HTTP_TIMEOUT_SECONDS
from ..transport.codec import TransportCodec
from .api import ApiClient
from .health import HealthMonitor
from .token_store import JsonFileStore, SessionContext
from .transport import RequestsTransport


def build_client(
    *,
    base_url: str,
    settings: ModuleType,
    store_path: str | Path,
) -> tuple[ApiClient, HealthMonitor]:
    """Wire a staff device: restored session, sealed transport, health monitor."""
    session = SessionContext(JsonFileStore(store_path))
    session.restore()

    transport = RequestsTransport(
        base_url,
        timeout=float(getattr(settings, "HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS)),
    )
    codec = TransportCodec(settings.TRANSPORT_KEY, authenticate=bool(getattr(settings, "TRANSPORT_MAC", False)))
    api = ApiClient(transport, codec, session)
    monitor = HealthMonitor(
        api.health_check,
        interval=float(getattr(settings, "HEALTH_POLL_SECONDS", DEFAULT_HEALTH_POLL_SECONDS)),
    )
    return api, monitor

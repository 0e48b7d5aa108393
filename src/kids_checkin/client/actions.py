from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.exceptions import AuthError, ConflictError, DomainError, NotFoundError, TransportError, ValidationError
from .token_store import SessionContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    """Transient, dismissible message for the staff member."""

    level: str
    message: str
    requires_login: bool = False


@dataclass(frozen=True)
class ActionResult:
    value: Any = None
    notice: Optional[Notice] = None

    @property
    def ok(self) -> bool:
        return self.notice is None or self.notice.level == "success"


def _notice_for(e: DomainError) -> Notice:
    if isinstance(e, AuthError):
        return Notice("danger", f"{e} Please sign in again.", requires_login=True)
    if isinstance(e, TransportError):
        return Notice("warning", f"{e} You can retry.")
    if isinstance(e, (ConflictError, NotFoundError, ValidationError)):
        return Notice("warning", str(e))
    return Notice("danger", str(e))


def run_action(
    action: Callable[[], Any],
    *,
    session: SessionContext,
    success: Optional[str] = None,
) -> ActionResult:
    """Run one user-initiated action; failures become a notice, never a crash."""
    try:
        value = action()
    except DomainError as e:
        if isinstance(e, AuthError):
            session.teardown()
        return ActionResult(notice=_notice_for(e))
    except Exception:
        logger.exception("unexpected failure in user action")
        return ActionResult(notice=Notice("danger", "Something went wrong. Please try again."))
    return ActionResult(value=value, notice=Notice("success", success) if success else None)

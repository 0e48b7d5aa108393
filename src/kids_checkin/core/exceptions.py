class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthError(DomainError):
    """Raised when a credential is missing, invalid or expired."""

    code = "auth_error"


class AuthorizationError(DomainError):
    """Raised when a staff member lacks permission for an action."""

    code = "forbidden"


class ConflictError(DomainError):
    """Raised when an open/close would break the one-open-session-per-child rule."""

    code = "conflict"


class NotFoundError(DomainError):
    """Raised when a selector or reference matches nothing."""

    code = "not_found"


class ScanRejectedError(DomainError):
    """Raised when the server refuses a QR credential (bad or expired secret)."""

    code = "scan_rejected"


class TransportError(DomainError):
    """Raised when an envelope cannot be opened or the network is unreachable.

    Always safe to retry.
    """

    code = "transport_error"

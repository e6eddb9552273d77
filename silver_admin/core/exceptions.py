"""
Silver Admin Exception Hierarchy

All service-level failures are raised as subclasses of AdminBackendError.
Each carries a message, a machine-readable code, optional details, and the
HTTP status it maps to at the API boundary.

Exception Hierarchy:
    AdminBackendError
    ├── BadRequestError
    │   ├── InvalidTransitionError
    │   └── InsufficientStockError
    ├── UnauthorizedError
    ├── ForbiddenError
    ├── NotFoundError
    ├── ConflictError
    └── ValidationFailedError

    TokenError
    ├── TokenExpiredError
    └── InvalidTokenError
"""
from typing import Optional, Dict, Any


class AdminBackendError(Exception):
    """
    Base exception for all client-facing errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging/audit
    """

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class BadRequestError(AdminBackendError):
    status_code = 400
    default_code = "BAD_REQUEST"


class UnauthorizedError(AdminBackendError):
    status_code = 401
    default_code = "UNAUTHORIZED"


class ForbiddenError(AdminBackendError):
    status_code = 403
    default_code = "FORBIDDEN"


class NotFoundError(AdminBackendError):
    status_code = 404
    default_code = "NOT_FOUND"


class ConflictError(AdminBackendError):
    status_code = 409
    default_code = "CONFLICT"


class ValidationFailedError(AdminBackendError):
    status_code = 422
    default_code = "VALIDATION_FAILED"


class InvalidTransitionError(BadRequestError):
    """Order status change that does not follow the lifecycle."""
    default_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str, **kwargs):
        details = kwargs.pop("details", {})
        details.update({"current_status": current, "requested_status": requested})
        super().__init__(
            f"Cannot change order status from '{current}' to '{requested}'",
            details=details,
            **kwargs,
        )


class InsufficientStockError(BadRequestError):
    """Stock change that would go negative or below the reserved quantity."""
    default_code = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        message: str,
        inventory_id: Optional[int] = None,
        requested_qty: Optional[int] = None,
        available_qty: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details.update({
            "inventory_id": inventory_id,
            "requested_qty": requested_qty,
            "available_qty": available_qty,
        })
        super().__init__(message, details=details, **kwargs)


# =============================================================================
# TOKEN ERRORS (raised by the token issuer, translated by callers)
# =============================================================================

class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """Signature valid but the token is past its expiry."""


class InvalidTokenError(TokenError):
    """Bad signature, malformed token, or wrong token type."""

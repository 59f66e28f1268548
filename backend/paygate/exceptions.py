"""
PayGate Exception Hierarchy

One exception class per failure kind. Each carries a stable error code and
the HTTP status the API layer answers with.
"""
from typing import Optional, Dict, Any


class GatewayError(Exception):
    """
    Base exception for all business-rule failures.

    Raised at the point of detection and propagated unmodified to the
    API boundary, where main.py renders it with to_dict().
    """

    status_code: int = 400

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class NotFoundError(GatewayError):
    """
    Referenced entity does not exist.

    Examples:
    - Merchant id or email unknown
    - Payment id unknown
    - API key id unknown
    """

    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class UnauthorizedError(GatewayError):
    """
    Authentication failed.

    Examples:
    - Missing or malformed Authorization header
    - Unknown or revoked API key
    - Merchant not approved
    - Wrong email or password on login
    """

    status_code = 401

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHORIZED", message, details)


class ForbiddenError(GatewayError):
    """
    Caller is authenticated but does not own the target entity.

    Examples:
    - Reading another merchant's payment
    - Revoking another merchant's API key
    """

    status_code = 403

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("FORBIDDEN", message, details)


class ConflictError(GatewayError):
    """
    Uniqueness violation.

    Example:
    - Registering an email that already belongs to a merchant
    """

    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFLICT", message, details)


class InvalidStateTransitionError(GatewayError):
    """
    Requested status change is not an edge of the state machine.

    Examples:
    - Refunding a PENDING payment
    - Approving a merchant that is already APPROVED
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        current_state: Optional[str] = None,
        attempted_action: Optional[str] = None
    ):
        details = {}
        if current_state is not None:
            details["current_state"] = current_state
        if attempted_action is not None:
            details["attempted_action"] = attempted_action
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__("INVALID_STATE_TRANSITION", message, details)


class InvalidInputError(GatewayError):
    """
    Malformed input that slipped past request validation.

    Examples:
    - Empty password or API key handed to a hashing helper
    - Non-positive payment amount
    - Reject/suspend reason outside 10-500 characters
    """

    status_code = 400

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        self.field_errors = dict(field_errors or {})
        details = {"field_errors": self.field_errors} if self.field_errors else None
        super().__init__("VALIDATION_ERROR", message, details)

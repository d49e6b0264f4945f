"""
VitaBalance API - Custom Exception Classes.

Exception hierarchy for application error handling.
"""

from typing import Optional


class VitaBalanceException(Exception):
    """
    Base exception class for VitaBalance application.

    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code for the error.
        detail: Additional error details.
    """

    def __init__(
        self,
        message: str = "An error occurred",
        status_code: int = 500,
        detail: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.detail = detail or message
        super().__init__(self.message)


class ValidationError(VitaBalanceException):
    """
    Exception raised for input validation failures.

    Used when:
    - Webhook payload is not JSON or lacks type / data.id
    - Registration patch carries an unknown label
    - Checkout attempted with incomplete registration
    """

    def __init__(self, message: str = "Validation error", detail: Optional[str] = None):
        super().__init__(message=message, status_code=400, detail=detail)


class AuthenticationError(VitaBalanceException):
    """Raised for a missing, expired or malformed user token."""

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message=message, status_code=401, detail=detail)


class ForbiddenError(VitaBalanceException):
    """Raised when the user lacks the paid entitlement for a resource."""

    def __init__(self, message: str = "Access denied", detail: Optional[str] = None):
        super().__init__(message=message, status_code=403, detail=detail)


class NotFoundError(VitaBalanceException):
    def __init__(self, message: str = "Resource not found", detail: Optional[str] = None):
        super().__init__(message=message, status_code=404, detail=detail)


class PlanUnavailable(VitaBalanceException):
    """
    Raised when a plan cannot be generated from the stored registration.

    Not a server fault: the user has to finish registration first.
    """

    def __init__(
        self,
        message: str = "Plan unavailable, complete registration",
        detail: Optional[str] = None
    ):
        super().__init__(message=message, status_code=409, detail=detail)


class UpstreamFetchError(VitaBalanceException):
    """
    Exception raised when the payment provider cannot be reached or answers
    with an error.

    Attributes:
        provider_status: HTTP status returned by the provider, if any.
    """

    def __init__(
        self,
        message: str = "Payment provider request failed",
        detail: Optional[str] = None,
        provider_status: Optional[int] = None
    ):
        self.provider_status = provider_status
        super().__init__(message=message, status_code=502, detail=detail)


class PaymentPreferenceError(UpstreamFetchError):
    """Checkout preference creation failed; surfaced to the user, never retried."""

    def __init__(
        self,
        message: str = "Could not create payment preference",
        detail: Optional[str] = None,
        provider_status: Optional[int] = None
    ):
        super().__init__(message=message, detail=detail, provider_status=provider_status)


class InvalidSignature(VitaBalanceException):
    """
    Webhook signature missing, unparsable or not matching.

    The public message is deliberately generic; the reason goes to ``detail``
    for logs only.
    """

    def __init__(self, detail: Optional[str] = None):
        super().__init__(message="Invalid signature", status_code=401, detail=detail)


class StoreError(VitaBalanceException):
    """
    Exception raised for row store failures.

    Attributes:
        code: Driver error code (SQLSTATE or exception class name).
        retryable: Whether the failure is transient.
    """

    def __init__(
        self,
        message: str = "Store operation failed",
        code: Optional[str] = None,
        retryable: bool = False,
        detail: Optional[str] = None
    ):
        self.code = code
        self.retryable = retryable
        super().__init__(message=message, status_code=503, detail=detail)


class ConfirmationTimeoutError(VitaBalanceException):
    """Entitlement did not become visible within the polling budget."""

    def __init__(
        self,
        message: str = "Payment confirmation is taking longer than expected",
        attempts: int = 0,
        detail: Optional[str] = None
    ):
        self.attempts = attempts
        super().__init__(message=message, status_code=504, detail=detail)

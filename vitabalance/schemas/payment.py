"""
VitaBalance API - Payment Schemas.

Pydantic schemas for checkout, webhook acknowledgement and payment
confirmation.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class PreferenceRequest(BaseModel):
    """
    Schema for checkout preference creation.

    Attributes:
        origin: Frontend origin used to build the provider's back URLs.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"origin": "https://app.vitabalance.com.br"}}
    )

    origin: HttpUrl = Field(..., description="Origin the provider redirects back to")

    @property
    def origin_str(self) -> str:
        return str(self.origin).rstrip("/")


class PreferenceResponse(BaseModel):
    """Provider preference; the client redirects to ``init_point``."""

    id: str
    init_point: str


class WebhookAck(BaseModel):
    success: bool = True


class ConfirmationState(str, Enum):
    READY = "ready"
    PENDING = "pending"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    ERROR = "error"


class ConfirmationResponse(BaseModel):
    """
    Outcome of the post-checkout confirmation.

    Attributes:
        state: Terminal state of the poll.
        message: User-facing message.
        redirect_to: Where the client should go next, if anywhere.
        action: Suggested user action (e.g. "retry_purchase").
        attempts: Entitlement checks performed.
    """

    state: ConfirmationState
    message: str
    redirect_to: Optional[str] = None
    action: Optional[str] = None
    attempts: int = 0

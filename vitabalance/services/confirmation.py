"""
VitaBalance API - Payment Confirmation Poller.

After the provider redirects the user back, the webhook may not have landed
yet. The poller reads the callback parameters and, for approved payments,
re-checks the entitlement (paid flag plus an existing nutritional plan) at a
fixed interval up to a hard cap. It only reads; all writes belong to the
webhook reconciler.
"""

import asyncio
import logging
from typing import Mapping, Optional

from vitabalance.schemas.payment import ConfirmationResponse, ConfirmationState
from vitabalance.services.notifications import ChangeFeed
from vitabalance.services.store import Store
from vitabalance.utils.errors import ConfirmationTimeoutError

logger = logging.getLogger(__name__)

PLAN_PATH = "/plan"
PLANS_PATH = "/plans"

MESSAGES = {
    ConfirmationState.READY: "Payment approved! Your plan is ready.",
    ConfirmationState.PENDING: "Your payment is being processed. You will receive a confirmation soon.",
    ConfirmationState.REJECTED: "Your payment was not approved. Please try again.",
    ConfirmationState.TIMEOUT: (
        "Your payment was approved but your plan is not available yet. "
        "Please contact support if it does not appear shortly."
    ),
    ConfirmationState.ERROR: "Missing payment information. Please contact support.",
}


def first_param(params: Mapping[str, str], *names: str) -> Optional[str]:
    """First non-empty value among ``names``."""
    for name in names:
        value = params.get(name)
        if value:
            return value
    return None


class PaymentConfirmation:
    """
    One confirmation run for one user.

    Attributes:
        store: Row store (read only).
        feed: Decides when the next check happens.
        max_attempts: Entitlement checks before giving up.
    """

    def __init__(self, store: Store, feed: ChangeFeed, max_attempts: int = 10):
        self.store = store
        self.feed = feed
        self.max_attempts = max_attempts
        self._cancelled = asyncio.Event()

    def cancel(self) -> None:
        """Stop polling; the pending wait ends and resolve() returns None."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def _entitled(self, user_id: str) -> bool:
        profile = await self.store.aget("profiles", {"id": user_id})
        if not profile or not profile.get("has_paid_plan"):
            return False
        plan = await self.store.aget("nutritional_plans", {"user_id": user_id}, order_by="-created_at")
        return plan is not None

    async def _wait_next(self) -> bool:
        """Wait for the feed or a cancel; True when cancelled."""
        waiter = asyncio.ensure_future(self.feed.wait())
        stopper = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (waiter, stopper):
                if not task.done():
                    task.cancel()
            await asyncio.gather(waiter, stopper, return_exceptions=True)
        return self.cancelled

    async def wait_for_entitlement(self, user_id: str) -> Optional[int]:
        """
        Poll until the entitlement is visible.

        Returns:
            Number of checks performed, or None when cancelled.

        Raises:
            ConfirmationTimeoutError: Not visible after ``max_attempts`` checks.
        """
        for attempt in range(1, self.max_attempts + 1):
            if self.cancelled:
                return None
            if await self._entitled(user_id):
                logger.info(f"Entitlement visible for user {user_id} after {attempt} check(s)")
                return attempt
            if attempt < self.max_attempts and await self._wait_next():
                return None
        raise ConfirmationTimeoutError(attempts=self.max_attempts)

    async def resolve(
        self,
        params: Mapping[str, str],
        user_id: Optional[str] = None,
    ) -> Optional[ConfirmationResponse]:
        """
        Resolve the callback into a terminal confirmation state.

        Args:
            params: Callback query parameters.
            user_id: Authenticated user; must match ``external_reference``
                when given.

        Returns:
            ConfirmationResponse, or None when cancelled.
        """
        status = first_param(params, "status", "collection_status")
        payment_id = first_param(params, "payment_id", "collection_id")
        external_reference = first_param(params, "external_reference")

        if not status or not payment_id or not external_reference:
            logger.warning("Payment confirmation called with missing parameters")
            return ConfirmationResponse(state=ConfirmationState.ERROR, message=MESSAGES[ConfirmationState.ERROR])
        if user_id is not None and external_reference != user_id:
            logger.warning(f"Payment {payment_id} reference does not match user {user_id}")
            return ConfirmationResponse(state=ConfirmationState.ERROR, message=MESSAGES[ConfirmationState.ERROR])

        try:
            if status == "approved":
                return await self._resolve_approved(external_reference)
            if status == "pending":
                return ConfirmationResponse(
                    state=ConfirmationState.PENDING,
                    message=MESSAGES[ConfirmationState.PENDING],
                    redirect_to="/",
                )
            return ConfirmationResponse(
                state=ConfirmationState.REJECTED,
                message=MESSAGES[ConfirmationState.REJECTED],
                redirect_to=PLANS_PATH,
                action="retry_purchase",
            )
        finally:
            self.feed.close()

    async def _resolve_approved(self, user_id: str) -> Optional[ConfirmationResponse]:
        try:
            attempts = await self.wait_for_entitlement(user_id)
        except ConfirmationTimeoutError as e:
            logger.warning(f"Entitlement for user {user_id} not visible after {e.attempts} checks")
            return ConfirmationResponse(
                state=ConfirmationState.TIMEOUT,
                message=MESSAGES[ConfirmationState.TIMEOUT],
                action="contact_support",
                attempts=e.attempts,
            )
        if attempts is None:
            return None
        return ConfirmationResponse(
            state=ConfirmationState.READY,
            message=MESSAGES[ConfirmationState.READY],
            redirect_to=PLAN_PATH,
            attempts=attempts,
        )

"""
VitaBalance API - Payment Confirmation Routes.

Long-poll endpoint the frontend calls when Mercado Pago redirects the user
back with the payment outcome in the query string.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request, Response

from settings import Settings
from vitabalance.dependencies import get_config, get_current_profile, get_notifier, get_store
from vitabalance.schemas.payment import ConfirmationResponse
from vitabalance.services.confirmation import PaymentConfirmation
from vitabalance.services.notifications import ChannelFeed, EntitlementNotifier
from vitabalance.services.store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


async def cancel_on_disconnect(request: Request, confirmation: PaymentConfirmation, interval: float) -> None:
    """Cancel ``confirmation`` once the client has gone away."""
    while not confirmation.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected during payment confirmation")
            confirmation.cancel()
            return
        await asyncio.sleep(interval)


@router.get("/confirmation", response_model=ConfirmationResponse)
async def payment_confirmation(
    request: Request,
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
    notifier: EntitlementNotifier = Depends(get_notifier),
    config: Settings = Depends(get_config),
):
    """
    Resolve the provider callback into ready, pending, rejected, timeout or error.

    For approved payments this waits (bounded) until the webhook has granted
    the entitlement; a client disconnect cancels the wait.
    """
    confirmation = PaymentConfirmation(
        store,
        ChannelFeed(notifier, profile["id"], config.PAYMENT_POLL_INTERVAL_SECONDS),
        max_attempts=config.PAYMENT_POLL_MAX_ATTEMPTS,
    )
    watcher = asyncio.ensure_future(
        cancel_on_disconnect(request, confirmation, config.PAYMENT_POLL_INTERVAL_SECONDS)
    )
    try:
        result = await confirmation.resolve(request.query_params, user_id=profile["id"])
    finally:
        watcher.cancel()

    if result is None:
        return Response(status_code=204)
    return result

"""
VitaBalance API - Webhook Routes.

Handles incoming payment notifications from Mercado Pago.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from vitabalance.dependencies import get_reconciler
from vitabalance.services.reconciliation import WebhookReconciler
from vitabalance.utils.errors import VitaBalanceException

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/mercadopago")
async def mercadopago_webhook(
    request: Request,
    reconciler: WebhookReconciler = Depends(get_reconciler),
):
    """
    Handle Mercado Pago payment notifications.

    The raw body is verified against the ``x-signature`` header before it is
    parsed.

    Returns:
        ``{"success": true}`` on success, ``{"error": message}`` with a 4xx
        status otherwise. Provider and store failures answer 400 so the
        provider redelivers the notification.
    """
    body = await request.body()
    signature = request.headers.get("x-signature")

    try:
        result = await reconciler.handle(body, signature)
    except VitaBalanceException as e:
        status_code = e.status_code
        if status_code >= 500:
            logger.error(f"Webhook processing failed: {e.message} ({e.detail})")
            status_code = status.HTTP_400_BAD_REQUEST
        return JSONResponse(status_code=status_code, content={"error": e.message})

    if result.processed:
        logger.info(f"Webhook processed: payment {result.payment_id} -> {result.payment_status.value}")
    return {"success": True}

"""
VitaBalance API - Mercado Pago Client.

Thin async client for the two provider calls the checkout flow needs:
creating the checkout preference and reading a payment by id.

Preference creation is user-initiated and never retried; payment reads
from the webhook are retried with exponential backoff.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from vitabalance.utils.errors import PaymentPreferenceError, UpstreamFetchError
from vitabalance.utils.retry import retry_async

logger = logging.getLogger(__name__)

PLAN_ITEM = {
    "id": "premium-plan",
    "title": "Plano Premium Fitness Nutri",
    "description": "Plano nutricional personalizado com suporte por 30 dias",
    "quantity": 1,
    "currency_id": "BRL",
    "unit_price": 9.90,
}

STATEMENT_DESCRIPTOR = "FITNESSNUTRI"


def build_preference_body(
    user_id: str,
    email: str,
    origin: str,
    notification_url: str,
) -> Dict[str, Any]:
    """
    Build the checkout preference request body.

    Args:
        user_id: Sent as ``external_reference`` so the webhook can find the user.
        email: Payer email.
        origin: Frontend origin for the back URLs.
        notification_url: Public webhook URL.

    Returns:
        Dict[str, Any]: JSON body for ``POST /checkout/preferences``.
    """
    origin = origin.rstrip("/")
    return {
        "items": [dict(PLAN_ITEM)],
        "payer": {"email": email},
        "back_urls": {
            "success": f"{origin}/payment/success",
            "failure": f"{origin}/payment/failure",
            "pending": f"{origin}/payment/pending",
        },
        "auto_return": "approved",
        "external_reference": user_id,
        "notification_url": notification_url,
        "statement_descriptor": STATEMENT_DESCRIPTOR,
        "payment_methods": {
            "excluded_payment_methods": [],
            "excluded_payment_types": [],
            "installments": 1,
        },
    }


def _provider_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or fallback
    return fallback


class MercadoPagoClient:
    """
    Mercado Pago REST client.

    Attributes:
        base_url: API root.
        retry_attempts: Attempts for payment reads.
        retry_base_delay: First backoff delay for payment reads.
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 10.0,
        retry_attempts: int = 3,
        retry_base_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )

    async def create_preference(
        self,
        user_id: str,
        email: str,
        origin: str,
        notification_url: str,
    ) -> Dict[str, str]:
        """
        Create a checkout preference.

        Returns:
            Dict with ``id`` and ``init_point``.

        Raises:
            PaymentPreferenceError: Transport failure or non-2xx answer,
                carrying the provider's message.
        """
        body = build_preference_body(user_id, email, origin, notification_url)
        try:
            response = await self.client.post("/checkout/preferences", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Preference request failed for user {user_id}: {e}")
            raise PaymentPreferenceError(detail=str(e))

        if not response.is_success:
            message = _provider_message(response, "Failed to create payment preference")
            logger.error(f"Preference rejected for user {user_id}: {response.status_code} {message}")
            raise PaymentPreferenceError(
                message=message,
                detail=response.text,
                provider_status=response.status_code,
            )

        data = response.json()
        logger.info(f"Payment preference {data.get('id')} created for user {user_id}")
        return {"id": data["id"], "init_point": data["init_point"]}

    async def _fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        try:
            response = await self.client.get(f"/v1/payments/{payment_id}")
        except httpx.HTTPError as e:
            raise UpstreamFetchError(message="Failed to fetch payment details", detail=str(e))
        if not response.is_success:
            raise UpstreamFetchError(
                message="Failed to fetch payment details",
                detail=_provider_message(response, response.text),
                provider_status=response.status_code,
            )
        return response.json()

    async def get_payment(self, payment_id: str) -> Dict[str, Any]:
        """
        Read a payment, retrying transient failures.

        Provider 4xx answers other than 429 are final.

        Raises:
            UpstreamFetchError: After the retry budget is spent.
        """
        def transient(e: Exception) -> bool:
            if not isinstance(e, UpstreamFetchError):
                return False
            status = e.provider_status
            return status is None or status == 429 or status >= 500

        return await retry_async(
            lambda: self._fetch_payment(payment_id),
            attempts=self.retry_attempts,
            base_delay=self.retry_base_delay,
            should_retry=transient,
            operation=f"fetch payment {payment_id}",
        )

    async def aclose(self) -> None:
        await self.client.aclose()

"""
VitaBalance API - Webhook Reconciliation.

Turns a Mercado Pago payment notification into stored state:

    RECEIVED -> SIGNATURE_VERIFIED -> PAYMENT_FETCHED -> RECORDED
             -> APPROVED | NOT_APPROVED -> DONE

Every write is an upsert on a unique business key, so a redelivered or
concurrently delivered notification converges on the same rows. Nothing is
written before the provider has confirmed the payment.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from vitabalance.enums import Goal, PaymentStatus
from vitabalance.schemas.registration import RegistrationData
from vitabalance.services.mercadopago import MercadoPagoClient
from vitabalance.services.metabolic import compute_metabolic_profile
from vitabalance.services.notifications import EntitlementNotifier
from vitabalance.services.plan_generator import has_biometrics
from vitabalance.services.store import Store
from vitabalance.utils.errors import InvalidSignature, ValidationError

logger = logging.getLogger(__name__)

PLAN_MACROS = {"protein_percentage": 30, "carbs_percentage": 40, "fat_percentage": 30}

WEEKLY_GOALS = {
    Goal.LOSE_WEIGHT: -0.5,
    Goal.GAIN_MUSCLE: 0.5,
}


class ReconciliationState(str, Enum):
    RECEIVED = "received"
    SIGNATURE_VERIFIED = "signature_verified"
    PAYMENT_FETCHED = "payment_fetched"
    RECORDED = "recorded"
    APPROVED = "approved"
    NOT_APPROVED = "not_approved"
    DONE = "done"


@dataclass
class ReconciliationResult:
    """
    Outcome of one webhook delivery.

    Attributes:
        processed: False when the notification type is ignored.
        payment_status: Stored payment status after the delivery.
        plan_created: Whether a nutritional plan exists for the payment.
        state: Last state reached.
    """

    processed: bool
    state: ReconciliationState
    payment_id: Optional[str] = None
    user_id: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    plan_created: bool = False


def sign_payload(body: bytes, secret: str) -> str:
    """Signature header value for ``body``: comma-separated decimal HMAC-SHA256 bytes."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return ",".join(str(byte) for byte in digest)


def verify_signature(body: bytes, header: Optional[str], secret: Optional[str]) -> None:
    """
    Check the ``x-signature`` header against the raw body.

    Raises:
        InvalidSignature: Missing secret or header, unparsable header, or mismatch.
    """
    if not secret:
        raise InvalidSignature(detail="Webhook secret not configured")
    if not header:
        raise InvalidSignature(detail="Missing webhook signature")
    try:
        values = [int(part.strip()) for part in header.split(",")]
        provided = bytes(values)
    except ValueError:
        raise InvalidSignature(detail="Malformed webhook signature")
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    if not hmac.compare_digest(expected, provided):
        raise InvalidSignature(detail="Signature mismatch")


def parse_notification(body: bytes) -> Dict[str, Any]:
    """
    Decode and shape-check the notification body.

    Raises:
        ValidationError: Not JSON, or ``type`` / ``data.id`` missing.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationError("Invalid webhook payload", detail="Body is not valid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Invalid webhook payload", detail="Body is not a JSON object")
    data = payload.get("data")
    if not payload.get("type") or not isinstance(data, dict) or not data.get("id"):
        raise ValidationError("Invalid webhook payload", detail="type and data.id are required")
    return payload


def weekly_goal(goal: Optional[Goal]) -> float:
    return WEEKLY_GOALS.get(goal, 0.0)


class WebhookReconciler:
    """
    Applies payment notifications to the store.

    Attributes:
        store: Row store.
        provider: Mercado Pago client used to read the payment.
        notifier: Receives an event after an approved payment is applied.
        webhook_secret: HMAC secret shared with the provider.
    """

    def __init__(
        self,
        store: Store,
        provider: MercadoPagoClient,
        notifier: EntitlementNotifier,
        webhook_secret: Optional[str],
    ):
        self.store = store
        self.provider = provider
        self.notifier = notifier
        self.webhook_secret = webhook_secret

    async def handle(self, body: bytes, signature: Optional[str]) -> ReconciliationResult:
        """
        Process one webhook delivery.

        Args:
            body: Raw request body, exactly as received.
            signature: ``x-signature`` header value.

        Returns:
            ReconciliationResult: What was applied.

        Raises:
            InvalidSignature: Rejected before any other work.
            ValidationError: Malformed payload.
            UpstreamFetchError: Payment could not be read from the provider.
            StoreError: Store write failed after retries.
        """
        try:
            verify_signature(body, signature, self.webhook_secret)
        except InvalidSignature as e:
            logger.warning(f"Webhook rejected: {e.detail}")
            raise

        payload = parse_notification(body)
        if payload["type"] != "payment":
            logger.info(f"Ignoring webhook of type {payload['type']}")
            return ReconciliationResult(processed=False, state=ReconciliationState.DONE)

        external_id = str(payload["data"]["id"])
        logger.info(f"Reconciling payment {external_id}")
        payment = await self.provider.get_payment(external_id)

        user_id = payment.get("external_reference")
        status = PaymentStatus.from_provider(payment.get("status"))
        record = await self.store.aupsert(
            "payments",
            {
                "external_id": external_id,
                "user_id": user_id,
                "amount": payment.get("transaction_amount"),
                "currency": payment.get("currency_id"),
                "status": status.value,
                "payment_method": payment.get("payment_type_id"),
            },
            "external_id",
            update_where={"status": PaymentStatus.PENDING.value},
        )
        stored_status = PaymentStatus(record["status"])
        if stored_status != status:
            logger.info(f"Payment {external_id} already {stored_status.value}; ignoring {status.value}")

        result = ReconciliationResult(
            processed=True,
            state=ReconciliationState.RECORDED,
            payment_id=external_id,
            user_id=user_id,
            payment_status=stored_status,
        )

        if stored_status != PaymentStatus.APPROVED or not user_id:
            logger.info(f"Payment {external_id} not approved ({stored_status.value})")
            result.state = ReconciliationState.DONE
            return result

        result.plan_created = await self._apply_approval(record["id"], user_id)
        self.notifier.publish(user_id, {"type": "payment_approved", "payment_id": external_id})
        result.state = ReconciliationState.DONE
        logger.info(f"Payment {external_id} approved for user {user_id} (plan_created={result.plan_created})")
        return result

    async def _apply_approval(self, payment_row_id: str, user_id: str) -> bool:
        now = datetime.now(timezone.utc)
        await self.store.aupsert(
            "subscriptions",
            {
                "user_id": user_id,
                "payment_id": payment_row_id,
                "plan_type": "premium",
                "status": "active",
                "start_date": now,
            },
            "payment_id",
            ignore_duplicates=True,
        )
        changed = await self.store.aupdate("profiles", {"has_paid_plan": True}, {"id": user_id})
        if not changed:
            logger.warning(f"No profile for user {user_id}; paid flag not set")

        registration = RegistrationData.from_row(
            await self.store.aget("registrations", {"user_id": user_id})
        )
        if registration is None or not has_biometrics(registration):
            logger.warning(f"No usable registration for user {user_id}; skipping initial plan")
            return False

        profile = compute_metabolic_profile(registration)
        plan = await self.store.aupsert(
            "nutritional_plans",
            {
                "user_id": user_id,
                "payment_id": payment_row_id,
                "daily_calories": profile.target,
                "objective": registration.goal.value if registration.goal else None,
                "start_date": now,
                **PLAN_MACROS,
            },
            "payment_id",
            ignore_duplicates=True,
        )
        await self.store.aupsert(
            "plan_objectives",
            {
                "plan_id": plan["id"],
                "initial_weight": registration.weight,
                "activity_level": registration.activity_level.value if registration.activity_level else None,
                "weekly_goal": weekly_goal(registration.goal),
            },
            "plan_id",
            ignore_duplicates=True,
        )
        return True

"""
VitaBalance API - Checkout Routes.

Eligibility check and Mercado Pago checkout preference creation.
"""

import logging

from fastapi import APIRouter, Depends

from settings import Settings
from vitabalance.dependencies import get_config, get_current_profile, get_payment_client, get_store
from vitabalance.routes.registration import load_meal_selections, load_registration
from vitabalance.schemas.payment import PreferenceRequest, PreferenceResponse
from vitabalance.schemas.registration import EligibilityResponse
from vitabalance.services.entitlement import validate_entitlement
from vitabalance.services.mercadopago import MercadoPagoClient
from vitabalance.services.store import Store
from vitabalance.utils.errors import ValidationError

router = APIRouter()
logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhooks/mercadopago"


@router.get("/eligibility", response_model=EligibilityResponse)
async def get_eligibility(
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
):
    """Report whether the registration is complete enough to buy the plan."""
    result = validate_entitlement(
        await load_registration(store, profile["id"]),
        await load_meal_selections(store, profile["id"]),
    )
    return result.to_response()


@router.post("/preference", response_model=PreferenceResponse)
async def create_preference(
    payload: PreferenceRequest,
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
    client: MercadoPagoClient = Depends(get_payment_client),
    config: Settings = Depends(get_config),
):
    """
    Create the checkout preference for the premium plan.

    Raises:
        ValidationError: 400 when the registration is incomplete or the
            profile has no email.
        PaymentPreferenceError: 502 when the provider refuses.
    """
    result = validate_entitlement(
        await load_registration(store, profile["id"]),
        await load_meal_selections(store, profile["id"]),
    )
    if not result.is_valid:
        raise ValidationError("Registration incomplete", detail=result.summary())
    if not profile.get("email"):
        raise ValidationError("User email not found")

    preference = await client.create_preference(
        user_id=profile["id"],
        email=profile["email"],
        origin=payload.origin_str,
        notification_url=config.BACKEND_URL.rstrip("/") + WEBHOOK_PATH,
    )
    return PreferenceResponse(**preference)

"""
VitaBalance API - Plan Routes.

Personalised plan for users with the paid entitlement.
"""

import logging

from fastapi import APIRouter, Depends

from vitabalance.dependencies import get_store, require_paid_plan
from vitabalance.routes.registration import load_registration
from vitabalance.schemas.plan import PlanResponse
from vitabalance.services.plan_generator import generate_plan
from vitabalance.services.store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=PlanResponse)
async def get_plan(
    profile: dict = Depends(require_paid_plan),
    store: Store = Depends(get_store),
):
    """
    Generate the user's plan from the stored registration.

    Raises:
        ForbiddenError: 403 without the paid entitlement.
        PlanUnavailable: 409 when the registration is missing or incomplete.
    """
    return generate_plan(await load_registration(store, profile["id"]))

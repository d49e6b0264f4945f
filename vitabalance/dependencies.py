"""
VitaBalance API - FastAPI Dependencies.

Dependency injection helpers for routes. Long-lived services are built in
the application lifespan and read from ``app.state``.
"""

from typing import Any, Dict

from fastapi import Depends, Request

from settings import Settings
from vitabalance.middleware.auth import jwt_bearer
from vitabalance.services.auth import TokenIdentity
from vitabalance.services.mercadopago import MercadoPagoClient
from vitabalance.services.notifications import EntitlementNotifier
from vitabalance.services.reconciliation import WebhookReconciler
from vitabalance.services.store import Store
from vitabalance.utils.errors import ForbiddenError


def get_config(request: Request) -> Settings:
    return request.app.state.config


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_payment_client(request: Request) -> MercadoPagoClient:
    return request.app.state.payment_client


def get_notifier(request: Request) -> EntitlementNotifier:
    return request.app.state.notifier


def get_reconciler(request: Request) -> WebhookReconciler:
    return request.app.state.reconciler


async def get_current_identity(identity: TokenIdentity = Depends(jwt_bearer)) -> TokenIdentity:
    """Authenticated caller from the bearer token."""
    return identity


async def ensure_profile(store: Store, identity: TokenIdentity) -> Dict[str, Any]:
    """
    Create the caller's profile on first contact and keep its email current.

    Args:
        store: Row store.
        identity: Verified caller.

    Returns:
        Dict[str, Any]: Stored profile row.
    """
    row = {"id": identity.user_id}
    if identity.email:
        row["email"] = identity.email
    return await store.aupsert("profiles", row, "id")


async def get_current_profile(
    identity: TokenIdentity = Depends(get_current_identity),
    store: Store = Depends(get_store),
) -> Dict[str, Any]:
    """
    Get the authenticated user's profile, creating it if needed.

    Returns:
        Dict[str, Any]: Profile row.
    """
    return await ensure_profile(store, identity)


async def require_paid_plan(
    profile: Dict[str, Any] = Depends(get_current_profile),
) -> Dict[str, Any]:
    """
    Require the paid entitlement.

    Raises:
        ForbiddenError: 403 when the user has not paid.
    """
    if not profile.get("has_paid_plan"):
        raise ForbiddenError("A paid plan is required to view this content")
    return profile

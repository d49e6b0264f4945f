"""
VitaBalance API - Registration Routes.

Registration data, meal selections and the live-edit WebSocket that saves
fields with a debounce and pushes the updated checkout eligibility.
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as PydanticValidationError

from vitabalance.dependencies import get_current_profile, get_store, ensure_profile
from vitabalance.schemas.registration import (
    MEAL_CATEGORIES,
    MealItemsUpdate,
    MealSelectionData,
    RegistrationData,
    RegistrationResponse,
    RegistrationUpdate,
)
from vitabalance.services.auth import identity_from_token
from vitabalance.services.debounce import FieldDebouncer
from vitabalance.services.entitlement import validate_entitlement
from vitabalance.services.store import Store
from vitabalance.utils.errors import NotFoundError, ValidationError

router = APIRouter()
logger = logging.getLogger(__name__)


async def load_registration(store: Store, user_id: str):
    return RegistrationData.from_row(await store.aget("registrations", {"user_id": user_id}))


async def load_meal_selections(store: Store, user_id: str) -> MealSelectionData:
    return MealSelectionData.from_row(await store.aget("meal_selections", {"user_id": user_id}))


async def save_registration_fields(store: Store, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Field-level upsert of the user's registration row."""
    return await store.aupsert("registrations", {"user_id": user_id, **changes}, "user_id")


@router.get("", response_model=RegistrationResponse)
async def get_registration(
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
):
    """
    Get the current user's registration.

    Raises:
        NotFoundError: 404 if nothing has been saved yet.
    """
    row = await store.aget("registrations", {"user_id": profile["id"]})
    if row is None:
        raise NotFoundError("Registration not found")
    return RegistrationResponse.from_row(row)


@router.patch("", response_model=RegistrationResponse)
async def update_registration(
    payload: RegistrationUpdate,
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
):
    """
    Save the fields present in the request body.

    Enum fields accept canonical values or legacy display labels.
    """
    changes = payload.changes()
    if not changes:
        raise ValidationError("No registration fields provided")
    row = await save_registration_fields(store, profile["id"], changes)
    logger.info(f"Registration updated for user {profile['id']}: {sorted(changes)}")
    return RegistrationResponse.from_row(row)


@router.get("/meals", response_model=MealSelectionData)
async def get_meal_selections(
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
):
    return await load_meal_selections(store, profile["id"])


@router.put("/meals/{category}", response_model=MealSelectionData)
async def update_meal_selection(
    payload: MealItemsUpdate,
    category: str = Path(..., description="breakfast, lunch, snack or dinner"),
    profile: dict = Depends(get_current_profile),
    store: Store = Depends(get_store),
):
    """
    Replace the selected items of one meal category.

    Duplicates are dropped, keeping the first occurrence.
    """
    if category not in MEAL_CATEGORIES:
        raise ValidationError(f"Unknown meal category: {category}")
    row = await store.aupsert(
        "meal_selections",
        {"user_id": profile["id"], f"{category}_items": payload.items},
        "user_id",
    )
    return MealSelectionData.from_row(row)


@router.websocket("/live")
async def registration_live(websocket: WebSocket):
    """
    Live registration editing.

    The client sends ``{"field": ..., "value": ...}`` messages. Each field is
    written after it has been quiet for the debounce delay; after every write
    the server sends ``{"type": "saved", "field": ..., "eligibility": ...}``.
    Invalid messages get ``{"type": "error", ...}`` and the socket stays open.
    """
    app = websocket.app
    config = app.state.config
    store: Store = app.state.store

    token = websocket.query_params.get("token")
    identity = identity_from_token(
        token or "",
        config.AUTH_JWT_SECRET,
        config.AUTH_JWT_ALGORITHM,
        config.AUTH_JWT_AUDIENCE,
    )
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await ensure_profile(store, identity)
    user_id = identity.user_id
    connected = True

    async def write_field(field: str, value: Any) -> None:
        await save_registration_fields(store, user_id, {field: value})
        if not connected:
            return
        result = validate_entitlement(
            await load_registration(store, user_id),
            await load_meal_selections(store, user_id),
        )
        await websocket.send_json({
            "type": "saved",
            "field": field,
            "eligibility": result.to_response().model_dump(mode="json"),
        })

    debouncer = FieldDebouncer(config.REGISTRATION_DEBOUNCE_SECONDS, write_field)
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except ValueError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue
            field = message.get("field") if isinstance(message, dict) else None
            if not isinstance(field, str) or field not in RegistrationUpdate.model_fields:
                await websocket.send_json({"type": "error", "message": f"Unknown field: {field}"})
                continue
            try:
                changes = RegistrationUpdate(**{field: message.get("value")}).changes()
            except PydanticValidationError as e:
                await websocket.send_json({"type": "error", "field": field, "message": e.errors()[0]["msg"]})
                continue
            debouncer.push(field, changes[field])
    except WebSocketDisconnect:
        logger.info(f"Registration live session closed for user {user_id}")
    finally:
        connected = False
        await debouncer.aclose()

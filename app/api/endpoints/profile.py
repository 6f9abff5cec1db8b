from typing import Any

from fastapi import APIRouter, Body, Depends
from loguru import logger

from app.api.dependencies import get_profile_store
from app.core.config import settings
from app.models.profile import ProfileUpdate, UserProfile
from app.services.profile_store import ProfileStore
from app.utils import error_response

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=UserProfile)
async def get_profile(store: ProfileStore = Depends(get_profile_store)):
    profile = await store.load_profile(settings.DEFAULT_USER_ID)
    if profile is None:
        return error_response(404, "Profile not found")
    return profile


@router.put("", response_model=UserProfile)
async def update_profile(payload: ProfileUpdate, store: ProfileStore = Depends(get_profile_store)):
    """Manual edit of profile fields. Unlike evolution this may replace list values outright."""
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        return error_response(400, "No valid fields to update")

    try:
        updated = await store.apply_profile_update(settings.DEFAULT_USER_ID, fields)
    except Exception as e:
        logger.exception(f"Error updating profile: {e}")
        return error_response(500, "Failed to update profile")

    if updated is None:
        return error_response(404, "Profile not found")
    return updated


@router.get("/heroes")
async def get_heroes(store: ProfileStore = Depends(get_profile_store)) -> Any:
    profile = await store.load_profile(settings.DEFAULT_USER_ID)
    if profile is None:
        return error_response(404, "Profile not found")
    return {"heroes": profile.preferred_heroes}


@router.put("/heroes")
async def update_heroes(
    body: dict[str, Any] = Body(default_factory=dict),
    store: ProfileStore = Depends(get_profile_store),
) -> Any:
    heroes = body.get("heroes")
    if not isinstance(heroes, list) or not all(isinstance(h, str) for h in heroes):
        return error_response(400, "heroes must be an array")

    try:
        updated = await store.apply_profile_update(settings.DEFAULT_USER_ID, {"preferred_heroes": heroes})
    except Exception as e:
        logger.exception(f"Error updating heroes: {e}")
        return error_response(500, "Failed to update heroes")

    if updated is None:
        return error_response(404, "Profile not found")
    return {"heroes": updated.preferred_heroes}

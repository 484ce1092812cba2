"""Branding Settings API Endpoints."""

from fastapi import APIRouter, Depends

from api.dependencies import get_settings_store, require_capability
from api.models import AppSettingsResponse, UpdateLogoRequest, UpdateSettingsRequest
from domain.capabilities import Capability
from domain.user import UserProfile
from services.settings_service import SettingsStore

router = APIRouter(prefix="/settings")


@router.get("", response_model=AppSettingsResponse, summary="Branding Settings")
async def get_app_settings(settings_store: SettingsStore = Depends(get_settings_store)):
    """Public: the login screen shows the application name and logo."""

    return AppSettingsResponse.from_domain(await settings_store.load())


@router.put("", response_model=AppSettingsResponse, summary="Update Name and Currency")
async def update_app_settings(
    request: UpdateSettingsRequest,
    settings_store: SettingsStore = Depends(get_settings_store),
    _: UserProfile = Depends(require_capability(Capability.SETTINGS_MANAGE)),
):
    return AppSettingsResponse.from_domain(await settings_store.update(request.name, request.currency))


@router.put("/logo", response_model=AppSettingsResponse, summary="Update Logo")
async def update_app_logo(
    request: UpdateLogoRequest,
    settings_store: SettingsStore = Depends(get_settings_store),
    _: UserProfile = Depends(require_capability(Capability.SETTINGS_MANAGE)),
):
    return AppSettingsResponse.from_domain(await settings_store.update_logo(request.logo))

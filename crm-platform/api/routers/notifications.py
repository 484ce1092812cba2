"""Notifications API Endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_store, require_capability
from api.models import MarkReadResponse, NotificationResponse
from domain.capabilities import Capability, has_capability
from domain.user import UserProfile
from repositories.store import EntityStore
from services import notification_service

router = APIRouter(prefix="/notifications")

_READ = require_capability(Capability.NOTIFICATIONS_VIEW_ALL, Capability.NOTIFICATIONS_VIEW_OWN)


@router.get("", response_model=List[NotificationResponse], summary="List Notifications")
async def list_notifications(
    all_users: bool = Query(False, alias="all", description="Every user's notifications (admins and supervisors)"),
    store: EntityStore = Depends(get_store),
    profile: UserProfile = Depends(_READ),
):
    user_id = profile.user_id
    if all_users and has_capability(profile.role, Capability.NOTIFICATIONS_VIEW_ALL):
        user_id = None
    notifications = await notification_service.list_notifications(store, user_id)
    return [NotificationResponse.from_domain(n) for n in notifications]


@router.post("/mark-all-read", response_model=MarkReadResponse, summary="Mark All As Read")
async def mark_all_read(
    store: EntityStore = Depends(get_store),
    profile: UserProfile = Depends(_READ),
):
    return MarkReadResponse(updated=await notification_service.mark_all_read(store, profile.user_id))

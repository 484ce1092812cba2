"""
Users API Endpoints.

Admin user management plus self-service edits of one's own profile.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_store, require_capability
from api.models import (
    CreateUserRequest,
    UpdateOwnProfileRequest,
    UpdateUserRequest,
    UserResponse,
    UserStatusRequest,
)
from domain.capabilities import Capability
from domain.user import UserProfile, UserRole
from repositories.store import EntityStore
from services import user_service

router = APIRouter(prefix="/users")


@router.get("", response_model=List[UserResponse], summary="List Users")
async def list_users(
    role: Optional[UserRole] = Query(None, description="Only users with this role"),
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_VIEW)),
):
    return [UserResponse.from_domain(u) for u in await user_service.list_users(store, role)]


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED, summary="Create User")
async def create_user(
    request: CreateUserRequest,
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_MANAGE)),
):
    """Admin-created users are ACTIVE immediately."""

    profile = await user_service.create_user(
        store,
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        agent_code=request.agent_code,
        phone=request.phone,
    )
    return UserResponse.from_domain(profile)


@router.patch("/me", response_model=UserResponse, summary="Update Own Profile")
async def update_own_profile(
    request: UpdateOwnProfileRequest,
    store: EntityStore = Depends(get_store),
    profile: UserProfile = Depends(require_capability(Capability.PROFILE_EDIT_OWN, Capability.USERS_MANAGE)),
):
    updated = await user_service.update_user(store, profile.user_id, request.changes(), self_service=True)
    return UserResponse.from_domain(updated)


@router.get("/{user_id}", response_model=UserResponse, summary="Get User")
async def get_user(
    user_id: str,
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_VIEW)),
):
    return UserResponse.from_domain(await user_service.get_user(store, user_id))


@router.patch("/{user_id}", response_model=UserResponse, summary="Update User")
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_MANAGE)),
):
    return UserResponse.from_domain(await user_service.update_user(store, user_id, request.changes()))


@router.put("/{user_id}/status", response_model=UserResponse, summary="Activate or Disable User")
async def set_user_status(
    user_id: str,
    request: UserStatusRequest,
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_MANAGE)),
):
    """
    Change a user's status. A signed-in user whose account is disabled loses
    access on their next request, and live sessions are denied as soon as the
    profile change is pushed.
    """
    return UserResponse.from_domain(await user_service.set_user_status(store, user_id, request.status))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete User")
async def delete_user(
    user_id: str,
    store: EntityStore = Depends(get_store),
    _: UserProfile = Depends(require_capability(Capability.USERS_MANAGE)),
):
    await user_service.delete_user(store, user_id)

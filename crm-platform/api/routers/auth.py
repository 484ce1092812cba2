"""
Auth API Endpoints.

Login, agent self-registration (access-code gated), logout, password reset
and the current user's profile with the views and capabilities of its role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies import (
    bearer_scheme,
    get_access_code_gate,
    get_current_profile,
    get_identity_provider,
    get_store,
)
from api.models import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    PasswordResetRequest,
    RegisterRequest,
    UserResponse,
)
from domain.capabilities import ROLE_CAPABILITIES, is_read_only, views_for
from domain.session import resolve_session
from domain.user import UserProfile
from repositories import user_repository
from repositories.identity import IdentityProvider
from repositories.store import EntityStore
from services import user_service
from services.access_code_service import AccessCodeGate

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=LoginResponse, summary="Sign In")
async def login(
    request: LoginRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    store: EntityStore = Depends(get_store),
):
    """
    Sign in with email and password.

    Only ACTIVE profiles are admitted. Accounts awaiting validation and
    disabled accounts get a 403 with the reason.
    """
    identity = await identity_provider.login(request.email, request.password)
    profile = await user_repository.get_user_by_id(store, identity.user_id)
    state = resolve_session(identity.user_id, profile)
    if not state.is_admitted or state.profile is None:
        if identity.access_token:
            await identity_provider.logout(identity.access_token)
        raise HTTPException(status_code=403, detail=state.reason)

    return LoginResponse(access_token=identity.access_token, user=UserResponse.from_domain(state.profile))


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Agent Sign Up",
)
async def register(
    request: RegisterRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    store: EntityStore = Depends(get_store),
    gate: AccessCodeGate = Depends(get_access_code_gate),
):
    """Create an agent account. The account stays PENDING until an admin activates it."""

    profile = await user_service.register_agent(
        store,
        identity_provider,
        gate,
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
        access_code=request.access_code,
        phone=request.phone,
    )
    return UserResponse.from_domain(profile)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Sign Out")
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    """Revoke the caller's own session. Only the bearer token's owner is signed out."""

    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    await identity_provider.logout(credentials.credentials)


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED, summary="Send Password Reset Email")
async def password_reset(
    request: PasswordResetRequest,
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    await identity_provider.send_reset_email(request.email)
    return {"message": f"If an account exists for {request.email}, a reset email has been sent."}


@router.get("/me", response_model=MeResponse, summary="Current User")
async def me(profile: UserProfile = Depends(get_current_profile)):
    return MeResponse(
        user=UserResponse.from_domain(profile),
        views=views_for(profile.role),
        capabilities=sorted(c.value for c in ROLE_CAPABILITIES.get(profile.role, frozenset())),
        read_only=is_read_only(profile.role),
    )

"""Access Code API Endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_access_code_gate, require_capability
from api.models import AccessCodeResponse
from domain.capabilities import Capability
from domain.user import UserProfile
from services.access_code_service import AccessCodeGate

router = APIRouter(prefix="/access-code")


@router.get("", response_model=AccessCodeResponse, summary="Current Access Code")
async def get_access_code(
    gate: AccessCodeGate = Depends(get_access_code_gate),
    _: UserProfile = Depends(require_capability(Capability.ACCESS_CODE_VIEW)),
):
    code = await gate.current_code()
    if code is None:
        raise HTTPException(status_code=404, detail="No access code has been issued")
    return AccessCodeResponse.from_domain(code)


@router.post(
    "",
    response_model=AccessCodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate Access Code",
)
async def generate_access_code(
    gate: AccessCodeGate = Depends(get_access_code_gate),
    _: UserProfile = Depends(require_capability(Capability.ACCESS_CODE_GENERATE)),
):
    """Issue a new 24h sign-up code. The previous code stops working immediately."""

    return AccessCodeResponse.from_domain(await gate.generate_code())

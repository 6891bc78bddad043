from fastapi import APIRouter, Depends, Request

from app.core.config import Settings, resolve_app_url
from app.core.deps import get_app_settings, get_waitlist_service, request_origin
from app.schemas.waitlist import ErrorResponse, WaitlistEntryOut, WaitlistRequest, WaitlistResponse
from app.services.waitlist_service import WaitlistService

router = APIRouter()


@router.post(
    "/waitlist",
    response_model=WaitlistResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def join_waitlist(
    payload: WaitlistRequest,
    request: Request,
    service: WaitlistService = Depends(get_waitlist_service),
    settings: Settings = Depends(get_app_settings),
):
    """Register an email and wallet address on the waitlist"""
    app_url = resolve_app_url(settings, request_origin(request))
    entry = service.register(payload.email, payload.wallet_address, app_url)
    return WaitlistResponse(
        success=True,
        message="Spot secured! Check your email for confirmation.",
        entry=WaitlistEntryOut.model_validate(entry),
    )

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from app.core.config import Settings, resolve_app_url
from app.core.deps import get_app_settings, get_waitlist_service, request_origin
from app.core.exceptions import NotFoundError
from app.services.waitlist_service import ConfirmationOutcome, WaitlistService

logger = logging.getLogger(__name__)

router = APIRouter()


def _status_redirect(base_url: str, **params: str) -> RedirectResponse:
    return RedirectResponse(f"{base_url}/confirmed?{urlencode(params)}", status_code=302)


@router.get("/confirm", response_class=RedirectResponse, status_code=302)
def confirm_email(
    request: Request,
    token: Optional[str] = None,
    id: Optional[str] = None,
    service: WaitlistService = Depends(get_waitlist_service),
    settings: Settings = Depends(get_app_settings),
):
    """Confirmation link target. Always redirects to the status page."""
    base_url = resolve_app_url(settings, request_origin(request))

    if not token or not id:
        return _status_redirect(base_url, error="missing_params")

    try:
        outcome = service.confirm(id, token)
    except NotFoundError:
        return _status_redirect(base_url, error="invalid_token")
    except Exception as e:
        # Reached from an email link, so failures become a status page flag
        logger.exception("Unexpected confirmation error for entry %s: %s", id, e)
        return _status_redirect(base_url, error="server_error")

    if outcome == ConfirmationOutcome.ALREADY_CONFIRMED:
        return _status_redirect(base_url, success="true", already_confirmed="true")
    return _status_redirect(base_url, success="true")

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.services.email_service import EmailService
from app.services.stats_service import StatsService
from app.services.waitlist_service import WaitlistService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_waitlist_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings),
) -> WaitlistService:
    return WaitlistService(db, email_service, settings)


def get_stats_service(db: Session = Depends(get_db)) -> StatsService:
    return StatsService(db)


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"

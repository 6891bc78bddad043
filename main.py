from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import logging

from app.api.api import api_router
from app.core.config import Settings, get_settings
from app.core.database import build_engine, build_session_factory
from app.core.exceptions import BaseAppException
from app.core.logging_config import configure_logging
from app.services.email_service import EmailService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

api_description = """
## Hyperkit Waitlist API

- `POST /api/waitlist` - Join the waitlist with an email and wallet address
- `GET /api/confirm` - Confirmation link target from the welcome email
- `GET /api/stats` - Total, confirmed and pending registrations
"""


def create_app(settings: Optional[Settings] = None, email_service: Optional[EmailService] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Hyperkit Waitlist API",
        description=api_description,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    if email_service is None:
        if not settings.email_enabled:
            logger.warning("RESEND_API_KEY not set; confirmation emails are disabled")
        email_service = EmailService(
            settings.RESEND_API_KEY if settings.email_enabled else None,
            timeout_seconds=settings.EMAIL_TIMEOUT_SECONDS,
        )
    app.state.email_service = email_service

    # GZip compression for large JSON responses
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BaseAppException)
    async def app_exception_handler(request: Request, exc: BaseAppException):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        logger.error("Unexpected error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "An unexpected error occurred"})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(api_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": "Hyperkit Waitlist API is running"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

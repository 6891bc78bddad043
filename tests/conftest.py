import os

# The module-level app in main.py is built at import time; keep it off Postgres
os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest-import.db")
os.environ.setdefault("RESEND_API_KEY", "")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.core.database import Base
from app.services.email_service import EmailSendResult
import app.models as _models  # noqa: F401
from main import create_app


class FakeEmailService:
    """Records sends instead of calling Resend."""

    def __init__(self, enabled: bool = True, fail_with: str = None):
        self.enabled = enabled
        self.fail_with = fail_with
        self.sent = []

    def send(self, to, sender, subject, html, text, metadata=None):
        self.sent.append({
            "to": to,
            "sender": sender,
            "subject": subject,
            "html": html,
            "text": text,
            "metadata": metadata,
        })
        if self.fail_with:
            return EmailSendResult(sent=False, error=self.fail_with)
        return EmailSendResult(sent=True, message_id=f"msg_{len(self.sent)}")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'waitlist.db'}",
        APP_URL="https://waitlist.test",
        ENVIRONMENT="development",
        RESEND_API_KEY=None,
        EMAIL_TEST_RECIPIENT=None,
    )


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def app(settings, email_service):
    application = create_app(settings, email_service=email_service)
    Base.metadata.create_all(bind=application.state.engine)
    yield application
    application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def db_session(app):
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

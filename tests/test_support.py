import json
import logging
import uuid
from unittest.mock import MagicMock

import pytest

from app.core.config import Settings, resolve_app_url
from app.core.exceptions import DependencyError
from app.models import WaitlistEntry, WaitlistStatus
from app.services.newsletter_service import NewsletterService
from app.utils.audit import AuditEvent, audit
from app.utils.side_effects import best_effort


def make_settings(**overrides):
    values = {"DATABASE_URL": "sqlite://", "APP_URL": None, "ENVIRONMENT": "development"}
    values.update(overrides)
    return Settings(**values)


def test_app_url_prefers_explicit_setting():
    settings = make_settings(APP_URL="https://example.test/", ENVIRONMENT="production")
    assert resolve_app_url(settings, "http://origin.test") == "https://example.test"


def test_app_url_production_default():
    settings = make_settings(ENVIRONMENT="production", PRODUCTION_APP_URL="https://prod.test")
    assert resolve_app_url(settings, "http://origin.test") == "https://prod.test"


def test_app_url_request_origin_then_localhost():
    settings = make_settings()
    assert resolve_app_url(settings, "http://origin.test") == "http://origin.test"
    assert resolve_app_url(settings) == "http://localhost:3000"


def test_email_enabled_requires_key():
    assert make_settings(RESEND_API_KEY=None).email_enabled is False
    assert make_settings(RESEND_API_KEY=" ").email_enabled is False
    assert make_settings(RESEND_API_KEY="re_123").email_enabled is True


def test_best_effort_reports_outcome(caplog):
    calls = []
    assert best_effort("record", calls.append, 1) is True
    assert calls == [1]

    def fail():
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        assert best_effort("Newsletter subscription", fail) is False
    assert "Newsletter subscription failed (non-critical): boom" in caplog.text


def test_audit_logs_entry_without_raw_email_or_token(caplog):
    entry = WaitlistEntry(
        id=uuid.uuid4(),
        email="a@x.com",
        wallet_address="0x" + "ab" * 20,
        confirmation_token="secret-token",
        status=WaitlistStatus.PENDING,
        position=3,
    )
    audit_logger = logging.getLogger("audit")
    audit_logger.propagate = True
    try:
        with caplog.at_level(logging.INFO, logger="audit"):
            audit(AuditEvent.CONFIRMATION_EMAIL, entry, sent=True)
    finally:
        audit_logger.propagate = False

    line = caplog.records[-1].getMessage()
    payload = json.loads(line)
    assert payload["event"] == "CONFIRMATION_EMAIL"
    assert payload["entry_id"] == str(entry.id)
    assert payload["wallet"] == "0xabab...abab"
    assert payload["position"] == 3
    assert payload["status"] == "pending"
    assert payload["sent"] is True
    assert len(payload["email_hash"]) == 12
    assert "a@x.com" not in line
    assert "secret-token" not in line


def test_app_without_key_gets_disabled_email_service(tmp_path):
    from main import create_app

    application = create_app(make_settings(DATABASE_URL=f"sqlite:///{tmp_path / 'w.db'}", RESEND_API_KEY="  "))
    try:
        assert application.state.email_service.enabled is False
    finally:
        application.state.engine.dispose()


def test_newsletter_upsert_rejects_unsupported_dialect():
    db = MagicMock()
    db.get_bind.return_value.dialect.name = "mysql"
    with pytest.raises(DependencyError):
        NewsletterService(db).subscribe("a@x.com")
    db.execute.assert_not_called()

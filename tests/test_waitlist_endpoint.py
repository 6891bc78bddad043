import pytest
from sqlalchemy.orm import Session

from app.models import EmailLog, EmailLogStatus, NewsletterSubscription, NewsletterStatus, WaitlistEntry, WaitlistStatus
from app.services.waitlist_service import WaitlistService

WALLET_A = "0xAbCdEf0123456789aBcDeF0123456789AbCd1234"
WALLET_B = "0x" + "1" * 40


async def register(client, email="a@x.com", wallet=WALLET_A):
    return await client.post("/api/waitlist", json={"email": email, "walletAddress": wallet})


@pytest.mark.asyncio
async def test_register_creates_pending_entry(client, db_session: Session):
    r = await register(client)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Spot secured! Check your email for confirmation."
    assert set(body["entry"]) == {"id", "position"}
    assert isinstance(body["entry"]["position"], int)

    entries = db_session.query(WaitlistEntry).all()
    assert len(entries) == 1
    entry = entries[0]
    assert str(entry.id) == body["entry"]["id"]
    assert entry.status == WaitlistStatus.PENDING
    assert entry.email_confirmed is False
    assert entry.wallet_address == WALLET_A.lower()
    assert entry.confirmation_token
    assert entry.confirmation_token not in r.text


@pytest.mark.asyncio
async def test_register_normalizes_email(client, db_session: Session):
    r = await register(client, email="  Alice@Example.COM ")
    assert r.status_code == 200
    entry = db_session.query(WaitlistEntry).one()
    assert entry.email == "alice@example.com"


@pytest.mark.asyncio
async def test_positions_increase(client):
    first = await register(client, email="one@x.com", wallet=WALLET_A)
    second = await register(client, email="two@x.com", wallet=WALLET_B)
    assert first.json()["entry"]["position"] == 1
    assert second.json()["entry"]["position"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,error",
    [
        ({"email": "a@x.com"}, "Email and wallet address are required"),
        ({"walletAddress": WALLET_A}, "Email and wallet address are required"),
        ({"email": "", "walletAddress": WALLET_A}, "Email and wallet address are required"),
        ({"email": "not-an-email", "walletAddress": WALLET_A}, "Invalid email format"),
        ({"email": "a@x", "walletAddress": WALLET_A}, "Invalid email format"),
        ({"email": "a@x.com", "walletAddress": "0x1234"}, "Invalid wallet address format"),
        ({"email": "a@x.com", "walletAddress": "1x" + "a" * 40}, "Invalid wallet address format"),
        ({"email": "a@x.com", "walletAddress": "0x" + "g" * 40}, "Invalid wallet address format"),
    ],
)
async def test_register_rejects_malformed_input(client, db_session: Session, payload, error):
    r = await client.post("/api/waitlist", json=payload)
    assert r.status_code == 400
    assert r.json() == {"error": error}
    assert db_session.query(WaitlistEntry).count() == 0


@pytest.mark.asyncio
async def test_register_rejects_unparseable_body(client):
    r = await client.post("/api/waitlist", content="{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_duplicate_email_conflicts(client, db_session: Session):
    assert (await register(client, email="a@x.com", wallet=WALLET_A)).status_code == 200
    r = await register(client, email="A@X.com", wallet=WALLET_B)
    assert r.status_code == 409
    assert r.json() == {"error": "This email is already registered"}
    assert db_session.query(WaitlistEntry).count() == 1


@pytest.mark.asyncio
async def test_duplicate_wallet_conflicts_regardless_of_case(client, db_session: Session):
    assert (await register(client, email="a@x.com", wallet=WALLET_A)).status_code == 200
    r = await register(client, email="b@x.com", wallet=WALLET_A.upper().replace("0X", "0x"))
    assert r.status_code == 409
    assert r.json() == {"error": "This wallet is already registered"}
    assert db_session.query(WaitlistEntry).count() == 1


@pytest.mark.asyncio
async def test_insert_race_surfaces_as_conflict(client, db_session: Session, monkeypatch):
    assert (await register(client, email="a@x.com", wallet=WALLET_A)).status_code == 200

    original = WaitlistService._ensure_unique
    calls = {"n": 0}

    def skip_first_check(self, email, wallet_address):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return original(self, email, wallet_address)

    monkeypatch.setattr(WaitlistService, "_ensure_unique", skip_first_check)
    r = await register(client, email="a@x.com", wallet=WALLET_B)
    assert r.status_code == 409
    assert r.json() == {"error": "This email is already registered"}
    assert db_session.query(WaitlistEntry).count() == 1


@pytest.mark.asyncio
async def test_confirmation_email_sent_and_logged(client, db_session: Session, email_service):
    r = await register(client)
    entry = db_session.query(WaitlistEntry).one()

    assert len(email_service.sent) == 1
    message = email_service.sent[0]
    assert message["to"] == "a@x.com"
    assert f"https://waitlist.test/api/confirm?token={entry.confirmation_token}&id={entry.id}" in message["text"]
    assert "utm_campaign=waitlist" in message["html"]
    assert "0xabcd...1234" in message["text"]
    assert message["metadata"] == {"category": "waitlist-confirmation", "user_id": r.json()["entry"]["id"]}

    assert entry.confirmation_sent_at is not None
    log = db_session.query(EmailLog).one()
    assert log.waitlist_entry_id == entry.id
    assert log.email_type == "confirmation"
    assert log.status == EmailLogStatus.SENT
    assert log.error_message is None


@pytest.mark.asyncio
async def test_email_failure_does_not_fail_registration(client, db_session: Session, email_service):
    email_service.fail_with = "provider rejected the message"
    r = await register(client)
    assert r.status_code == 200

    entry = db_session.query(WaitlistEntry).one()
    assert entry.confirmation_sent_at is None
    log = db_session.query(EmailLog).one()
    assert log.status == EmailLogStatus.FAILED
    assert log.error_message == "provider rejected the message"


@pytest.mark.asyncio
async def test_disabled_email_service_still_registers(client, db_session: Session, email_service):
    email_service.enabled = False
    r = await register(client)
    assert r.status_code == 200
    assert email_service.sent == []
    assert db_session.query(EmailLog).count() == 0
    assert db_session.query(WaitlistEntry).one().confirmation_sent_at is None


@pytest.mark.asyncio
async def test_test_recipient_used_outside_production(client, settings, email_service):
    settings.EMAIL_TEST_RECIPIENT = "dev@hyperkit.test"
    await register(client)
    assert email_service.sent[0]["to"] == "dev@hyperkit.test"


@pytest.mark.asyncio
async def test_test_recipient_ignored_in_production(client, settings, email_service):
    settings.EMAIL_TEST_RECIPIENT = "dev@hyperkit.test"
    settings.ENVIRONMENT = "production"
    await register(client)
    assert email_service.sent[0]["to"] == "a@x.com"


@pytest.mark.asyncio
async def test_register_subscribes_to_newsletter(client, db_session: Session):
    await register(client)
    subscription = db_session.query(NewsletterSubscription).one()
    assert subscription.email == "a@x.com"
    assert subscription.status == NewsletterStatus.ACTIVE
    assert subscription.source == "waitlist"
    assert subscription.unsubscribed_at is None


@pytest.mark.asyncio
async def test_register_reactivates_unsubscribed_newsletter(client, db_session: Session):
    from datetime import datetime, timezone

    db_session.add(NewsletterSubscription(
        email="a@x.com",
        status=NewsletterStatus.UNSUBSCRIBED,
        source="footer",
        unsubscribed_at=datetime.now(timezone.utc),
    ))
    db_session.commit()

    assert (await register(client)).status_code == 200

    db_session.expire_all()
    subscription = db_session.query(NewsletterSubscription).one()
    assert subscription.status == NewsletterStatus.ACTIVE
    assert subscription.source == "waitlist"
    assert subscription.unsubscribed_at is None


@pytest.mark.asyncio
async def test_newsletter_failure_does_not_fail_registration(client, db_session: Session, monkeypatch):
    from app.services.newsletter_service import NewsletterService

    def broken(self, email, source="waitlist"):
        raise RuntimeError("newsletter table unavailable")

    monkeypatch.setattr(NewsletterService, "subscribe", broken)
    r = await register(client)
    assert r.status_code == 200
    assert db_session.query(WaitlistEntry).count() == 1
    assert db_session.query(EmailLog).one().status == EmailLogStatus.SENT


@pytest.mark.asyncio
async def test_insert_storage_failure_returns_500(client, db_session: Session, email_service, monkeypatch):
    from sqlalchemy.exc import OperationalError

    original_commit = Session.commit
    calls = {"n": 0}

    def failing_first_commit(self):
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT INTO waitlist_entries", {}, Exception("disk I/O error"))
        return original_commit(self)

    monkeypatch.setattr(Session, "commit", failing_first_commit)
    r = await register(client)
    monkeypatch.undo()

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to register. Please try again."}
    assert db_session.query(WaitlistEntry).count() == 0
    assert email_service.sent == []


@pytest.mark.asyncio
async def test_missing_token_after_insert_returns_500(client, email_service, monkeypatch):
    from sqlalchemy.orm.attributes import set_committed_value

    original_refresh = Session.refresh

    def refresh_without_token(self, instance, *args, **kwargs):
        original_refresh(self, instance, *args, **kwargs)
        if isinstance(instance, WaitlistEntry):
            set_committed_value(instance, "confirmation_token", None)

    monkeypatch.setattr(Session, "refresh", refresh_without_token)
    r = await register(client)

    assert r.status_code == 500
    assert r.json() == {"error": "Failed to generate confirmation token. Please try again."}
    assert email_service.sent == []


@pytest.mark.asyncio
async def test_unexpected_error_returns_json_500(app, monkeypatch):
    from httpx import ASGITransport, AsyncClient
    from sqlalchemy.exc import OperationalError

    def broken_refresh(self, instance, *args, **kwargs):
        raise OperationalError("SELECT waitlist_entries", {}, Exception("server closed the connection"))

    monkeypatch.setattr(Session, "refresh", broken_refresh)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await register(ac)

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"error": "An unexpected error occurred"}

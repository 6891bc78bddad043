import re
import uuid
import enum
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import urlencode

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import ConflictError, DependencyError, NotFoundError, ValidationError
from app.models.email_log import EmailLogStatus
from app.models.waitlist_entry import POSITION_SEQUENCE, WaitlistEntry, WaitlistStatus
from app.services.email_log_service import EmailLogService
from app.services.email_service import EmailService
from app.services.email_templates import CONFIRMATION_SUBJECT, confirmation_email_html, confirmation_email_text
from app.services.newsletter_service import NewsletterService
from app.utils.audit import AuditEvent, audit
from app.utils.side_effects import best_effort

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
WALLET_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

EMAIL_TAKEN = "This email is already registered"
WALLET_TAKEN = "This wallet is already registered"
CONFIRMATION_EMAIL_TYPE = "confirmation"


class ConfirmationOutcome(enum.Enum):
    CONFIRMED = "confirmed"
    ALREADY_CONFIRMED = "already_confirmed"


def normalize_registration(email: Optional[str], wallet_address: Optional[str]) -> Tuple[str, str]:
    """Validate a registration and return the (email, wallet) pair in stored form."""
    if not email or not wallet_address:
        raise ValidationError("Email and wallet address are required")
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    if not WALLET_PATTERN.match(wallet_address):
        raise ValidationError("Invalid wallet address format")
    return email.lower(), wallet_address.lower()


def normalize_token(token: Optional[str]) -> str:
    return str(token or "").strip().lower()


class WaitlistService:
    def __init__(self, db: Session, email_service: EmailService, settings: Settings):
        self.db = db
        self.email_service = email_service
        self.settings = settings
        self.newsletter = NewsletterService(db)
        self.email_logs = EmailLogService(db)

    def get_entry_by_email(self, email: str) -> Optional[WaitlistEntry]:
        return self.db.query(WaitlistEntry).filter(WaitlistEntry.email == email).first()

    def get_entry_by_wallet(self, wallet_address: str) -> Optional[WaitlistEntry]:
        return self.db.query(WaitlistEntry).filter(WaitlistEntry.wallet_address == wallet_address).first()

    def get_entry_by_id(self, entry_id: str) -> Optional[WaitlistEntry]:
        try:
            entry_uuid = uuid.UUID(str(entry_id))
        except ValueError:
            return None
        return self.db.query(WaitlistEntry).filter(WaitlistEntry.id == entry_uuid).first()

    def _next_position(self):
        if self.db.get_bind().dialect.name == "postgresql":
            return POSITION_SEQUENCE.next_value()
        # Evaluated inside the INSERT so the read and the write are one statement
        return (
            select(func.coalesce(func.max(WaitlistEntry.position), 0) + 1)
            .correlate(None)
            .scalar_subquery()
        )

    def _ensure_unique(self, email: str, wallet_address: str) -> None:
        if self.get_entry_by_email(email):
            raise ConflictError(EMAIL_TAKEN)
        if self.get_entry_by_wallet(wallet_address):
            raise ConflictError(WALLET_TAKEN)

    def register(self, email: Optional[str], wallet_address: Optional[str], app_url: str) -> WaitlistEntry:
        """Create a pending entry, subscribe it to the newsletter and send the confirmation email."""
        email, wallet_address = normalize_registration(email, wallet_address)

        try:
            self._ensure_unique(email, wallet_address)
        except SQLAlchemyError as e:
            logger.error("Duplicate lookup failed: %s", e)
            raise DependencyError("Failed to register. Please try again.", details=str(e))

        entry = WaitlistEntry(
            email=email,
            wallet_address=wallet_address,
            status=WaitlistStatus.PENDING,
            email_confirmed=False,
            position=self._next_position(),
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # A concurrent registration won the race between the lookups and the insert
            logger.info("Unique constraint rejected waitlist insert: %s", e.orig)
            self._ensure_unique(email, wallet_address)
            raise DependencyError("Failed to register. Please try again.", details=str(e))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database error on waitlist insert: %s", e)
            raise DependencyError("Failed to register. Please try again.", details=str(e))
        self.db.refresh(entry)

        if not entry.confirmation_token:
            logger.error("Confirmation token missing from entry %s", entry.id)
            raise DependencyError("Failed to generate confirmation token. Please try again.")

        audit(AuditEvent.WAITLIST_REGISTERED, entry)

        best_effort("Newsletter subscription", self.newsletter.subscribe, entry.email)
        self._send_confirmation(entry, app_url)
        return entry

    def _confirmation_recipient(self, email: str) -> str:
        test_recipient = self.settings.EMAIL_TEST_RECIPIENT
        if self.settings.is_production or not test_recipient:
            return email
        if email != test_recipient:
            logger.info("[DEV MODE] Email for %s redirected to test recipient %s", email, test_recipient)
        return test_recipient

    def _mark_confirmation_sent(self, entry: WaitlistEntry) -> None:
        try:
            self.db.query(WaitlistEntry).filter(WaitlistEntry.id == entry.id).update(
                {WaitlistEntry.confirmation_sent_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _send_confirmation(self, entry: WaitlistEntry, app_url: str) -> None:
        if not self.email_service.enabled:
            logger.warning("Resend API key not configured. Email not sent.")
            return

        entry_id = str(entry.id)
        query = urlencode({"token": entry.confirmation_token, "id": entry_id})
        confirmation_url = f"{app_url}/api/confirm?{query}"

        result = self.email_service.send(
            to=self._confirmation_recipient(entry.email),
            sender=self.settings.EMAIL_FROM,
            subject=CONFIRMATION_SUBJECT,
            html=confirmation_email_html(entry.email, entry.wallet_address, confirmation_url, entry_id, app_url),
            text=confirmation_email_text(entry.email, entry.wallet_address, confirmation_url),
            metadata={"category": "waitlist-confirmation", "user_id": entry_id},
        )
        audit(AuditEvent.CONFIRMATION_EMAIL, entry, sent=result.sent, skipped=result.skipped)

        if result.sent:
            best_effort("confirmation_sent_at update", self._mark_confirmation_sent, entry)
            best_effort("Email log (sent)", self.email_logs.record, entry.id, CONFIRMATION_EMAIL_TYPE, EmailLogStatus.SENT)
        else:
            best_effort(
                "Email log (failed)",
                self.email_logs.record,
                entry.id,
                CONFIRMATION_EMAIL_TYPE,
                EmailLogStatus.FAILED,
                result.error or "Unknown error",
            )

    def confirm(self, entry_id: str, token: str) -> ConfirmationOutcome:
        """Confirm an entry's email. Raises NotFoundError for unknown ids and bad tokens."""
        entry = self.get_entry_by_id(entry_id)
        if entry is None:
            logger.warning("Confirmation for unknown entry %s", entry_id)
            raise NotFoundError("Waitlist entry not found")

        if entry.is_confirmed:
            logger.info("Email already confirmed: %s", entry.id)
            return ConfirmationOutcome.ALREADY_CONFIRMED

        stored_token = entry.confirmation_token
        if not normalize_token(stored_token) or normalize_token(token) != normalize_token(stored_token):
            logger.warning("Confirmation token mismatch for entry %s", entry.id)
            raise NotFoundError("Invalid confirmation token")

        try:
            # Guarded by the stored token so a racing request cannot confirm twice
            updated = (
                self.db.query(WaitlistEntry)
                .filter(
                    WaitlistEntry.id == entry.id,
                    WaitlistEntry.confirmation_token == stored_token,
                    WaitlistEntry.email_confirmed.is_(False),
                )
                .update(
                    {
                        WaitlistEntry.email_confirmed: True,
                        WaitlistEntry.status: WaitlistStatus.CONFIRMED,
                        WaitlistEntry.confirmed_at: datetime.now(timezone.utc),
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Confirmation update failed for entry %s: %s", entry.id, e)
            raise DependencyError("Failed to confirm entry", details=str(e))

        if not updated:
            logger.warning("Confirmation update matched no rows for entry %s", entry.id)
            raise NotFoundError("Invalid confirmation token")

        audit(AuditEvent.WAITLIST_CONFIRMED, entry)
        best_effort("Newsletter subscription", self.newsletter.subscribe, entry.email)
        return ConfirmationOutcome.CONFIRMED

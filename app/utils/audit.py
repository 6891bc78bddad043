import enum
import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.models.waitlist_entry import WaitlistEntry
from app.services.email_templates import short_wallet

_logger = logging.getLogger("audit")


class AuditEvent(enum.Enum):
    WAITLIST_REGISTERED = "WAITLIST_REGISTERED"
    CONFIRMATION_EMAIL = "CONFIRMATION_EMAIL"
    WAITLIST_CONFIRMED = "WAITLIST_CONFIRMED"


def email_hash(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()[:12]


def entry_fields(entry: WaitlistEntry) -> Dict[str, Any]:
    """Identifying fields of an entry that are safe to log."""
    return {
        "entry_id": str(entry.id),
        "email_hash": email_hash(entry.email),
        "wallet": short_wallet(entry.wallet_address) if entry.wallet_address else None,
        "position": entry.position,
        "status": entry.status.value if entry.status else None,
    }


def audit(event: AuditEvent, entry: Optional[WaitlistEntry] = None, **fields: Any) -> None:
    """Emit one waitlist lifecycle event as a single JSON line.

    The confirmation token and the raw email never reach this log.
    """
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event.value,
    }
    if entry is not None:
        payload.update(entry_fields(entry))
    payload.update(fields)
    _logger.info(json.dumps(payload, ensure_ascii=False, default=str))

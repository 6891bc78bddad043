import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

import resend

logger = logging.getLogger(__name__)

_ADDRESS_IN_BRACKETS = re.compile(r"<([^>]+)>")


@dataclass
class EmailSendResult:
    sent: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False


def reply_to_address(sender: str) -> str:
    """Bare address of a sender such as 'Team <team@example.com>'."""
    match = _ADDRESS_IN_BRACKETS.search(sender)
    return match.group(1) if match else sender


class EmailService:
    """Transactional email through Resend. Without an API key every send is a no-op."""

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: int = 10):
        self.api_key = (api_key or "").strip() or None
        if self.api_key:
            resend.api_key = self.api_key
            # Older SDK releases have no pluggable HTTP client and use their own default timeout
            http_client_cls = getattr(resend, "RequestsClient", None)
            if http_client_cls is not None:
                resend.default_http_client = http_client_cls(timeout=timeout_seconds)

    @property
    def enabled(self) -> bool:
        return self.api_key is not None

    def send(
        self,
        to: str,
        sender: str,
        subject: str,
        html: str,
        text: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> EmailSendResult:
        if not self.enabled:
            logger.warning("Resend API key not configured. Email to %s not sent.", to)
            return EmailSendResult(sent=False, skipped=True)

        params = {
            "from": sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
            "reply_to": reply_to_address(sender),
            "headers": {
                "X-Priority": "1",
                "X-MSMail-Priority": "High",
                "Importance": "high",
            },
            "tags": [{"name": key, "value": value} for key, value in (metadata or {}).items()],
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error("Email send to %s failed: %s", to, message)
            if "testing emails" in message or getattr(e, "error_type", None) == "validation_error":
                logger.warning(
                    "Resend testing mode only delivers to the verified address; "
                    "verify the sending domain at https://resend.com/domains"
                )
            return EmailSendResult(sent=False, error=message)

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info("Email sent to %s (id=%s)", to, message_id)
        return EmailSendResult(sent=True, message_id=message_id)

# Import all models here for Alembic
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus
from app.models.newsletter import NewsletterSubscription, NewsletterStatus
from app.models.email_log import EmailLog, EmailLogStatus

__all__ = [
    "WaitlistEntry",
    "WaitlistStatus",
    "NewsletterSubscription",
    "NewsletterStatus",
    "EmailLog",
    "EmailLogStatus",
]

import uuid
import logging
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

from app.core.exceptions import DependencyError
from app.models.newsletter import NewsletterSubscription, NewsletterStatus

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class NewsletterService:
    def __init__(self, db: Session):
        self.db = db

    def subscribe(self, email: str, source: str = "waitlist") -> None:
        """Insert or reactivate the subscription for an email.

        An existing row is forced back to active and its unsubscribed_at cleared.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise DependencyError(f"Newsletter upsert is not supported on {dialect}")

        normalized = email.strip().lower()
        stmt = insert(NewsletterSubscription).values(
            id=uuid.uuid4(),
            email=normalized,
            status=NewsletterStatus.ACTIVE,
            source=source,
            unsubscribed_at=None,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[NewsletterSubscription.email],
            set_={
                "status": stmt.excluded.status,
                "source": stmt.excluded.source,
                "unsubscribed_at": None,
            },
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Newsletter subscription active for %s", normalized)

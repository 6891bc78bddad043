import logging
from typing import Dict
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DependencyError
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus

logger = logging.getLogger(__name__)


class StatsService:
    def __init__(self, db: Session):
        self.db = db

    def _count(self, *criteria) -> int:
        return self.db.query(func.count(WaitlistEntry.id)).filter(*criteria).scalar() or 0

    def get_stats(self) -> Dict[str, int]:
        """Total, confirmed and pending entry counts. All three or nothing."""
        try:
            total = self._count()
            # Either flag counts as confirmed in case the two ever drift apart
            confirmed = self._count(
                or_(WaitlistEntry.email_confirmed.is_(True), WaitlistEntry.status == WaitlistStatus.CONFIRMED)
            )
            pending = self._count(
                WaitlistEntry.email_confirmed.is_(False),
                WaitlistEntry.status == WaitlistStatus.PENDING,
            )
        except SQLAlchemyError as e:
            logger.error("Error fetching waitlist stats: %s", e)
            raise DependencyError("Failed to fetch stats", details=str(e))
        return {"total": total, "confirmed": confirmed, "pending": pending}

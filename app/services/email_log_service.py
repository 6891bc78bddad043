from typing import Optional
from sqlalchemy.orm import Session

from app.models.email_log import EmailLog, EmailLogStatus


class EmailLogService:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        waitlist_entry_id,
        email_type: str,
        status: EmailLogStatus,
        error_message: Optional[str] = None,
    ) -> EmailLog:
        log = EmailLog(
            waitlist_entry_id=waitlist_entry_id,
            email_type=email_type,
            status=status,
            error_message=error_message,
        )
        self.db.add(log)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return log

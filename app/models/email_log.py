import uuid
import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.types import GUID


class EmailLogStatus(enum.Enum):
    SENT = "sent"
    FAILED = "failed"


class EmailLog(Base):
    """One row per email send attempt. Rows are never updated."""
    __tablename__ = "email_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    waitlist_entry_id = Column(GUID(), ForeignKey("waitlist_entries.id"), nullable=False, index=True)
    email_type = Column(String, nullable=False)
    status = Column(
        SQLEnum(
            EmailLogStatus,
            name="emaillogstatus",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

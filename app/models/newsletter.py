import uuid
import enum
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.types import GUID


class NewsletterStatus(enum.Enum):
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


class NewsletterSubscription(Base):
    __tablename__ = "newsletter"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    status = Column(
        SQLEnum(
            NewsletterStatus,
            name="newsletterstatus",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=NewsletterStatus.ACTIVE,
    )
    source = Column(String, nullable=True)
    subscribed_at = Column(DateTime(timezone=True), server_default=func.now())
    unsubscribed_at = Column(DateTime(timezone=True), nullable=True)

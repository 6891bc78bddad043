import uuid
import enum
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Sequence, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.types import GUID


class WaitlistStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


# Queue positions on PostgreSQL; other dialects compute MAX(position)+1 at insert time
POSITION_SEQUENCE = Sequence("waitlist_entries_position_seq", start=1, metadata=Base.metadata)


def _new_confirmation_token() -> str:
    return str(uuid.uuid4())


class WaitlistEntry(Base):
    __tablename__ = "waitlist_entries"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, index=True)
    wallet_address = Column(String(42), nullable=False, index=True)
    confirmation_token = Column(String(64), nullable=False, default=_new_confirmation_token)
    status = Column(
        SQLEnum(
            WaitlistStatus,
            name="waitliststatus",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=WaitlistStatus.PENDING,
    )
    # Kept alongside status for older readers; both change together
    email_confirmed = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, index=True)

    confirmation_sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('email', name='uq_waitlist_email'),
        UniqueConstraint('wallet_address', name='uq_waitlist_wallet_address'),
    )

    @property
    def is_confirmed(self) -> bool:
        return bool(self.email_confirmed) or self.status == WaitlistStatus.CONFIRMED

"""waitlist entries, newsletter and email logs

Revision ID: 20261019_01_waitlist
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_01_waitlist"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


DEFAULT_NOW = sa.text("now()")


def upgrade() -> None:
    op.execute(sa.schema.CreateSequence(sa.Sequence("waitlist_entries_position_seq", start=1)))

    op.create_table(
        "waitlist_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("wallet_address", sa.String(length=42), nullable=False),
        sa.Column("confirmation_token", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False, server_default="pending"),
        sa.Column("email_confirmed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "position",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("nextval('waitlist_entries_position_seq')"),
        ),
        sa.Column("confirmation_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=DEFAULT_NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=DEFAULT_NOW),
        sa.UniqueConstraint("email", name="uq_waitlist_email"),
        sa.UniqueConstraint("wallet_address", name="uq_waitlist_wallet_address"),
        sa.CheckConstraint("status IN ('pending', 'confirmed')", name="waitliststatus"),
    )
    op.create_index("ix_waitlist_entries_email", "waitlist_entries", ["email"])
    op.create_index("ix_waitlist_entries_wallet_address", "waitlist_entries", ["wallet_address"])
    op.create_index("ix_waitlist_entries_position", "waitlist_entries", ["position"])

    op.create_table(
        "newsletter",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=12), nullable=False, server_default="active"),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("subscribed_at", sa.DateTime(timezone=True), server_default=DEFAULT_NOW),
        sa.Column("unsubscribed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('active', 'unsubscribed')", name="newsletterstatus"),
    )
    op.create_index("ix_newsletter_email", "newsletter", ["email"], unique=True)

    op.create_table(
        "email_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "waitlist_entry_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("waitlist_entries.id"),
            nullable=False,
        ),
        sa.Column("email_type", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=6), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=DEFAULT_NOW),
        sa.CheckConstraint("status IN ('sent', 'failed')", name="emaillogstatus"),
    )
    op.create_index("ix_email_logs_waitlist_entry_id", "email_logs", ["waitlist_entry_id"])


def downgrade() -> None:
    op.drop_index("ix_email_logs_waitlist_entry_id", table_name="email_logs")
    op.drop_table("email_logs")

    op.drop_index("ix_newsletter_email", table_name="newsletter")
    op.drop_table("newsletter")

    op.drop_index("ix_waitlist_entries_position", table_name="waitlist_entries")
    op.drop_index("ix_waitlist_entries_wallet_address", table_name="waitlist_entries")
    op.drop_index("ix_waitlist_entries_email", table_name="waitlist_entries")
    op.drop_table("waitlist_entries")

    op.execute(sa.schema.DropSequence(sa.Sequence("waitlist_entries_position_seq")))

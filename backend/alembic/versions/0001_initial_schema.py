"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the users directory, help requests and volunteer responses.
``uq_responses_request_id`` limits every request to a single live response.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROLE = sa.Enum("USER", "VOLUNTEER", "ADMIN", name="role")
REQUEST_STATUS = sa.Enum("ACTIVE", "IN_PROGRESS", "COMPLETED", "CANCELLED", name="requeststatus")
HELP_CATEGORY = sa.Enum("MEDICAL", "FOOD", "TRANSPORT", "CLOTHING", "SHELTER", "OTHER", name="helpcategory")


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("role", ROLE, nullable=False, server_default="USER"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- requests ---
    op.create_table(
        "requests",
        sa.Column("request_id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("category", HELP_CATEGORY, nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("status", REQUEST_STATUS, nullable=False, server_default="ACTIVE"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_requests_owner_id", "requests", ["owner_id"])
    op.create_index("ix_requests_status", "requests", ["status"])

    # --- responses ---
    op.create_table(
        "responses",
        sa.Column(
            "request_id",
            sa.String(36),
            sa.ForeignKey("requests.request_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("volunteer_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("request_id", name="uq_responses_request_id"),
    )
    op.create_index("ix_responses_volunteer_id", "responses", ["volunteer_id"])


def downgrade() -> None:
    op.drop_index("ix_responses_volunteer_id", table_name="responses")
    op.drop_table("responses")
    op.drop_index("ix_requests_status", table_name="requests")
    op.drop_index("ix_requests_owner_id", table_name="requests")
    op.drop_table("requests")
    op.drop_table("users")
    bind = op.get_bind()
    for enum_type in (HELP_CATEGORY, REQUEST_STATUS, ROLE):
        enum_type.drop(bind, checkfirst=True)

"""Create citizen services portal schema

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2025-10-03 13:41:11.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

app_role = sa.Enum("citizen", "officer", "admin", name="app_role")
application_status = sa.Enum(
    "pending", "under_review", "approved", "rejected", "additional_info_required",
    name="application_status",
)
payment_status = sa.Enum("pending", "completed", "failed", "refunded", name="payment_status")


def _timestamp(name="created_at"):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now())


def _user_fk(name, ondelete="CASCADE", nullable=False, **kwargs):
    return sa.Column(name, sa.String(36), sa.ForeignKey("users.id", ondelete=ondelete), nullable=nullable, **kwargs)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp(),
        sa.Column("last_login", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk("user_id", index=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("user_agent", sa.Text()),
        _timestamp(),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("full_name", sa.String(255), nullable=False),
        _timestamp(),
        _timestamp("updated_at"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk("user_id", index=True),
        sa.Column("role", app_role, nullable=False, index=True),
        _timestamp(),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    op.create_table(
        "aadhaar_details",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk("citizen_id", unique=True),
        sa.Column("aadhaar_number", sa.String(12), nullable=False, unique=True),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("gender", sa.String(20), nullable=False),
        _timestamp(),
    )

    op.create_table(
        "addresses",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk("citizen_id", index=True),
        sa.Column("address_line1", sa.Text(), nullable=False),
        sa.Column("address_line2", sa.Text()),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False, server_default="Goa"),
        sa.Column("pincode", sa.String(6), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp(),
    )

    op.create_table(
        "departments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        _timestamp(),
    )

    op.create_table(
        "services",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("department_id", sa.String(36), sa.ForeignKey("departments.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("fee", sa.DECIMAL(10, 2), nullable=False, server_default="0"),
        sa.Column("required_documents", sa.JSON(), nullable=False),
        sa.Column("processing_time_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true(), index=True),
        _timestamp(),
        sa.CheckConstraint("fee >= 0", name="ck_services_fee_non_negative"),
        sa.CheckConstraint("processing_time_days >= 0", name="ck_services_processing_time_non_negative"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk("citizen_id", index=True),
        sa.Column("service_id", sa.String(36), sa.ForeignKey("services.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        _user_fk("officer_id", ondelete="SET NULL", nullable=True, index=True),
        sa.Column("status", application_status, nullable=False, server_default="pending", index=True),
        sa.Column("remarks", sa.Text()),
        sa.Column("idempotency_key", sa.String(64)),
        sa.Column("applied_on", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column("completed_on", sa.DateTime(timezone=True)),
        _timestamp(),
        _timestamp("updated_at"),
        sa.UniqueConstraint("citizen_id", "idempotency_key", name="uq_applications_citizen_idempotency_key"),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("application_id", sa.String(36), sa.ForeignKey("applications.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_url", sa.String(1000), nullable=False),
        sa.Column("storage_path", sa.String(500), nullable=False),
        sa.Column("doc_type", sa.String(255), nullable=False),
        _timestamp("uploaded_at"),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("application_id", sa.String(36), sa.ForeignKey("applications.id", ondelete="CASCADE"),
                  nullable=False, index=True),
        sa.Column("transaction_id", sa.String(100), unique=True),
        sa.Column("amount", sa.DECIMAL(10, 2), nullable=False),
        sa.Column("status", payment_status, nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50)),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        _timestamp(),
    )


def downgrade():
    for table in (
        "payments", "documents", "applications", "services", "departments",
        "addresses", "aadhaar_details", "user_roles", "profiles", "user_sessions",
    ):
        op.drop_table(table)
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (payment_status, application_status, app_role):
        enum_type.drop(bind, checkfirst=True)

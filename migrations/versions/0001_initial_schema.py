"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Service calendars
    op.create_table(
        "service_calendars",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("entries", sa.JSON(), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=False),
        sa.Column("algorithm_version", sa.String(length=20), nullable=False),
        sa.Column("generated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("year >= 1 AND year <= 9999", name="ck_service_calendars_year_range"),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("service_calendars", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_service_calendars_year"), ["year"], unique=True)

    # Special services
    op.create_table(
        "special_services",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("special_services", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_special_services_service_date"), ["service_date"], unique=True)

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("audit_logs", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_audit_logs_action"), ["action"], unique=False)
        batch_op.create_index(batch_op.f("ix_audit_logs_timestamp"), ["timestamp"], unique=False)


def downgrade():
    with op.batch_alter_table("audit_logs", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_audit_logs_timestamp"))
        batch_op.drop_index(batch_op.f("ix_audit_logs_action"))
    op.drop_table("audit_logs")

    with op.batch_alter_table("special_services", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_special_services_service_date"))
    op.drop_table("special_services")

    with op.batch_alter_table("service_calendars", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_service_calendars_year"))
    op.drop_table("service_calendars")

"""001 – Initial schema: leave_records, audit_trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+05:30
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


LEAVE_SESSIONS = ("Full Day", "Forenoon", "Afternoon")
LEAVE_STATUSES = ("Pending", "Recommended", "Approved", "Rejected")


def upgrade() -> None:
    # ══════════════════════════════════════════════════════════════════
    # leave_records
    # ══════════════════════════════════════════════════════════════════
    op.create_table(
        "leave_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("user_email", sa.String(255)),
        sa.Column("department", sa.String(100)),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=False),
        sa.Column(
            "session",
            sa.Enum(*LEAVE_SESSIONS, name="leave_session"),
            nullable=False,
        ),
        sa.Column("leave_value", sa.Numeric(5, 1), nullable=False),
        sa.Column(
            "status",
            sa.Enum(*LEAVE_STATUSES, name="leave_status"),
            nullable=False,
            server_default="Pending",
        ),
        sa.Column("recommended_by", sa.String(20)),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("reviewed_by", sa.String(128)),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("reviewer_remarks", sa.Text()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("from_date <= to_date", name="ck_leave_records_date_order"),
    )
    op.create_index("ix_leave_records_user_id", "leave_records", ["user_id"])
    op.create_index(
        "ix_leave_records_department_status",
        "leave_records",
        ["department", "status"],
    )

    # ══════════════════════════════════════════════════════════════════
    # audit_trail
    # ══════════════════════════════════════════════════════════════════
    op.create_table(
        "audit_trail",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.String(128)),
        sa.Column("actor_role", sa.String(20)),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("old_values", sa.JSON()),
        sa.Column("new_values", sa.JSON()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_audit_trail_actor_id", "audit_trail", ["actor_id"])
    op.create_index("ix_audit_trail_entity", "audit_trail", ["entity_type", "entity_id"])
    op.create_index("ix_audit_trail_created_at", "audit_trail", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_trail")
    op.drop_table("leave_records")
    sa.Enum(name="leave_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="leave_session").drop(op.get_bind(), checkfirst=True)

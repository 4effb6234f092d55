"""Leave ORM models: LeaveRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from leave_portal.common.constants import LeaveSession, LeaveStatus
from leave_portal.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class LeaveRecord(Base):
    __tablename__ = "leave_records"
    __table_args__ = (
        sa.CheckConstraint("from_date <= to_date", name="ck_leave_records_date_order"),
        sa.Index("ix_leave_records_user_id", "user_id"),
        sa.Index("ix_leave_records_department_status", "department", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(sa.String(128), nullable=False)
    user_email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    department: Mapped[Optional[str]] = mapped_column(sa.String(100))
    type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    from_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    to_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    session: Mapped[LeaveSession] = mapped_column(
        sa.Enum(
            LeaveSession,
            name="leave_session",
            values_callable=_enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    leave_value: Mapped[Decimal] = mapped_column(sa.Numeric(5, 1), nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(
            LeaveStatus,
            name="leave_status",
            values_callable=_enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=LeaveStatus.pending,
    )
    recommended_by: Mapped[Optional[str]] = mapped_column(sa.String(20))
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    reviewed_by: Mapped[Optional[str]] = mapped_column(sa.String(128))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    reviewer_remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=_utcnow, server_default=sa.func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<LeaveRecord {self.id} {self.type} {self.from_date}..{self.to_date}"
            f" {self.session.value if self.session else None} {self.status}>"
        )

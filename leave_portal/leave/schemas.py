"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Out                          → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leave_portal.common.constants import (
    HALF_DAY_SESSIONS,
    LeaveAction,
    LeaveSession,
    LeaveStatus,
)
from leave_portal.config import settings


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeOut(BaseModel):
    """A catalogue entry with its annual allowance."""

    name: str
    annual_limit: Decimal


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create / Update
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestBase(BaseModel):
    """Fields shared by submission and edit. ``leave_value`` is never accepted."""

    type: str = Field(..., description="Leave type from the configured catalogue")
    from_date: date = Field(..., description="Leave start date (inclusive)")
    to_date: Optional[date] = Field(
        None,
        description="Leave end date (inclusive); forced to from_date for half-day sessions",
    )
    session: LeaveSession = LeaveSession.full_day
    reason: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("type")
    @classmethod
    def type_in_catalogue(cls, v: str) -> str:
        if v not in settings.leave_limits:
            raise ValueError(
                f"Unknown leave type '{v}'. Allowed: {', '.join(settings.leave_limits)}."
            )
        return v

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank.")
        return v.strip()

    @model_validator(mode="after")
    def normalise_dates(self) -> "LeaveRequestBase":
        if self.session in HALF_DAY_SESSIONS or self.to_date is None:
            self.to_date = self.from_date
        return self


class LeaveRequestCreate(LeaveRequestBase):
    """Payload for submitting a leave request."""


class LeaveRequestUpdate(LeaveRequestBase):
    """Payload for editing a pending leave request (full replacement)."""


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    user_email: Optional[str] = None
    department: Optional[str] = None
    type: str
    from_date: date
    to_date: date
    session: LeaveSession
    leave_value: Decimal
    status: LeaveStatus
    recommended_by: Optional[str] = None
    reason: str
    description: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewer_remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # Filled by service for reviewer views
    allowed_actions: list[LeaveAction] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Review actions
# ═════════════════════════════════════════════════════════════════════


class LeaveReviewRequest(BaseModel):
    """Payload for recommend / approve."""

    remarks: Optional[str] = Field(None, max_length=500)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Allowance for a single leave type in one calendar year."""

    model_config = ConfigDict(from_attributes=True)

    leave_type: str
    limit: Decimal
    used: Decimal
    remaining: Decimal
    over_limit: bool = False
    near_limit: bool = False


class LeaveBalancesOut(BaseModel):
    user_id: str
    year: int
    balances: list[LeaveBalanceOut]


# ═════════════════════════════════════════════════════════════════════
# Session availability
# ═════════════════════════════════════════════════════════════════════


class SessionAvailabilityOut(BaseModel):
    """What the caller may pick for a start date at the current time."""

    from_date: Optional[date] = None
    min_from_date: date
    sessions: list[LeaveSession]


# ═════════════════════════════════════════════════════════════════════
# Summary
# ═════════════════════════════════════════════════════════════════════


class LeaveSummaryOut(BaseModel):
    """Status counts over a snapshot of records."""

    total: int = 0
    pending: int = 0
    recommended: int = 0
    approved: int = 0
    rejected: int = 0
    total_leave_value: Decimal = Decimal("0")

"""Enums and constants for the leave portal — stored values match the portal's documents."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    staff = "staff"
    hod = "hod"
    principal = "principal"
    director = "director"
    admin = "admin"


REVIEWER_ROLES: tuple[UserRole, ...] = (
    UserRole.hod,
    UserRole.principal,
    UserRole.director,
    UserRole.admin,
)


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    """Default leave-type catalogue. The configured limit table is authoritative."""

    casual = "Casual Leave"
    duty = "Duty Leave"
    vacation = "Vacation Leave"
    maternity = "Maternity Leave"
    compensatory = "Compensatory Leave"


class LeaveSession(str, enum.Enum):
    full_day = "Full Day"
    forenoon = "Forenoon"
    afternoon = "Afternoon"


HALF_DAY_SESSIONS = frozenset({LeaveSession.forenoon, LeaveSession.afternoon})


class LeaveStatus(str, enum.Enum):
    pending = "Pending"
    recommended = "Recommended"
    approved = "Approved"
    rejected = "Rejected"


TERMINAL_STATUSES = frozenset({LeaveStatus.approved, LeaveStatus.rejected})


class RecommendedBy(str, enum.Enum):
    hod = "HOD"
    director = "Director"
    admin = "Admin"


class LeaveAction(str, enum.Enum):
    recommend = "recommend"
    approve = "approve"
    reject = "reject"


ACTION_TARGETS: dict[LeaveAction, LeaveStatus] = {
    LeaveAction.recommend: LeaveStatus.recommended,
    LeaveAction.approve: LeaveStatus.approved,
    LeaveAction.reject: LeaveStatus.rejected,
}


class RejectionReason(str, enum.Enum):
    past_date = "PastDate"
    ordering_invalid = "OrderingInvalid"
    session_unavailable = "SessionUnavailable"
    overlap = "Overlap"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.staff: [
        "leave:request",
    ],
    UserRole.hod: [
        "leave:request",
        "leave:recommend",
        "leave:reject",
    ],
    UserRole.director: [
        "leave:request",
        "leave:recommend",
        "leave:reject",
    ],
    UserRole.principal: [
        "leave:request",
        "leave:approve",
        "leave:reject",
    ],
    UserRole.admin: [
        "leave:request",
        "leave:recommend",
        "leave:approve",
        "leave:reject",
    ],
}

# ── Same-day submission cutoffs (minutes since midnight) ────────────

FULL_DAY_CUTOFF_MINUTES = 8 * 60 + 30      # 08:30: after this, only Afternoon today
AFTERNOON_CUTOFF_MINUTES = 12 * 60 + 30    # 12:30: after this, nothing today

# ── Misc constants ──────────────────────────────────────────────────

HALF_DAY_VALUE = "0.5"
NEAR_LIMIT_PERCENT = 80

"""Who sees and who may act on a leave record.

Every queue, listing and transition check goes through these predicates
so that role scoping is decided in one place.
"""

from __future__ import annotations

from typing import Any

from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import (
    TERMINAL_STATUSES,
    LeaveStatus,
    LeaveType,
    RecommendedBy,
    UserRole,
)


def is_compensatory(record: Any) -> bool:
    return record.type == LeaveType.compensatory.value


def is_director_cleared(record: Any) -> bool:
    """Compensatory Leave reaches the principal only after a director has recommended it."""
    return record.recommended_by == RecommendedBy.director.value


def is_visible_to_principal(record: Any) -> bool:
    """Records that belong in the principal's views, whatever their later status."""
    if record.status == LeaveStatus.pending:
        return False
    return not is_compensatory(record) or is_director_cleared(record)


def is_visible_to(actor: Actor, record: Any) -> bool:
    """Whether ``actor`` may see ``record`` in listings and dashboards."""
    if record.user_id == actor.user_id:
        return True
    if actor.role == UserRole.admin:
        return True
    if actor.role == UserRole.principal:
        return is_visible_to_principal(record)
    if actor.role == UserRole.hod:
        return actor.department is not None and record.department == actor.department
    if actor.role == UserRole.director:
        return is_compensatory(record) and record.status != LeaveStatus.pending
    return False


def is_actionable_for(actor: Actor, record: Any) -> bool:
    """Whether ``record`` is waiting on ``actor``'s decision."""
    if record.user_id == actor.user_id:
        return False
    if record.status in TERMINAL_STATUSES:
        return False

    if actor.role == UserRole.admin:
        return True
    if actor.role == UserRole.hod:
        return (
            record.status == LeaveStatus.pending
            and actor.department is not None
            and record.department == actor.department
        )
    if actor.role == UserRole.director:
        return (
            is_compensatory(record)
            and record.status == LeaveStatus.recommended
            and not is_director_cleared(record)
        )
    if actor.role == UserRole.principal:
        return record.status == LeaveStatus.recommended and is_visible_to_principal(record)
    return False

"""Approval state machine for leave records.

    Pending ──► Recommended ──► Approved
       │             │
       └──► Rejected ◄┘

Approved and Rejected are terminal. Which edges an actor may take
depends on their role; scope (department, Compensatory Leave routing)
is decided by :mod:`leave_portal.leave.predicates`.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import (
    ACTION_TARGETS,
    TERMINAL_STATUSES,
    LeaveAction,
    LeaveStatus,
    RecommendedBy,
    UserRole,
)
from leave_portal.common.exceptions import ForbiddenException, InvalidTransitionException
from leave_portal.leave.predicates import (
    is_actionable_for,
    is_compensatory,
    is_director_cleared,
)

logger = logging.getLogger(__name__)

# (current status, action) pairs each role may perform.
ROLE_TRANSITIONS: dict[UserRole, frozenset[tuple[LeaveStatus, LeaveAction]]] = {
    UserRole.staff: frozenset(),
    UserRole.hod: frozenset({
        (LeaveStatus.pending, LeaveAction.recommend),
        (LeaveStatus.pending, LeaveAction.reject),
    }),
    UserRole.director: frozenset({
        (LeaveStatus.recommended, LeaveAction.recommend),
        (LeaveStatus.recommended, LeaveAction.reject),
    }),
    UserRole.principal: frozenset({
        (LeaveStatus.recommended, LeaveAction.approve),
        (LeaveStatus.recommended, LeaveAction.reject),
    }),
    UserRole.admin: frozenset({
        (LeaveStatus.pending, LeaveAction.recommend),
        (LeaveStatus.pending, LeaveAction.approve),
        (LeaveStatus.pending, LeaveAction.reject),
        (LeaveStatus.recommended, LeaveAction.approve),
        (LeaveStatus.recommended, LeaveAction.reject),
    }),
}

RECOMMENDER_LABELS: dict[UserRole, RecommendedBy] = {
    UserRole.hod: RecommendedBy.hod,
    UserRole.director: RecommendedBy.director,
    UserRole.admin: RecommendedBy.admin,
}


def allowed_actions(actor: Actor, record: Any) -> list[LeaveAction]:
    """Actions ``actor`` could take on ``record`` right now."""
    if not is_actionable_for(actor, record):
        return []
    permitted = ROLE_TRANSITIONS.get(actor.role, frozenset())
    return [action for action in LeaveAction if (record.status, action) in permitted]


def check_transition(actor: Actor, record: Any, action: LeaveAction) -> LeaveStatus:
    """Return the target status for ``action`` or raise why it is not allowed."""
    current = LeaveStatus(record.status)
    target = ACTION_TARGETS[action]

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionException(
            current.value,
            target.value,
            detail=f"Leave request is already {current.value}.",
        )

    if record.user_id == actor.user_id:
        raise ForbiddenException("You cannot act on your own leave request.")

    permitted = ROLE_TRANSITIONS.get(actor.role, frozenset())
    if not any(allowed == action for _, allowed in permitted):
        raise ForbiddenException(
            f"Role '{actor.role.value}' cannot {action.value} leave requests."
        )
    if (current, action) not in permitted:
        raise InvalidTransitionException(current.value, target.value)

    if (
        actor.role == UserRole.principal
        and is_compensatory(record)
        and not is_director_cleared(record)
    ):
        raise InvalidTransitionException(
            current.value,
            target.value,
            detail="Compensatory Leave is awaiting a Director's recommendation.",
        )

    if not is_actionable_for(actor, record):
        raise ForbiddenException("You are not authorized to act on this leave request.")

    return target


def apply_transition(
    actor: Actor,
    record: Any,
    action: LeaveAction,
    now: datetime,
    remarks: Optional[str] = None,
) -> LeaveStatus:
    """Move ``record`` along ``action`` in place. Returns the previous status."""
    target = check_transition(actor, record, action)
    previous = LeaveStatus(record.status)

    record.status = target
    if target == LeaveStatus.recommended:
        record.recommended_by = RECOMMENDER_LABELS[actor.role].value
    record.reviewed_by = actor.user_id
    record.reviewed_at = now
    record.reviewer_remarks = remarks

    logger.info(
        "Leave %s: %s -> %s by %s (%s)",
        record.id, previous.value, target.value, actor.user_id, actor.role.value,
    )
    return previous

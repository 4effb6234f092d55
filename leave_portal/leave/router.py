"""Leave router — apply, edit, review, queues, balances, catalogue.

All endpoints require a bearer token. Reviewer endpoints enforce role checks;
record-level scope is enforced by the service.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.auth.dependencies import (
    get_current_actor,
    require_permission,
    require_role,
)
from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import REVIEWER_ROLES, LeaveAction, LeaveStatus
from leave_portal.common.rate_limit import limiter
from leave_portal.database import get_db
from leave_portal.leave.schemas import (
    LeaveBalancesOut,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveReviewRequest,
    LeaveSummaryOut,
    LeaveTypeOut,
    SessionAvailabilityOut,
)
from leave_portal.leave.service import LeaveService, local_now

router = APIRouter(prefix="", tags=["leave"])

_reviewer = require_role(*REVIEWER_ROLES)


# ── GET /policies ───────────────────────────────────────────────────

@router.get("/policies", response_model=list[LeaveTypeOut])
async def get_policies(
    actor: Actor = Depends(get_current_actor),
):
    """List the leave-type catalogue with annual limits."""
    return LeaveService.get_leave_types()


# ── GET /sessions ───────────────────────────────────────────────────

@router.get("/sessions", response_model=SessionAvailabilityOut)
async def get_sessions(
    from_date: Optional[date] = Query(None, description="Proposed start date"),
    actor: Actor = Depends(get_current_actor),
):
    """Earliest allowed start date and the sessions still open for ``from_date``."""
    return LeaveService.get_session_availability(from_date)


# ── POST /apply ─────────────────────────────────────────────────────

@router.post("/apply", response_model=LeaveRequestOut, status_code=201)
@limiter.limit("20/minute")
async def apply_leave(
    request: Request,
    body: LeaveRequestCreate,
    actor: Actor = Depends(require_permission("leave:request")),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request. Validates dates, same-day cutoffs and overlaps."""
    return await LeaveService.submit_leave(db, actor, body)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=list[LeaveRequestOut])
async def my_leaves(
    status: Optional[LeaveStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """The caller's leave history, newest first."""
    return await LeaveService.get_my_leaves(db, actor, status=status)


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=LeaveBalancesOut)
async def get_balances(
    year: Optional[int] = Query(None, description="Calendar year; defaults to current year"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """The caller's used and remaining allowance per leave type."""
    target_year = year or local_now().year
    return await LeaveService.get_balances(db, actor, actor.user_id, target_year)


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=LeaveSummaryOut)
async def get_summary(
    scope: str = Query("my", pattern="^(my|all)$"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    """Status counts over the caller's own requests or everything they can see."""
    return await LeaveService.get_summary(db, actor, scope=scope)


# ── GET /queue ──────────────────────────────────────────────────────

@router.get("/queue", response_model=list[LeaveRequestOut])
async def review_queue(
    actor: Actor = Depends(_reviewer),
    db: AsyncSession = Depends(get_db),
):
    """Requests waiting on the caller's decision."""
    return await LeaveService.get_queue(db, actor)


# ── GET /records ────────────────────────────────────────────────────

@router.get("/records", response_model=list[LeaveRequestOut])
async def list_records(
    status: Optional[LeaveStatus] = Query(None),
    leave_type: Optional[str] = Query(None, alias="type"),
    user_id: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    actor: Actor = Depends(_reviewer),
    db: AsyncSession = Depends(get_db),
):
    """Leave requests visible to the caller's role, with optional filters."""
    return await LeaveService.get_records(
        db,
        actor,
        status=status,
        leave_type=leave_type,
        user_id=user_id,
        department=department,
        from_date=from_date,
        to_date=to_date,
    )


# ── GET /users/{user_id}/balances ───────────────────────────────────

@router.get("/users/{user_id}/balances", response_model=LeaveBalancesOut)
async def get_user_balances(
    user_id: str,
    year: Optional[int] = Query(None),
    actor: Actor = Depends(_reviewer),
    db: AsyncSession = Depends(get_db),
):
    """Another user's balances, for reviewers within their scope."""
    target_year = year or local_now().year
    return await LeaveService.get_balances(db, actor, user_id, target_year)


# ── PUT /{id} ───────────────────────────────────────────────────────

@router.put("/{record_id}", response_model=LeaveRequestOut)
async def edit_leave(
    record_id: uuid.UUID,
    body: LeaveRequestUpdate,
    actor: Actor = Depends(require_permission("leave:request")),
    db: AsyncSession = Depends(get_db),
):
    """Edit one of the caller's Pending requests."""
    return await LeaveService.update_leave(db, actor, record_id, body)


# ── PUT /{id}/recommend ─────────────────────────────────────────────

@router.put("/{record_id}/recommend", response_model=LeaveRequestOut)
async def recommend_leave(
    record_id: uuid.UUID,
    body: LeaveReviewRequest,
    actor: Actor = Depends(require_permission("leave:recommend")),
    db: AsyncSession = Depends(get_db),
):
    """Forward a request to the next approval tier."""
    return await LeaveService.review_leave(
        db, actor, record_id, LeaveAction.recommend, remarks=body.remarks,
    )


# ── PUT /{id}/approve ───────────────────────────────────────────────

@router.put("/{record_id}/approve", response_model=LeaveRequestOut)
async def approve_leave(
    record_id: uuid.UUID,
    body: LeaveReviewRequest,
    actor: Actor = Depends(require_permission("leave:approve")),
    db: AsyncSession = Depends(get_db),
):
    """Approve a recommended request."""
    return await LeaveService.review_leave(
        db, actor, record_id, LeaveAction.approve, remarks=body.remarks,
    )


# ── PUT /{id}/reject ────────────────────────────────────────────────

@router.put("/{record_id}/reject", response_model=LeaveRequestOut)
async def reject_leave(
    record_id: uuid.UUID,
    body: LeaveRejectRequest,
    actor: Actor = Depends(require_permission("leave:reject")),
    db: AsyncSession = Depends(get_db),
):
    """Reject a pending or recommended request."""
    return await LeaveService.review_leave(
        db, actor, record_id, LeaveAction.reject, remarks=body.reason,
    )

"""Leave service layer — submission, editing, review workflow, queues and balances.

Business logic:
  - Submission and edit run the eligibility/conflict validator against the
    owner's current records and re-derive ``leave_value`` on every write
  - Reviews move records through the approval state machine
  - Queues and listings are filtered through the shared role predicates
  - Balances are recomputed from Approved records on every read
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.auth.schemas import Actor
from leave_portal.common.audit import create_audit_entry
from leave_portal.common.constants import (
    LeaveAction,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from leave_portal.common.exceptions import (
    ForbiddenException,
    LeaveRejected,
    NotFoundException,
    ValidationException,
)
from leave_portal.config import settings
from leave_portal.leave import read_model
from leave_portal.leave.balances import compute_balances
from leave_portal.leave.models import LeaveRecord
from leave_portal.leave.repository import LeaveRepository
from leave_portal.leave.schemas import (
    LeaveBalanceOut,
    LeaveBalancesOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveSummaryOut,
    LeaveTypeOut,
    SessionAvailabilityOut,
)
from leave_portal.leave.validator import (
    LeaveWindow,
    available_sessions,
    min_start_date,
    validate_leave_window,
)
from leave_portal.leave.workflow import allowed_actions, apply_transition

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current wall-clock time in the institution's timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: catalogue, submission, edits, reviews, queues, balances."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _build_response(
        record: LeaveRecord,
        actor: Optional[Actor] = None,
    ) -> LeaveRequestOut:
        """Build LeaveRequestOut from ORM, adding the actor's available actions."""
        out = LeaveRequestOut.model_validate(record)
        if actor is not None:
            out.allowed_actions = allowed_actions(actor, record)
        return out

    @staticmethod
    def _snapshot(record: LeaveRecord) -> dict[str, Any]:
        """JSON-safe view of the mutable fields, for the audit trail."""
        return {
            "type": record.type,
            "from_date": record.from_date.isoformat(),
            "to_date": record.to_date.isoformat(),
            "session": record.session.value,
            "leave_value": str(record.leave_value),
            "status": LeaveStatus(record.status).value,
            "recommended_by": record.recommended_by,
        }

    @staticmethod
    def _scope_filters(actor: Actor) -> dict[str, Any]:
        """Store-side narrowing for a reviewer's listing; predicates do the rest."""
        if actor.role == UserRole.hod:
            return {"department": actor.department}
        if actor.role == UserRole.director:
            return {"type": LeaveType.compensatory.value}
        if actor.role in (UserRole.principal, UserRole.admin):
            return {}
        return {"user_id": actor.user_id}

    @staticmethod
    def _validate(
        data: LeaveRequestCreate | LeaveRequestUpdate,
        existing: Sequence[LeaveRecord],
        now: datetime,
        exclude_record_id: Optional[uuid.UUID] = None,
    ) -> Decimal:
        candidate = LeaveWindow(
            from_date=data.from_date,
            to_date=data.to_date,
            session=data.session,
        )
        try:
            return validate_leave_window(candidate, existing, now, exclude_record_id)
        except LeaveRejected as exc:
            logger.info("Leave window rejected (%s): %s", exc.reason.value, exc.detail)
            raise

    # ─────────────────────────────────────────────────────────────────
    # Catalogue / availability
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def get_leave_types() -> list[LeaveTypeOut]:
        """The configured leave-type catalogue with annual limits."""
        return [
            LeaveTypeOut(name=name, annual_limit=limit)
            for name, limit in settings.leave_limits.items()
        ]

    @staticmethod
    def get_session_availability(
        from_date: Optional[date] = None,
        *,
        now: Optional[datetime] = None,
    ) -> SessionAvailabilityOut:
        """Earliest selectable start date and the sessions offered for ``from_date``."""
        now = now or local_now()
        earliest = min_start_date(now)
        target = from_date or earliest
        sessions = [] if target < now.date() else available_sessions(target, now)
        return SessionAvailabilityOut(
            from_date=from_date,
            min_from_date=earliest,
            sessions=sessions,
        )

    # ─────────────────────────────────────────────────────────────────
    # Submit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def submit_leave(
        db: AsyncSession,
        actor: Actor,
        data: LeaveRequestCreate,
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequestOut:
        """Validate the window against the actor's records and create a Pending request."""
        now = now or local_now()
        repo = LeaveRepository(db)

        existing = await repo.list_for_user(actor.user_id)
        leave_value = LeaveService._validate(data, existing, now)

        record = LeaveRecord(
            user_id=actor.user_id,
            user_email=actor.email,
            department=actor.department,
            type=data.type,
            from_date=data.from_date,
            to_date=data.to_date,
            session=data.session,
            leave_value=leave_value,
            status=LeaveStatus.pending,
            reason=data.reason,
            description=data.description,
        )
        await repo.create(record)

        await create_audit_entry(
            db,
            action="submit",
            entity_type="leave_record",
            entity_id=record.id,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
            new_values=LeaveService._snapshot(record),
        )
        logger.info(
            "Leave %s submitted by %s: %s %s..%s (%s)",
            record.id, actor.user_id, record.type,
            record.from_date, record.to_date, record.leave_value,
        )
        return LeaveService._build_response(record)

    # ─────────────────────────────────────────────────────────────────
    # Edit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_leave(
        db: AsyncSession,
        actor: Actor,
        record_id: uuid.UUID,
        data: LeaveRequestUpdate,
        *,
        now: Optional[datetime] = None,
    ) -> LeaveRequestOut:
        """Owner edits a Pending request; the window is re-validated excluding itself."""
        now = now or local_now()
        repo = LeaveRepository(db)

        record = await repo.get(record_id)
        if record is None:
            raise NotFoundException("LeaveRequest", str(record_id))
        if record.user_id != actor.user_id:
            raise ForbiddenException("You can only edit your own leave requests.")
        if record.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": [
                    f"Leave request is already {LeaveStatus(record.status).value} "
                    "and can no longer be edited."
                ]}
            )

        existing = await repo.list_for_user(actor.user_id)
        leave_value = LeaveService._validate(
            data, existing, now, exclude_record_id=record.id,
        )

        old_values = LeaveService._snapshot(record)
        record.type = data.type
        record.from_date = data.from_date
        record.to_date = data.to_date
        record.session = data.session
        record.leave_value = leave_value
        record.reason = data.reason
        record.description = data.description
        await repo.update(record)

        await create_audit_entry(
            db,
            action="edit",
            entity_type="leave_record",
            entity_id=record.id,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
            old_values=old_values,
            new_values=LeaveService._snapshot(record),
        )
        return LeaveService._build_response(record)

    # ─────────────────────────────────────────────────────────────────
    # Review (recommend / approve / reject)
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def review_leave(
        db: AsyncSession,
        actor: Actor,
        record_id: uuid.UUID,
        action: LeaveAction,
        *,
        remarks: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequestOut:
        """Advance a request's status through the approval state machine."""
        now = now or local_now()
        repo = LeaveRepository(db)

        record = await repo.get(record_id)
        if record is None:
            raise NotFoundException("LeaveRequest", str(record_id))

        old_values = LeaveService._snapshot(record)
        apply_transition(actor, record, action, now, remarks=remarks)
        await repo.update(record)

        await create_audit_entry(
            db,
            action=action.value,
            entity_type="leave_record",
            entity_id=record.id,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
            old_values=old_values,
            new_values={**LeaveService._snapshot(record), "remarks": remarks},
        )
        return LeaveService._build_response(record, actor)

    # ─────────────────────────────────────────────────────────────────
    # Listings
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_my_leaves(
        db: AsyncSession,
        actor: Actor,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> list[LeaveRequestOut]:
        """The actor's own requests, newest first."""
        records = await LeaveRepository(db).list_records(
            {"user_id": actor.user_id, "status": status}
        )
        return [LeaveService._build_response(r) for r in records]

    @staticmethod
    async def get_records(
        db: AsyncSession,
        actor: Actor,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[str] = None,
        user_id: Optional[str] = None,
        department: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> list[LeaveRequestOut]:
        """Records the actor may see, narrowed by optional filters."""
        filters = {
            "status": status,
            "type": leave_type,
            "user_id": user_id,
            "department": department,
            "from_date__from": from_date,
            "from_date__to": to_date,
        }
        filters.update(LeaveService._scope_filters(actor))
        records = await LeaveRepository(db).list_records(filters)
        return [
            LeaveService._build_response(r, actor)
            for r in read_model.visible_records(actor, records)
        ]

    @staticmethod
    async def get_queue(
        db: AsyncSession,
        actor: Actor,
    ) -> list[LeaveRequestOut]:
        """Requests currently waiting on the actor's decision, oldest first."""
        records = await LeaveRepository(db).list_records(
            {
                **LeaveService._scope_filters(actor),
                "status__in": [LeaveStatus.pending, LeaveStatus.recommended],
            },
            sort="created_at",
        )
        return [
            LeaveService._build_response(r, actor)
            for r in read_model.actionable_records(actor, records)
        ]

    @staticmethod
    async def get_summary(
        db: AsyncSession,
        actor: Actor,
        *,
        scope: str = "my",
    ) -> LeaveSummaryOut:
        """Status counts over the actor's own records (``my``) or everything visible (``all``)."""
        repo = LeaveRepository(db)
        if scope == "my":
            return read_model.summarize(await repo.list_for_user(actor.user_id))
        if actor.role == UserRole.staff:
            raise ForbiddenException("Staff can only summarise their own requests.")
        records = await repo.list_records(LeaveService._scope_filters(actor))
        return read_model.summarize(read_model.visible_records(actor, records))

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balances(
        db: AsyncSession,
        actor: Actor,
        user_id: str,
        year: int,
    ) -> LeaveBalancesOut:
        """Used/remaining allowance per leave type, replayed from Approved records."""
        records = await LeaveRepository(db).list_for_user(user_id)

        if user_id != actor.user_id:
            if actor.role == UserRole.staff:
                raise ForbiddenException("You can only view your own leave balances.")
            if actor.role == UserRole.hod and not any(
                actor.department is not None and r.department == actor.department
                for r in records
            ):
                raise ForbiddenException("You can only view balances within your department.")

        balances = compute_balances(records, year, settings.leave_limits)
        return LeaveBalancesOut(
            user_id=user_id,
            year=year,
            balances=[
                LeaveBalanceOut(
                    leave_type=b.leave_type,
                    limit=b.limit,
                    used=b.used,
                    remaining=b.remaining,
                    over_limit=b.over_limit,
                    near_limit=b.near_limit,
                )
                for b in balances.values()
            ],
        )

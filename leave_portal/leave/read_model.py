"""Aggregations over a snapshot of leave records for dashboards."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Any, Iterable

from leave_portal.auth.schemas import Actor
from leave_portal.common.constants import LeaveStatus
from leave_portal.leave.predicates import is_actionable_for, is_visible_to
from leave_portal.leave.schemas import LeaveSummaryOut


def visible_records(actor: Actor, records: Iterable[Any]) -> list[Any]:
    return [r for r in records if is_visible_to(actor, r)]


def actionable_records(actor: Actor, records: Iterable[Any]) -> list[Any]:
    return [r for r in records if is_actionable_for(actor, r)]


def summarize(records: Iterable[Any]) -> LeaveSummaryOut:
    """Count records per status; ``total_leave_value`` sums Approved leave only."""
    records = list(records)
    counts = Counter(LeaveStatus(r.status) for r in records)
    approved_value = sum(
        (Decimal(str(r.leave_value)) for r in records if r.status == LeaveStatus.approved),
        Decimal("0"),
    )
    return LeaveSummaryOut(
        total=len(records),
        pending=counts[LeaveStatus.pending],
        recommended=counts[LeaveStatus.recommended],
        approved=counts[LeaveStatus.approved],
        rejected=counts[LeaveStatus.rejected],
        total_leave_value=approved_value,
    )

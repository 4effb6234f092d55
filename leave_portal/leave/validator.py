"""Eligibility and conflict rules for a proposed leave window.

Everything here is pure: callers load the user's existing records, pass
the wall-clock ``now`` in the institution's timezone, and perform the
write themselves after :func:`validate_leave_window` accepts.

Rules, applied in order:
  1. ``to_date`` may not precede ``from_date`` (half days span one date).
  2. ``from_date`` may not be in the past.
  3. Same-day cutoffs: after 08:30 only the Afternoon session can start
     today, after 12:30 nothing can.
  4. No overlap with the user's non-rejected records.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional

from leave_portal.common.constants import (
    AFTERNOON_CUTOFF_MINUTES,
    FULL_DAY_CUTOFF_MINUTES,
    HALF_DAY_SESSIONS,
    HALF_DAY_VALUE,
    LeaveSession,
    LeaveStatus,
    RejectionReason,
)
from leave_portal.common.exceptions import LeaveRejected


@dataclass(frozen=True)
class LeaveWindow:
    """Dates and session of a leave, proposed or stored."""

    from_date: date
    to_date: date
    session: LeaveSession


# ─────────────────────────────────────────────────────────────────────
# Derivations
# ─────────────────────────────────────────────────────────────────────


def derive_leave_value(from_date: date, to_date: date, session: LeaveSession) -> Decimal:
    """0.5 for a half-day session, otherwise the inclusive day count."""
    if session in HALF_DAY_SESSIONS:
        return Decimal(HALF_DAY_VALUE)
    return Decimal((to_date - from_date).days + 1)


def _minutes_since_midnight(now: datetime) -> int:
    return now.hour * 60 + now.minute


def available_sessions(from_date: date, now: datetime) -> list[LeaveSession]:
    """Sessions a leave starting on ``from_date`` may still use at ``now``."""
    all_sessions = list(LeaveSession)
    if from_date != now.date():
        return all_sessions

    minutes = _minutes_since_midnight(now)
    if minutes > AFTERNOON_CUTOFF_MINUTES:
        return []
    if minutes > FULL_DAY_CUTOFF_MINUTES:
        return [LeaveSession.afternoon]
    return all_sessions


def min_start_date(now: datetime) -> date:
    """Earliest ``from_date`` a caller should be offered."""
    today = now.date()
    if _minutes_since_midnight(now) > AFTERNOON_CUTOFF_MINUTES:
        return today + timedelta(days=1)
    return today


def windows_overlap(a: Any, b: Any) -> bool:
    """True when two windows' dates intersect and their sessions are not disjoint halves.

    A Full Day window conflicts with anything on its dates; two half days
    conflict only when they are the same half.
    """
    if not (a.from_date <= b.to_date and a.to_date >= b.from_date):
        return False
    if LeaveSession.full_day in (a.session, b.session):
        return True
    return a.session == b.session


# ─────────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────────


def find_conflict(
    candidate: Any,
    existing_records: Iterable[Any],
    exclude_record_id: Optional[uuid.UUID] = None,
) -> Optional[Any]:
    """Return the first non-rejected record overlapping ``candidate``, if any."""
    for record in existing_records:
        if record.status == LeaveStatus.rejected:
            continue
        if exclude_record_id is not None and record.id == exclude_record_id:
            continue
        if windows_overlap(record, candidate):
            return record
    return None


def validate_leave_window(
    candidate: LeaveWindow,
    existing_records: Iterable[Any],
    now: datetime,
    exclude_record_id: Optional[uuid.UUID] = None,
) -> Decimal:
    """Accept ``candidate`` and return its leave value, or raise :class:`LeaveRejected`.

    ``existing_records`` are the user's stored records (anything with
    ``id``, ``from_date``, ``to_date``, ``session`` and ``status``).
    ``exclude_record_id`` skips the record being edited.
    """
    if candidate.to_date < candidate.from_date:
        raise LeaveRejected(
            RejectionReason.ordering_invalid,
            "End date cannot be before start date.",
        )
    if candidate.session in HALF_DAY_SESSIONS and candidate.to_date != candidate.from_date:
        raise LeaveRejected(
            RejectionReason.ordering_invalid,
            f"A {candidate.session.value} leave must start and end on the same date.",
        )

    today = now.date()
    if candidate.from_date < today:
        raise LeaveRejected(
            RejectionReason.past_date,
            "Cannot apply for leave in the past.",
        )

    if candidate.from_date == today and candidate.session not in available_sessions(today, now):
        raise LeaveRejected(
            RejectionReason.session_unavailable,
            f"Cannot apply for {candidate.session.value} at this time. "
            f"Earliest available start date is {min_start_date(now).isoformat()}.",
        )

    conflict = find_conflict(candidate, existing_records, exclude_record_id)
    if conflict is not None:
        raise LeaveRejected(
            RejectionReason.overlap,
            "You have already applied for leave on these dates "
            f"({conflict.from_date.isoformat()} to {conflict.to_date.isoformat()}, "
            f"{LeaveSession(conflict.session).value}).",
        )

    return derive_leave_value(candidate.from_date, candidate.to_date, candidate.session)

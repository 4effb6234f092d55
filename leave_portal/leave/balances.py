"""Leave balance accounting — a projection over approved records, never stored."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from leave_portal.common.constants import NEAR_LIMIT_PERCENT, LeaveStatus


@dataclass(frozen=True)
class LeaveBalance:
    leave_type: str
    limit: Decimal
    used: Decimal
    remaining: Decimal

    @property
    def over_limit(self) -> bool:
        return self.used > self.limit

    @property
    def near_limit(self) -> bool:
        """Usage has reached NEAR_LIMIT_PERCENT of the allowance."""
        return self.used * 100 >= self.limit * NEAR_LIMIT_PERCENT


def compute_balances(
    records: Iterable[Any],
    year: int,
    limits: Mapping[str, Decimal],
) -> dict[str, LeaveBalance]:
    """Used and remaining allowance per leave type for ``year``.

    Only Approved records starting in ``year`` count. ``used`` may exceed
    the limit; ``remaining`` bottoms out at zero.
    """
    used: dict[str, Decimal] = {leave_type: Decimal("0") for leave_type in limits}
    for record in records:
        if record.status != LeaveStatus.approved or record.from_date.year != year:
            continue
        if record.type in used:
            used[record.type] += Decimal(str(record.leave_value or 0))

    return {
        leave_type: LeaveBalance(
            leave_type=leave_type,
            limit=limit,
            used=used[leave_type],
            remaining=max(Decimal("0"), limit - used[leave_type]),
        )
        for leave_type, limit in limits.items()
    }

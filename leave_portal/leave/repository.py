"""Leave record persistence — the four store operations the lifecycle engine relies on."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_portal.common.exceptions import PersistenceException
from leave_portal.common.filters import apply_filters, apply_sorting
from leave_portal.leave.models import LeaveRecord

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-created_at"


class LeaveRepository:
    """Async reads and writes of :class:`LeaveRecord` within one session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, record_id: uuid.UUID) -> Optional[LeaveRecord]:
        try:
            result = await self.db.execute(
                select(LeaveRecord).where(LeaveRecord.id == record_id)
            )
        except SQLAlchemyError as exc:
            logger.exception("Failed to load leave record %s", record_id)
            raise PersistenceException("load the leave request") from exc
        return result.scalars().first()

    async def list_for_user(self, user_id: str) -> Sequence[LeaveRecord]:
        """Every record owned by ``user_id``, newest first."""
        return await self.list_records({"user_id": user_id})

    async def list_records(
        self,
        filters: Optional[dict[str, Any]] = None,
        sort: Optional[str] = DEFAULT_SORT,
    ) -> Sequence[LeaveRecord]:
        """Records matching equality/range ``filters`` (see ``apply_filters``)."""
        query = apply_filters(select(LeaveRecord), LeaveRecord, filters or {})
        query = apply_sorting(query, LeaveRecord, sort)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Failed to list leave records with %s", filters)
            raise PersistenceException("load leave requests") from exc
        return result.scalars().all()

    async def create(self, record: LeaveRecord) -> LeaveRecord:
        now = datetime.now(timezone.utc)
        record.created_at = now
        record.updated_at = now
        try:
            self.db.add(record)
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception("Failed to create leave record for %s", record.user_id)
            raise PersistenceException("save the leave request") from exc
        return record

    async def update(self, record: LeaveRecord) -> LeaveRecord:
        record.updated_at = datetime.now(timezone.utc)
        try:
            await self.db.flush()
        except SQLAlchemyError as exc:
            logger.exception("Failed to update leave record %s", record.id)
            raise PersistenceException("update the leave request") from exc
        return record

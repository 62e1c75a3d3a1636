"""Leave record store — the persistence boundary for leave data.

Every read joins display names in from ``profiles`` with a second,
independent query; names are never stored on the leave row. Any SQLAlchemy
failure is logged and re-raised as ``StoreUnavailableException`` so callers
can keep the state they already hold.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth.models import Profile
from backend.common.audit import record_leave_transition
from backend.common.constants import UNKNOWN_EMPLOYEE, LeaveStatus
from backend.common.exceptions import NotFoundException, StoreUnavailableException
from backend.leave.models import LeaveBalance, LeaveRequest
from backend.leave.schemas import LeaveBalanceOut, LeaveRecord, LeaveRequestCreate

logger = logging.getLogger(__name__)


class LeaveRecordStore:
    """Async leave persistence over a single ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _fail(self, operation: str, exc: SQLAlchemyError) -> StoreUnavailableException:
        """Log ``exc`` and roll the session back to its committed state.

        Returns the ``StoreUnavailableException`` for the caller to raise.
        """
        logger.error("Store operation %s failed: %s", operation, exc)
        await self.db.rollback()
        return StoreUnavailableException(operation)

    async def _execute(self, operation: str, statement: Any):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            raise await self._fail(operation, exc) from exc

    @staticmethod
    def _to_record(row: LeaveRequest, names: dict[uuid.UUID, str]) -> LeaveRecord:
        return LeaveRecord(
            id=row.id,
            employee_id=row.employee_id,
            employee_name=names.get(row.employee_id, UNKNOWN_EMPLOYEE),
            leave_type=row.leave_type,
            start_date=row.start_date,
            end_date=row.end_date,
            reason=row.reason or "",
            status=row.status,
            days_requested=row.days_requested or 0,
            created_at=row.created_at,
            reviewed_by=row.reviewed_by,
            reviewed_at=row.reviewed_at,
        )

    async def _join_names(self, rows: Iterable[LeaveRequest]) -> list[LeaveRecord]:
        rows = list(rows)
        names = await self.resolve_employee_names({r.employee_id for r in rows})
        return [self._to_record(r, names) for r in rows]

    # ─────────────────────────────────────────────────────────────────
    # Names
    # ─────────────────────────────────────────────────────────────────

    async def resolve_employee_names(
        self,
        employee_ids: Iterable[uuid.UUID],
    ) -> dict[uuid.UUID, str]:
        """Map each id to its profile's full name, or "Unknown Employee"."""
        ids = set(employee_ids)
        if not ids:
            return {}
        result = await self._execute(
            "resolve_employee_names",
            select(Profile.user_id, Profile.full_name).where(Profile.user_id.in_(ids)),
        )
        names = {user_id: (full_name or UNKNOWN_EMPLOYEE) for user_id, full_name in result.all()}
        return {i: names.get(i, UNKNOWN_EMPLOYEE) for i in ids}

    async def resolve_employee_name(self, employee_id: uuid.UUID) -> str:
        names = await self.resolve_employee_names([employee_id])
        return names[employee_id]

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def list_leave_records(self) -> list[LeaveRecord]:
        """All leave records, newest-created first."""
        result = await self._execute(
            "list_leave_records",
            select(LeaveRequest).order_by(
                LeaveRequest.created_at.desc(), LeaveRequest.id,
            ),
        )
        return await self._join_names(result.scalars().all())

    async def list_leave_records_for_employee(
        self,
        employee_id: uuid.UUID,
    ) -> list[LeaveRecord]:
        """One employee's leave records, newest-created first."""
        result = await self._execute(
            "list_leave_records_for_employee",
            select(LeaveRequest)
            .where(LeaveRequest.employee_id == employee_id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id),
        )
        return await self._join_names(result.scalars().all())

    async def get_leave_balance(
        self,
        employee_id: uuid.UUID,
    ) -> Optional[LeaveBalanceOut]:
        result = await self._execute(
            "get_leave_balance",
            select(LeaveBalance).where(LeaveBalance.employee_id == employee_id),
        )
        balance = result.scalars().first()
        if balance is None:
            return None
        return LeaveBalanceOut.model_validate(balance)

    # ─────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────

    async def create_leave_request(
        self,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
    ) -> LeaveRecord:
        """Persist a new pending request and return it as a joined record."""
        now = datetime.now(timezone.utc)
        row = LeaveRequest(
            id=uuid.uuid4(),
            employee_id=employee_id,
            leave_type=data.leave_type.value,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
            status=LeaveStatus.pending,
            days_requested=data.days_requested,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(row)
            await self.db.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("create_leave_request", exc) from exc

        logger.info(
            "Leave request %s created for %s (%s, %s..%s)",
            row.id, employee_id, row.leave_type, row.start_date, row.end_date,
        )
        name = await self.resolve_employee_name(employee_id)
        return self._to_record(row, {employee_id: name})

    async def update_status(
        self,
        request_id: uuid.UUID,
        status: LeaveStatus,
        *,
        reviewer_id: Optional[uuid.UUID] = None,
    ) -> datetime:
        """Persist a status change and its audit entry, then commit.

        Returns the review timestamp written to the row, only once the commit
        has succeeded. On failure the session is rolled back, so the row
        reads as it did before the call.
        """
        result = await self._execute(
            "update_status",
            select(LeaveRequest).where(LeaveRequest.id == request_id),
        )
        row = result.scalars().first()
        if row is None:
            raise NotFoundException("LeaveRequest", str(request_id))

        now = datetime.now(timezone.utc)
        old_status = row.status.value
        try:
            row.status = status
            row.reviewed_by = reviewer_id
            row.reviewed_at = now
            row.updated_at = now
            await self.db.flush()
            await record_leave_transition(
                self.db,
                request_id=row.id,
                old_status=old_status,
                new_status=status.value,
                actor_id=reviewer_id,
            )
            await self.db.commit()
        except SQLAlchemyError as exc:
            raise await self._fail("update_status", exc) from exc
        return now

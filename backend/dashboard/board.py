"""In-memory leave board backing a dashboard session.

Holds the last record set fetched successfully, its stats, and the viewed
calendar month. State only changes after a store call has completed; when
one fails the exception propagates and the board keeps what it had.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional, Union

from backend.common.constants import LeaveStatus
from backend.dashboard.schemas import CalendarSummary, LeaveCalendarResponse
from backend.dashboard import service as dashboard_service
from backend.dashboard.service import DashboardService
from backend.leave.schemas import DashboardStats, LeaveRecord, StatusTransitionResult
from backend.leave.service import LeaveService
from backend.leave.store import LeaveRecordStore

logger = logging.getLogger(__name__)


class LeaveBoard:
    """Records, stats and calendar month for one admin or employee view.

    With ``employee_id`` set, the board only ever loads that employee's
    records.
    """

    def __init__(
        self,
        store: LeaveRecordStore,
        *,
        employee_id: Optional[uuid.UUID] = None,
        today: Optional[date] = None,
    ) -> None:
        self.store = store
        self.employee_id = employee_id
        self.today = today or dashboard_service._today()
        self.year = self.today.year
        self.month = self.today.month
        self.records: list[LeaveRecord] = []
        self.stats = DashboardStats()

    def _adopt(self, records: list[LeaveRecord]) -> None:
        self.records = records
        self.stats = LeaveService.compute_stats(records)

    # ── Store-backed ────────────────────────────────────────────────

    async def refresh(self) -> list[LeaveRecord]:
        """Reload from the store. On failure the previous state is kept."""
        if self.employee_id is None:
            records = await self.store.list_leave_records()
        else:
            records = await self.store.list_leave_records_for_employee(self.employee_id)
        self._adopt(records)
        logger.debug("Board refreshed: %d records", len(records))
        return self.records

    async def apply_status_transition(
        self,
        request_id: uuid.UUID,
        new_status: LeaveStatus,
        *,
        reviewer_id: Optional[uuid.UUID] = None,
    ) -> StatusTransitionResult:
        result = await LeaveService.apply_status_transition(
            self.store,
            request_id,
            new_status,
            self.records,
            reviewer_id=reviewer_id,
        )
        if result.applied:
            self.records = result.records
            self.stats = result.stats
        return result

    # ── Views ───────────────────────────────────────────────────────

    def filter_by_status(self, status: Union[LeaveStatus, str]) -> list[LeaveRecord]:
        """Records with ``status``; ``"all"`` returns every record."""
        if status == "all":
            return list(self.records)
        return LeaveService.filter_by_status(self.records, LeaveStatus(status))

    def approved_records(self) -> list[LeaveRecord]:
        return LeaveService.filter_by_status(self.records, LeaveStatus.approved)

    def calendar(self) -> LeaveCalendarResponse:
        return DashboardService.build_calendar(
            self.year, self.month, self.approved_records(), today=self.today,
        )

    def calendar_summary(self) -> CalendarSummary:
        return DashboardService.summarize_calendar(self.approved_records())

    # ── Month navigation ────────────────────────────────────────────

    def _move(self, step: int) -> tuple[int, int]:
        year, month = DashboardService.shift_month(self.year, self.month, step)
        DashboardService.check_month(year, month)
        self.year, self.month = year, month
        return self.year, self.month

    def next_month(self) -> tuple[int, int]:
        return self._move(1)

    def previous_month(self) -> tuple[int, int]:
        return self._move(-1)

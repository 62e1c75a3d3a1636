"""Dashboard service — calendar membership, calendar summary, dashboard reads.

The calendar engine is pure: it works on already-fetched ``LeaveRecord``
lists and never touches the store. Async methods fetch through
``LeaveRecordStore`` first and compute afterwards.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Optional, Sequence

from backend.common.constants import (
    LEAVE_TYPE_LABELS,
    LEAVE_TYPE_PALETTE,
    MONTH_NAMES,
    UNKNOWN_LEAVE_TYPE_COLOR,
    LeaveStatus,
)
from backend.common.exceptions import ValidationException
from backend.config import settings
from backend.dashboard.schemas import (
    CalendarDay,
    CalendarSummary,
    LeaveCalendarResponse,
    LegendItem,
    MonthRef,
)
from backend.leave.schemas import LeaveRecord
from backend.leave.service import LeaveService
from backend.leave.store import LeaveRecordStore


def _today() -> date:
    """Current server date; patched in tests."""
    return date.today()


def _sunday_first(d: date) -> int:
    return (d.weekday() + 1) % 7


class DashboardService:
    """Calendar engine and dashboard aggregation."""

    # ═════════════════════════════════════════════════════════════════
    # Month arithmetic
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    def days_in_month(year: int, month: int) -> int:
        return calendar.monthrange(year, month)[1]

    @staticmethod
    def shift_month(year: int, month: int, step: int) -> tuple[int, int]:
        """Move ``step`` months forward (negative: backward), rolling the year."""
        year_out, month_index = divmod(year * 12 + (month - 1) + step, 12)
        return year_out, month_index + 1

    @staticmethod
    def check_month(year: int, month: int) -> None:
        """Raise a 422 for a month outside years 1..9999 (the ``date`` range)."""
        if not date.min.year <= year <= date.max.year:
            raise ValidationException(
                {"year": [f"{year}-{month:02d} is outside the supported calendar range."]}
            )

    # ═════════════════════════════════════════════════════════════════
    # Membership
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    def records_for_day(
        day: date,
        records: Sequence[LeaveRecord],
    ) -> list[LeaveRecord]:
        """Linear scan: records whose inclusive range contains ``day``."""
        return [r for r in records if r.covers(day)]

    @staticmethod
    def compute_calendar_grid(
        year: int,
        month: int,
        approved_records: Sequence[LeaveRecord],
        *,
        today: Optional[date] = None,
        visible: Optional[int] = None,
    ) -> list[CalendarDay]:
        """One ``CalendarDay`` per day of the month.

        Sweep over records sorted by start date, keeping an active set, so
        each record is added and dropped once. Within a day, records keep
        their input order, matching ``records_for_day``. Records that are not
        approved never appear.
        """
        if visible is None:
            visible = settings.CALENDAR_VISIBLE_ENTRIES
        last_day = DashboardService.days_in_month(year, month)
        first = date(year, month, 1)
        last = date(year, month, last_day)

        queue = sorted(
            (
                (index, record)
                for index, record in enumerate(approved_records)
                if record.status == LeaveStatus.approved
                and record.start_date <= last
                and record.end_date >= first
            ),
            key=lambda item: (item[1].start_date, item[0]),
        )

        active: dict[int, LeaveRecord] = {}
        cursor = 0
        days: list[CalendarDay] = []
        for day_number in range(1, last_day + 1):
            current = date(year, month, day_number)
            while cursor < len(queue) and queue[cursor][1].start_date <= current:
                index, record = queue[cursor]
                active[index] = record
                cursor += 1
            for index in [i for i, r in active.items() if r.end_date < current]:
                del active[index]

            members = [active[i] for i in sorted(active)]
            days.append(
                CalendarDay(
                    day=day_number,
                    calendar_date=current,
                    weekday=_sunday_first(current),
                    is_today=current == today,
                    records=members,
                    visible=members[:visible],
                    overflow=max(0, len(members) - visible),
                )
            )
        return days

    # ═════════════════════════════════════════════════════════════════
    # Summary / palette
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    def summarize_calendar(records: Sequence[LeaveRecord]) -> CalendarSummary:
        # Distinct by display name, not employee_id: namesakes count once.
        return CalendarSummary(
            approved_leaves=len(records),
            total_days=sum(r.days_requested for r in records),
            employees_on_leave=len({r.employee_name for r in records}),
        )

    @staticmethod
    def leave_type_color(leave_type: str) -> str:
        return LEAVE_TYPE_PALETTE.get(leave_type, UNKNOWN_LEAVE_TYPE_COLOR)

    @staticmethod
    def legend() -> list[LegendItem]:
        return [
            LegendItem(leave_type=code, label=LEAVE_TYPE_LABELS[code], color=color)
            for code, color in LEAVE_TYPE_PALETTE.items()
        ]

    @staticmethod
    def build_calendar(
        year: int,
        month: int,
        approved_records: Sequence[LeaveRecord],
        *,
        today: Optional[date] = None,
    ) -> LeaveCalendarResponse:
        """Assemble the full calendar view for one month."""
        DashboardService.check_month(year, month)
        days = DashboardService.compute_calendar_grid(
            year, month, approved_records, today=today,
        )
        prev_year, prev_month = DashboardService.shift_month(year, month, -1)
        next_year, next_month = DashboardService.shift_month(year, month, 1)
        return LeaveCalendarResponse(
            year=year,
            month=month,
            month_name=MONTH_NAMES[month - 1],
            leading_blanks=_sunday_first(date(year, month, 1)),
            days=days,
            summary=DashboardService.summarize_calendar(approved_records),
            legend=DashboardService.legend(),
            leave_type_colors={
                r.leave_type: DashboardService.leave_type_color(r.leave_type)
                for r in approved_records
            },
            previous=MonthRef(year=prev_year, month=prev_month),
            next=MonthRef(year=next_year, month=next_month),
        )

    # ═════════════════════════════════════════════════════════════════
    # Store-backed reads
    # ═════════════════════════════════════════════════════════════════

    @staticmethod
    async def get_leave_calendar(
        store: LeaveRecordStore,
        year: Optional[int] = None,
        month: Optional[int] = None,
        *,
        step: int = 0,
    ) -> LeaveCalendarResponse:
        """Calendar of approved leave for a month (default: current month),
        after moving ``step`` months from it."""
        today = _today()
        year = year or today.year
        month = month or today.month
        year, month = DashboardService.shift_month(year, month, step)
        DashboardService.check_month(year, month)

        records = await store.list_leave_records()
        approved = LeaveService.filter_by_status(records, LeaveStatus.approved)
        return DashboardService.build_calendar(year, month, approved, today=today)


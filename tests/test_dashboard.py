"""Dashboard module tests — calendar membership grid, calendar summary,
month navigation, the in-memory leave board, and the dashboard endpoints.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.common.constants import (
    LEAVE_TYPE_PALETTE,
    UNKNOWN_LEAVE_TYPE_COLOR,
    LeaveStatus,
    LeaveType,
)
from backend.common.exceptions import StoreUnavailableException, ValidationException
from backend.dashboard.board import LeaveBoard
from backend.dashboard.service import DashboardService
from backend.leave.models import LeaveBalance, LeaveRequest
from backend.leave.service import LeaveService
from backend.leave.store import LeaveRecordStore
from tests.conftest import _make_leave_request, _make_record


# ═════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════


async def _seed_leave(db: AsyncSession, employee_id: uuid.UUID, **overrides) -> LeaveRequest:
    row = LeaveRequest(**_make_leave_request(employee_id=employee_id, **overrides))
    db.add(row)
    await db.commit()
    return row


def _names_by_day(days) -> dict[int, list[str]]:
    return {d.day: [r.employee_name for r in d.records] for d in days if d.records}


# ═════════════════════════════════════════════════════════════════════
# 1. Calendar membership — pure logic (no DB)
# ═════════════════════════════════════════════════════════════════════


class TestCalendarGrid:

    def test_march_2024_scenario(self):
        alice = _make_record(
            employee_name="Alice",
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 3),
            status=LeaveStatus.approved,
        )
        bob = _make_record(
            employee_name="Bob",
            start_date=date(2024, 3, 5),
            end_date=date(2024, 3, 5),
            status=LeaveStatus.pending,
            days_requested=1,
        )
        records = [alice, bob]

        stats = LeaveService.compute_stats(records)
        assert (stats.total, stats.pending, stats.approved, stats.rejected) == (2, 1, 1, 0)

        approved = LeaveService.filter_by_status(records, LeaveStatus.approved)
        days = DashboardService.compute_calendar_grid(2024, 3, approved)

        assert len(days) == 31
        assert _names_by_day(days) == {1: ["Alice"], 2: ["Alice"], 3: ["Alice"]}

    def test_non_approved_never_shown(self):
        pending = _make_record(status=LeaveStatus.pending)
        days = DashboardService.compute_calendar_grid(2024, 3, [pending])
        assert _names_by_day(days) == {}

    def test_inclusive_single_day(self):
        record = _make_record(start_date=date(2024, 3, 15), end_date=date(2024, 3, 15))
        days = DashboardService.compute_calendar_grid(2024, 3, [record])
        assert list(_names_by_day(days)) == [15]

    def test_range_crossing_month_boundary(self):
        record = _make_record(start_date=date(2024, 1, 30), end_date=date(2024, 2, 2))

        january = DashboardService.compute_calendar_grid(2024, 1, [record])
        february = DashboardService.compute_calendar_grid(2024, 2, [record])

        assert list(_names_by_day(january)) == [30, 31]
        assert list(_names_by_day(february)) == [1, 2]
        assert len(february) == 29

    def test_range_spanning_whole_month(self):
        record = _make_record(start_date=date(2023, 12, 20), end_date=date(2024, 3, 5))
        days = DashboardService.compute_calendar_grid(2024, 2, [record])
        assert all(len(d.records) == 1 for d in days)

    def test_matches_linear_scan(self):
        records = [
            _make_record(employee_name="A", start_date=date(2024, 3, 1), end_date=date(2024, 3, 10)),
            _make_record(employee_name="B", start_date=date(2024, 2, 25), end_date=date(2024, 3, 2)),
            _make_record(employee_name="C", start_date=date(2024, 3, 5), end_date=date(2024, 3, 5)),
            _make_record(employee_name="D", start_date=date(2024, 3, 3), end_date=date(2024, 4, 2)),
            _make_record(employee_name="E", start_date=date(2024, 3, 8), end_date=date(2024, 3, 9)),
            _make_record(employee_name="F", start_date=date(2024, 4, 1), end_date=date(2024, 4, 3)),
        ]
        days = DashboardService.compute_calendar_grid(2024, 3, records)
        for d in days:
            assert d.records == DashboardService.records_for_day(d.calendar_date, records)

    def test_overflow_beyond_visible(self):
        records = [
            _make_record(employee_name=name, start_date=date(2024, 3, 4), end_date=date(2024, 3, 4))
            for name in ("A", "B", "C", "D")
        ]
        days = DashboardService.compute_calendar_grid(2024, 3, records, visible=2)
        assert [r.employee_name for r in days[3].visible] == ["A", "B"]
        assert len(days[3].records) == 4
        assert days[3].overflow == 2
        assert days[4].visible == []
        assert days[4].overflow == 0

    def test_visible_defaults_to_two_entries(self):
        records = [
            _make_record(employee_name=name, start_date=date(2024, 3, 4), end_date=date(2024, 3, 4))
            for name in ("A", "B", "C")
        ]
        day = DashboardService.compute_calendar_grid(2024, 3, records)[3]
        assert [r.employee_name for r in day.visible] == ["A", "B"]
        assert day.overflow == 1

    def test_weekday_and_today(self):
        days = DashboardService.compute_calendar_grid(
            2024, 3, [], today=date(2024, 3, 10),
        )
        # 2024-03-01 is a Friday, 2024-03-03 a Sunday
        assert days[0].weekday == 5
        assert days[2].weekday == 0
        assert [d.day for d in days if d.is_today] == [10]


# ═════════════════════════════════════════════════════════════════════
# 2. Summary / palette / month navigation
# ═════════════════════════════════════════════════════════════════════


class TestCalendarSummary:

    def test_summary(self):
        records = [
            _make_record(employee_name="Alice", days_requested=3),
            _make_record(employee_name="Bob", days_requested=1),
            _make_record(employee_name="Alice", days_requested=2),
        ]
        summary = DashboardService.summarize_calendar(records)
        assert summary.approved_leaves == 3
        assert summary.total_days == 6
        assert summary.employees_on_leave == 2

    def test_namesakes_counted_once(self):
        records = [
            _make_record(employee_name="Sam Lee", employee_id=uuid.uuid4()),
            _make_record(employee_name="Sam Lee", employee_id=uuid.uuid4()),
        ]
        assert DashboardService.summarize_calendar(records).employees_on_leave == 1

    def test_empty_summary(self):
        summary = DashboardService.summarize_calendar([])
        assert (summary.approved_leaves, summary.total_days, summary.employees_on_leave) == (0, 0, 0)

    def test_leave_type_color(self):
        assert DashboardService.leave_type_color("sick_leave") == "destructive"
        assert DashboardService.leave_type_color(LeaveType.other.value) == UNKNOWN_LEAVE_TYPE_COLOR
        assert DashboardService.leave_type_color("bereavement_leave") == UNKNOWN_LEAVE_TYPE_COLOR

    def test_legend_covers_palette(self):
        legend = DashboardService.legend()
        assert {item.leave_type: item.color for item in legend} == LEAVE_TYPE_PALETTE
        assert legend[0].label == "Annual Leave"


class TestShiftMonth:

    @pytest.mark.parametrize(
        "year, month, step, expected",
        [
            (2024, 12, 1, (2025, 1)),
            (2024, 1, -1, (2023, 12)),
            (2024, 6, 1, (2024, 7)),
            (2024, 6, -1, (2024, 5)),
            (2024, 11, 14, (2026, 1)),
        ],
    )
    def test_shift(self, year, month, step, expected):
        assert DashboardService.shift_month(year, month, step) == expected

    def test_next_then_previous_is_identity(self):
        for month in range(1, 13):
            forward = DashboardService.shift_month(2024, month, 1)
            assert DashboardService.shift_month(*forward, -1) == (2024, month)

    def test_check_month_bounds(self):
        DashboardService.check_month(1, 1)
        DashboardService.check_month(9999, 12)
        for year, month in [(10000, 1), (0, 12)]:
            with pytest.raises(ValidationException) as exc_info:
                DashboardService.check_month(year, month)
            assert "year" in exc_info.value.errors

    def test_build_calendar_navigation(self):
        view = DashboardService.build_calendar(2024, 12, [])
        assert view.month_name == "December"
        assert (view.previous.year, view.previous.month) == (2024, 11)
        assert (view.next.year, view.next.month) == (2025, 1)
        # 2024-12-01 is a Sunday
        assert view.leading_blanks == 0


# ═════════════════════════════════════════════════════════════════════
# 3. LeaveBoard — state survives store failures
# ═════════════════════════════════════════════════════════════════════


class TestLeaveBoard:

    async def test_refresh_failure_keeps_state(self):
        alice = _make_record(
            employee_name="Alice",
            start_date=date(2024, 3, 1),
            end_date=date(2024, 3, 3),
        )
        store = AsyncMock(spec=LeaveRecordStore)
        store.list_leave_records = AsyncMock(return_value=[alice])
        board = LeaveBoard(store, today=date(2024, 3, 15))

        await board.refresh()
        before_grid = board.calendar().days

        store.list_leave_records.side_effect = StoreUnavailableException("list_leave_records")
        with pytest.raises(StoreUnavailableException):
            await board.refresh()

        assert board.records == [alice]
        assert board.stats.approved == 1
        assert board.calendar().days == before_grid
        assert board.calendar_summary().employees_on_leave == 1

    async def test_employee_board_uses_employee_listing(self):
        employee_id = uuid.uuid4()
        store = AsyncMock(spec=LeaveRecordStore)
        store.list_leave_records_for_employee = AsyncMock(return_value=[])
        board = LeaveBoard(store, employee_id=employee_id, today=date(2024, 3, 15))

        await board.refresh()

        store.list_leave_records_for_employee.assert_awaited_once_with(employee_id)
        store.list_leave_records.assert_not_called()

    async def test_transition_updates_board(self):
        pending = _make_record(status=LeaveStatus.pending)
        store = AsyncMock(spec=LeaveRecordStore)
        store.list_leave_records = AsyncMock(return_value=[pending])
        store.update_status = AsyncMock(return_value=None)
        board = LeaveBoard(store, today=date(2024, 3, 15))
        await board.refresh()

        await board.apply_status_transition(pending.id, LeaveStatus.approved)

        assert board.stats.approved == 1
        assert board.approved_records()[0].id == pending.id

    async def test_transition_noop_on_already_approved(self):
        approved = _make_record(status=LeaveStatus.approved)
        store = AsyncMock(spec=LeaveRecordStore)
        store.list_leave_records = AsyncMock(return_value=[approved])
        board = LeaveBoard(store, today=date(2024, 3, 15))
        await board.refresh()
        stats_before = board.stats

        result = await board.apply_status_transition(approved.id, LeaveStatus.rejected)

        assert result.applied is False
        assert board.stats == stats_before
        store.update_status.assert_not_called()

    def test_month_navigation(self):
        board = LeaveBoard(AsyncMock(spec=LeaveRecordStore), today=date(2024, 12, 5))
        assert board.next_month() == (2025, 1)
        assert board.previous_month() == (2024, 12)
        assert board.previous_month() == (2024, 11)

    def test_navigation_stops_at_calendar_edge(self):
        board = LeaveBoard(AsyncMock(spec=LeaveRecordStore), today=date(9999, 12, 5))
        with pytest.raises(ValidationException):
            board.next_month()
        assert (board.year, board.month) == (9999, 12)
        assert board.calendar().month_name == "December"

    async def test_failed_commit_keeps_store_and_board_pending(self, db, test_employee):
        row = await _seed_leave(db, test_employee["user_id"])
        board = LeaveBoard(LeaveRecordStore(db), today=date(2024, 3, 15))
        await board.refresh()
        failure = OperationalError("COMMIT", {}, Exception("connection reset"))

        with patch.object(db, "commit", AsyncMock(side_effect=failure)):
            with pytest.raises(StoreUnavailableException):
                await board.apply_status_transition(row.id, LeaveStatus.approved)

        assert board.stats.pending == 1
        await board.refresh()
        assert (board.stats.pending, board.stats.approved) == (1, 0)
        assert board.records[0].status == LeaveStatus.pending

    def test_filter_all(self):
        board = LeaveBoard(AsyncMock(spec=LeaveRecordStore), today=date(2024, 3, 1))
        board.records = [
            _make_record(status=LeaveStatus.pending),
            _make_record(status=LeaveStatus.rejected),
        ]
        assert len(board.filter_by_status("all")) == 2
        assert len(board.filter_by_status("rejected")) == 1


# ═════════════════════════════════════════════════════════════════════
# 4. API endpoints
# ═════════════════════════════════════════════════════════════════════


class TestDashboardAPI:

    async def test_calendar(self, client, db, auth_headers, test_employee):
        emp = test_employee["user_id"]
        await _seed_leave(
            db, emp, status=LeaveStatus.approved,
            start_date=date(2024, 3, 1), end_date=date(2024, 3, 3), days_requested=3,
        )
        await _seed_leave(
            db, emp, status=LeaveStatus.pending,
            start_date=date(2024, 3, 5), end_date=date(2024, 3, 5), days_requested=1,
        )

        with patch("backend.dashboard.service._today", return_value=date(2024, 3, 2)):
            resp = await client.get(
                "/api/v1/dashboard/calendar",
                params={"year": 2024, "month": 3},
                headers=auth_headers,
            )

        assert resp.status_code == 200
        body = resp.json()
        assert body["month_name"] == "March"
        assert body["leading_blanks"] == 5
        on_leave = [d["day"] for d in body["days"] if d["records"]]
        assert on_leave == [1, 2, 3]
        assert body["days"][0]["records"][0]["employee_name"] == "Alice Employee"
        assert body["days"][0]["visible"][0]["employee_name"] == "Alice Employee"
        assert body["days"][1]["is_today"] is True
        assert body["summary"] == {"approved_leaves": 1, "total_days": 3, "employees_on_leave": 1}
        assert body["leave_type_colors"] == {"annual_leave": "primary"}

    async def test_calendar_step_rolls_year(self, client, auth_headers):
        resp = await client.get(
            "/api/v1/dashboard/calendar",
            params={"year": 2024, "month": 12, "step": 1},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert (resp.json()["year"], resp.json()["month"]) == (2025, 1)

    async def test_calendar_defaults_to_current_month(self, client, auth_headers):
        with patch("backend.dashboard.service._today", return_value=date(2025, 1, 20)):
            resp = await client.get(
                "/api/v1/dashboard/calendar", params={"step": -1}, headers=auth_headers,
            )
        assert (resp.json()["year"], resp.json()["month"]) == (2024, 12)

    async def test_calendar_rejects_large_step(self, client, auth_headers):
        resp = await client.get(
            "/api/v1/dashboard/calendar", params={"step": 2}, headers=auth_headers,
        )
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "year, month, step",
        [(9999, 12, 1), (1, 1, -1)],
    )
    async def test_calendar_step_past_supported_years(
        self, client, auth_headers, year, month, step,
    ):
        resp = await client.get(
            "/api/v1/dashboard/calendar",
            params={"year": year, "month": month, "step": step},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert "year" in resp.json()["errors"]

    async def test_calendar_requires_auth(self, client):
        resp = await client.get("/api/v1/dashboard/calendar")
        assert resp.status_code == 401

    async def test_admin_dashboard(self, client, db, admin_headers, test_employee):
        emp = test_employee["user_id"]
        await _seed_leave(db, emp, status=LeaveStatus.pending)
        await _seed_leave(db, emp, status=LeaveStatus.approved)

        resp = await client.get("/api/v1/dashboard/admin", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["records"]) == 2
        assert body["stats"]["pending"] == 1
        assert body["stats"]["approved"] == 1

    async def test_admin_dashboard_forbidden(self, client, auth_headers):
        resp = await client.get("/api/v1/dashboard/admin", headers=auth_headers)
        assert resp.status_code == 403

    async def test_employee_dashboard(self, client, db, auth_headers, test_employee):
        emp = test_employee["user_id"]
        await _seed_leave(db, emp)
        await _seed_leave(db, uuid.uuid4())
        db.add(LeaveBalance(
            id=uuid.uuid4(), employee_id=emp,
            annual_leave=8, sick_leave=5, personal_leave=2,
            updated_at=datetime.now(timezone.utc),
        ))
        await db.commit()

        resp = await client.get("/api/v1/dashboard/employee", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert len(body["records"]) == 1
        assert body["stats"]["total"] == 1
        assert body["balance"]["annual_leave"] == 8

    async def test_store_failure_is_503(self, client, admin_headers):
        with patch.object(
            LeaveRecordStore,
            "list_leave_records",
            AsyncMock(side_effect=StoreUnavailableException("list_leave_records")),
        ):
            resp = await client.get("/api/v1/dashboard/admin", headers=admin_headers)
        assert resp.status_code == 503
        assert resp.json()["status"] == 503

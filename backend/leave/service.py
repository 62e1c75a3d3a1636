"""Leave service layer — status aggregation, status transitions, applications.

Business logic:
  - Request counts by status, always recomputed from the full record set
  - Admin approve / reject: persisted first, applied to the in-memory set
    only after the store confirms
  - Leave application (new pending request)
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from backend.common.constants import (
    TRANSITION_TARGETS,
    LeaveStatus,
    TransitionOutcome,
)
from backend.common.exceptions import ValidationException
from backend.leave.schemas import (
    DashboardStats,
    LeaveRecord,
    LeaveRequestCreate,
    LeaveRequestsResponse,
    StatusTransitionResult,
)
from backend.leave.store import LeaveRecordStore

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Leave operations: stats, transitions, applications, listings."""

    # ─────────────────────────────────────────────────────────────────
    # Status Aggregation
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def compute_stats(records: Sequence[LeaveRecord]) -> DashboardStats:
        """Count records per status. ``total`` is the sequence length."""
        stats = DashboardStats(total=len(records))
        for record in records:
            if record.status == LeaveStatus.pending:
                stats.pending += 1
            elif record.status == LeaveStatus.approved:
                stats.approved += 1
            elif record.status == LeaveStatus.rejected:
                stats.rejected += 1
        return stats

    @staticmethod
    def filter_by_status(
        records: Sequence[LeaveRecord],
        status: Optional[LeaveStatus],
    ) -> list[LeaveRecord]:
        """Records with the given status; ``None`` keeps everything."""
        if status is None:
            return list(records)
        return [r for r in records if r.status == status]

    # ─────────────────────────────────────────────────────────────────
    # Status Transition
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _unchanged(
        records: Sequence[LeaveRecord],
        request_id: uuid.UUID,
        new_status: LeaveStatus,
        outcome: TransitionOutcome,
    ) -> StatusTransitionResult:
        return StatusTransitionResult(
            records=list(records),
            stats=LeaveService.compute_stats(records),
            applied=False,
            outcome=outcome,
            request_id=request_id,
            status=new_status,
        )

    @staticmethod
    async def apply_status_transition(
        store: LeaveRecordStore,
        request_id: uuid.UUID,
        new_status: LeaveStatus,
        current_records: Sequence[LeaveRecord],
        *,
        reviewer_id: Optional[uuid.UUID] = None,
    ) -> StatusTransitionResult:
        """Move a pending request to approved / rejected.

        Unknown ids and non-pending records are no-ops (nothing is written).
        Otherwise the store update is awaited first and the matching record
        is replaced only after it succeeds; a store failure propagates and
        ``current_records`` is left untouched.
        """
        if new_status not in TRANSITION_TARGETS:
            raise ValidationException(
                {"status": [f"Cannot transition a request to '{new_status.value}'."]}
            )

        target = next((r for r in current_records if r.id == request_id), None)
        if target is None:
            logger.warning("Transition to %s ignored: request %s not loaded", new_status.value, request_id)
            return LeaveService._unchanged(
                current_records, request_id, new_status, TransitionOutcome.not_found,
            )

        if target.status != LeaveStatus.pending:
            logger.warning(
                "Transition to %s ignored: request %s is already %s",
                new_status.value, request_id, target.status.value,
            )
            return LeaveService._unchanged(
                current_records, request_id, new_status, TransitionOutcome.invalid_transition,
            )

        reviewed_at = await store.update_status(request_id, new_status, reviewer_id=reviewer_id)

        review = {"status": new_status, "reviewed_by": reviewer_id, "reviewed_at": reviewed_at}
        updated = [
            r.model_copy(update=review) if r.id == request_id else r
            for r in current_records
        ]
        logger.info("Leave request %s %s by %s", request_id, new_status.value, reviewer_id)
        return StatusTransitionResult(
            records=updated,
            stats=LeaveService.compute_stats(updated),
            applied=True,
            outcome=TransitionOutcome.applied,
            request_id=request_id,
            status=new_status,
        )

    # ─────────────────────────────────────────────────────────────────
    # Apply / List
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        store: LeaveRecordStore,
        employee_id: uuid.UUID,
        data: LeaveRequestCreate,
    ) -> LeaveRecord:
        """Submit a new leave request; it always starts as pending."""
        return await store.create_leave_request(employee_id, data)

    @staticmethod
    async def get_leave_requests(
        store: LeaveRecordStore,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> LeaveRequestsResponse:
        """All requests (newest first), optionally filtered by status.

        Stats are always computed over the unfiltered set.
        """
        records = await store.list_leave_records()
        return LeaveRequestsResponse(
            data=LeaveService.filter_by_status(records, status),
            stats=LeaveService.compute_stats(records),
            status_filter=status.value if status else "all",
        )

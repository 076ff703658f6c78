from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Iterable, Union

from ..common.validators import require_period, require_positive_int
from ..core.enums import SnapshotStatus
from ..core.exceptions import DomainError, InvalidTransition
from ..snapshots.store import SnapshotStore
from .model import ApprovalEntry, BatchResult, EntryOutcome

logger = logging.getLogger(__name__)


class ApprovalCoordinator:
    def __init__(self, snapshots: SnapshotStore):
        self._snapshots = snapshots

    def approve(self, *, user_id: int, year: int, month: int, approver_id: int) -> bool:
        """calculated -> approved; already approved is a no-op success."""
        approver_id = require_positive_int(approver_id, "approver_id")
        user_id = require_positive_int(user_id, "user_id")
        year, month = require_period(year, month)

        snapshot = self._snapshots.require(user_id, year, month)
        if snapshot.status == SnapshotStatus.APPROVED:
            return True
        if snapshot.status == SnapshotStatus.PAID:
            raise InvalidTransition(f"Snapshot {snapshot.month_label} for user {user_id} is already paid")

        try:
            self._snapshots.transition(
                user_id,
                year,
                month,
                SnapshotStatus.CALCULATED,
                SnapshotStatus.APPROVED,
                actor_id=approver_id,
            )
        except InvalidTransition:
            # A concurrent approver won the compare-and-swap; that is still approval.
            latest = self._snapshots.require(user_id, year, month)
            if latest.status == SnapshotStatus.APPROVED:
                return True
            raise

        logger.info("User %s approved snapshot %s for user %s", approver_id, snapshot.month_label, user_id)
        return True

    def bulk_approve(
        self,
        entries: Iterable[Union[ApprovalEntry, Mapping]],
        *,
        approver_id: int,
    ) -> BatchResult:
        """Approve each entry independently; bad rows are skipped, never fatal."""
        approver_id = require_positive_int(approver_id, "approver_id")

        outcomes: list[EntryOutcome] = []
        for raw in entries:
            if isinstance(raw, ApprovalEntry):
                entry = raw
            elif isinstance(raw, Mapping):
                entry = ApprovalEntry.from_mapping(raw)
            else:
                entry = ApprovalEntry()
                outcomes.append(EntryOutcome(entry=entry, ok=False, error=f"malformed entry: {raw!r}"))
                continue
            try:
                self.approve(
                    user_id=entry.user_id,
                    year=entry.year,
                    month=entry.month,
                    approver_id=approver_id,
                )
            except DomainError as e:
                logger.warning("Skipped bulk approval entry %s: %s", entry, e)
                outcomes.append(EntryOutcome(entry=entry, ok=False, error=str(e)))
                continue
            except Exception as exc:  # noqa: BLE001
                logger.exception("Bulk approval entry %s failed", entry)
                outcomes.append(EntryOutcome(entry=entry, ok=False, error=f"approval failed: {exc}"))
                continue
            outcomes.append(EntryOutcome(entry=entry, ok=True))

        result = BatchResult(outcomes=tuple(outcomes))
        logger.info(
            "Bulk approval by user %s: %d approved, %d skipped",
            approver_id,
            result.approved_count,
            len(result.skipped),
        )
        return result

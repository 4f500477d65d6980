"""Pending changes - uncommitted time/status edits awaiting a batch save"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from ...shared.timeutils import calendar_zone, to_utc_naive


@dataclass(frozen=True)
class PendingChange:
    appointment_id: int
    new_datetime: datetime
    status: Optional[str] = None

    def to_payload(self, zone: Optional[ZoneInfo] = None) -> dict:
        """Partial-update body for the record store (wall-clock time sent as UTC)"""
        scheduled = to_utc_naive(self.new_datetime, zone or calendar_zone())
        payload = {"agentScheduledDateTime": scheduled.isoformat() + "Z"}
        if self.status is not None:
            payload["status"] = self.status
        return payload


class ChangeBatch:
    """
    Insertion-ordered pending changes, at most one per appointment.

    Recording a change for an appointment that already has one replaces it in
    place, so the batch is still applied in first-touched order.
    """

    def __init__(self):
        self._changes: dict[int, PendingChange] = {}

    def record_move(self, appointment_id: int, new_datetime: datetime) -> PendingChange:
        """Latest destination wins; a status chosen earlier is kept"""
        previous = self._changes.get(appointment_id)
        # Not a full replacement: a move must not undo an earlier cancel or confirm
        status = previous.status if previous else None
        change = PendingChange(appointment_id, new_datetime, status)
        self._changes[appointment_id] = change
        return change

    def record_status(self, appointment_id: int, start: datetime, status: str) -> PendingChange:
        previous = self._changes.get(appointment_id)
        if previous:
            change = replace(previous, status=status)
        else:
            change = PendingChange(appointment_id, start, status)
        self._changes[appointment_id] = change
        return change

    def get(self, appointment_id: int) -> Optional[PendingChange]:
        return self._changes.get(appointment_id)

    def discard(self, appointment_id: int, expected: Optional[PendingChange] = None) -> bool:
        """
        Drop the change for ``appointment_id``.

        With ``expected``, only drop it if it is still that exact change (not a
        newer one recorded in the meantime).
        """
        current = self._changes.get(appointment_id)
        if current is None or (expected is not None and current is not expected):
            return False
        del self._changes[appointment_id]
        return True

    def snapshot(self) -> list[PendingChange]:
        return list(self._changes.values())

    def clear(self) -> None:
        self._changes.clear()

    def __len__(self) -> int:
        return len(self._changes)

    def __iter__(self) -> Iterator[PendingChange]:
        return iter(list(self._changes.values()))

    def __contains__(self, appointment_id: object) -> bool:
        return appointment_id in self._changes

    def __bool__(self) -> bool:
        return bool(self._changes)

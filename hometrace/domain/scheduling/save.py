"""
Batch save of pending calendar changes

Writes are issued one appointment at a time, in the order the changes were
first recorded. A failed write is reported and left in the batch for the next
save; it never stops the rest of the batch.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import StoreError, StoreUnavailableError
from .session import CalendarSession
from .store import AppointmentStore, UpdateOutcome

logger = logging.getLogger(__name__)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


@dataclass(frozen=True)
class SaveSummary:
    attempted: bool = True
    appointments_updated: int = 0
    notifications_sent: int = 0
    failed_ids: tuple[int, ...] = ()

    @property
    def failed(self) -> int:
        return len(self.failed_ids)

    @property
    def success(self) -> bool:
        return self.attempted and not self.failed_ids

    @property
    def message(self) -> str:
        if not self.attempted:
            return "Failed to save changes"
        if not (self.appointments_updated or self.failed_ids):
            return "No changes to save"

        message = f"{_plural(self.appointments_updated, 'appointment')} updated successfully"
        if self.notifications_sent > 0:
            customers = "customers" if self.notifications_sent > 1 else "customer"
            message += f" and {_plural(self.notifications_sent, 'proposal email')} sent to {customers}"
        if self.failed_ids:
            message += f"; {_plural(self.failed, 'update')} failed"
        return message


class SaveCoordinator:
    def __init__(self, session: CalendarSession, store: AppointmentStore):
        self.session = session
        self.store = store

    async def save(self, refresh: bool = True) -> Optional[SaveSummary]:
        """
        Apply every pending change to the store.

        Returns None without doing anything while another save is running.
        With ``refresh=False`` the working copy is not reloaded afterwards.
        """
        session = self.session
        if session.is_saving:
            logger.warning("⚠️ Save already in progress, ignoring request")
            return None

        batch = session.changes.snapshot()
        if not batch:
            return SaveSummary()

        session.is_saving = True
        try:
            outcomes: list[UpdateOutcome] = []
            failed: list[int] = []
            unavailable = 0

            for change in batch:
                try:
                    outcome = await self.store.update(
                        change.appointment_id, change.to_payload(session.zone)
                    )
                except StoreError as e:
                    logger.error(f"❌ Failed to update appointment {change.appointment_id}: {e}")
                    failed.append(change.appointment_id)
                    if isinstance(e, StoreUnavailableError):
                        unavailable += 1
                    continue

                outcomes.append(outcome)
                session.changes.discard(change.appointment_id, expected=change)
                logger.info(
                    f"✅ Appointment {change.appointment_id} updated"
                    f"{' (proposal email sent)' if outcome.notification_sent else ''}"
                )

            summary = SaveSummary(
                attempted=unavailable < len(batch),
                appointments_updated=len(outcomes),
                notifications_sent=sum(1 for o in outcomes if o.notification_sent),
                failed_ids=tuple(failed),
            )
            if summary.attempted:
                session.staging.clear()
            if refresh:
                await self._refresh(outcomes)
        finally:
            session.is_saving = False

        logger.info(f"💾 {summary.message}")
        return summary

    async def _refresh(self, outcomes: list[UpdateOutcome]) -> None:
        """Reload the visible week from the store, falling back to the write results"""
        updated = {o.appointment_id: o.appointment for o in outcomes if o.appointment is not None}
        appointments = [updated.get(a.id, a) for a in self.session.appointments]

        try:
            grid = self.session.grid
            appointments = await self.store.fetch_window(grid.anchor, grid.end)
        except StoreError as e:
            logger.error(f"❌ Failed to reload appointments after save: {e}")

        self.session.load(appointments)

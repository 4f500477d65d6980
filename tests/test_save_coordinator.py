"""Tests for batch saving of pending calendar changes."""
import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from conftest import TODAY, build_appointment

from hometrace.domain.scheduling.drag import DragRescheduleEngine, DropTarget
from hometrace.domain.scheduling.errors import AppointmentNotFoundError, StoreUnavailableError
from hometrace.domain.scheduling.save import SaveCoordinator, SaveSummary
from hometrace.domain.scheduling.session import CalendarSession
from hometrace.domain.scheduling.store import UpdateOutcome

UTC = ZoneInfo("UTC")


def make_store(appointments=(), notification_sent=False):
    store = MagicMock()
    store.update = AsyncMock(
        side_effect=lambda appointment_id, payload: UpdateOutcome(appointment_id, notification_sent)
    )
    store.fetch_window = AsyncMock(return_value=list(appointments))
    return store


def make_session(*appointments):
    return CalendarSession(list(appointments), zone=UTC, clock=lambda: TODAY)


class TestSummaryMessage:
    def test_single_update_with_email(self):
        summary = SaveSummary(appointments_updated=1, notifications_sent=1)
        assert summary.message == "1 appointment updated successfully and 1 proposal email sent to customer"

    def test_plural_counts(self):
        summary = SaveSummary(appointments_updated=3, notifications_sent=2)
        assert summary.message == "3 appointments updated successfully and 2 proposal emails sent to customers"

    def test_no_emails(self):
        assert SaveSummary(appointments_updated=2).message == "2 appointments updated successfully"

    def test_failures_appended(self):
        summary = SaveSummary(appointments_updated=1, failed_ids=(4, 5))
        assert summary.message == "1 appointment updated successfully; 2 updates failed"
        assert summary.success is False

    def test_not_attempted(self):
        assert SaveSummary(attempted=False, failed_ids=(1,)).message == "Failed to save changes"


class TestSave:
    @pytest.mark.asyncio
    async def test_drag_then_save_scenario(self):
        """Move an agent-scheduled viewing and save: one write, one proposal email."""
        original = build_appointment(7, scheduled=datetime(2025, 3, 11, 14, 0, tzinfo=timezone.utc))
        session = make_session(original)
        engine = DragRescheduleEngine(session, scheduler=MagicMock())
        engine.start("7-agent-scheduled")
        engine.drop_on_slot(DropTarget(day_index=3, slot_index=2))

        moved = build_appointment(7, scheduled=datetime(2025, 3, 12, 9, 30))
        store = make_store([moved], notification_sent=True)
        summary = await SaveCoordinator(session, store).save()

        store.update.assert_awaited_once_with(7, {"agentScheduledDateTime": "2025-03-12T09:30:00Z"})
        assert summary.appointments_updated == 1
        assert summary.notifications_sent == 1
        assert summary.message == "1 appointment updated successfully and 1 proposal email sent to customer"
        assert len(session.changes) == 0
        assert [e.start for e in session.events] == [datetime(2025, 3, 12, 9, 30)]

    @pytest.mark.asyncio
    async def test_status_change_reflected_after_save(self):
        session = make_session(build_appointment(3, candidates=[("2025-03-11", "14:00")]))
        DragRescheduleEngine(session, scheduler=MagicMock()).change_status("3-0", "cancelled")

        refreshed = build_appointment(
            3, candidates=[("2025-03-11", "14:00")], scheduled=datetime(2025, 3, 11, 14, 0), status="cancelled"
        )
        store = make_store([refreshed])
        await SaveCoordinator(session, store).save()

        store.update.assert_awaited_once_with(
            3, {"agentScheduledDateTime": "2025-03-11T14:00:00Z", "status": "cancelled"}
        )
        assert session.events[0].status == "cancelled"
        assert session.events[0].color == "bg-red-500"

    @pytest.mark.asyncio
    async def test_writes_follow_recording_order(self):
        session = make_session(
            build_appointment(1), build_appointment(2), build_appointment(3, candidates=[("2025-03-12", "10:00")])
        )
        session.changes.record_move(3, datetime(2025, 3, 13, 9, 0))
        session.changes.record_move(1, datetime(2025, 3, 13, 10, 0))
        session.changes.record_move(2, datetime(2025, 3, 13, 11, 0))
        store = make_store()

        await SaveCoordinator(session, store).save()

        assert [c.args[0] for c in store.update.await_args_list] == [3, 1, 2]

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_failed_changes(self):
        session = make_session(build_appointment(1), build_appointment(2), build_appointment(3))
        for appointment_id in (1, 2, 3):
            session.changes.record_move(appointment_id, datetime(2025, 3, 12, 10, 0))
        session.staging.append(session.find_event("3-0"))

        async def update(appointment_id, payload):
            if appointment_id == 2:
                raise AppointmentNotFoundError(appointment_id, "Appointment not found")
            return UpdateOutcome(appointment_id, appointment_id == 1)

        store = make_store([build_appointment(1), build_appointment(3)])
        store.update = AsyncMock(side_effect=update)

        summary = await SaveCoordinator(session, store).save()

        assert store.update.await_count == 3
        assert summary.appointments_updated == 2
        assert summary.notifications_sent == 1
        assert summary.failed_ids == (2,)
        assert summary.message == (
            "2 appointments updated successfully and 1 proposal email sent to customer; 1 update failed"
        )
        assert [c.appointment_id for c in session.changes] == [2]
        assert len(session.staging) == 0

    @pytest.mark.asyncio
    async def test_store_unreachable_for_whole_batch(self):
        session = make_session(build_appointment(1))
        session.changes.record_move(1, datetime(2025, 3, 12, 10, 0))
        session.staging.append(session.find_event("1-0"))
        store = make_store()
        store.update = AsyncMock(side_effect=StoreUnavailableError(1, "connection refused"))
        store.fetch_window = AsyncMock(side_effect=StoreUnavailableError(message="connection refused"))

        summary = await SaveCoordinator(session, store).save()

        assert summary.attempted is False
        assert summary.message == "Failed to save changes"
        assert len(session.changes) == 1
        assert len(session.staging) == 1
        assert session.is_saving is False

    @pytest.mark.asyncio
    async def test_reentrant_save_is_ignored(self):
        session = make_session(build_appointment(1))
        session.changes.record_move(1, datetime(2025, 3, 12, 10, 0))
        release = asyncio.Event()

        async def slow_update(appointment_id, payload):
            await release.wait()
            return UpdateOutcome(appointment_id, False)

        store = make_store()
        store.update = AsyncMock(side_effect=slow_update)
        coordinator = SaveCoordinator(session, store)

        first = asyncio.create_task(coordinator.save())
        await asyncio.sleep(0)
        assert session.is_saving is True

        assert await coordinator.save() is None

        release.set()
        summary = await first
        assert summary.appointments_updated == 1
        assert store.update.await_count == 1

    @pytest.mark.asyncio
    async def test_edit_during_save_survives(self):
        session = make_session(build_appointment(1))
        session.changes.record_move(1, datetime(2025, 3, 12, 10, 0))

        async def update(appointment_id, payload):
            # Agent keeps dragging while the write is in flight
            session.changes.record_move(1, datetime(2025, 3, 13, 15, 0))
            return UpdateOutcome(appointment_id, True)

        store = make_store([build_appointment(1)])
        store.update = AsyncMock(side_effect=update)

        await SaveCoordinator(session, store).save()

        assert session.changes.get(1).new_datetime == datetime(2025, 3, 13, 15, 0)
        assert [e.start for e in session.events_for(1)] == [datetime(2025, 3, 13, 15, 0)]

    @pytest.mark.asyncio
    async def test_refresh_loads_visible_week(self):
        session = make_session(build_appointment(1))
        session.changes.record_move(1, datetime(2025, 3, 12, 10, 0))
        store = make_store([build_appointment(1, scheduled=datetime(2025, 3, 12, 10, 0))])

        await SaveCoordinator(session, store).save()

        store.fetch_window.assert_awaited_once_with(date(2025, 3, 9), date(2025, 3, 15))
        assert [e.start for e in session.events] == [datetime(2025, 3, 12, 10, 0)]

    @pytest.mark.asyncio
    async def test_refresh_can_be_skipped(self):
        session = make_session(build_appointment(1))
        session.changes.record_move(1, datetime(2025, 3, 12, 10, 0))
        store = make_store()

        summary = await SaveCoordinator(session, store).save(refresh=False)

        assert summary.appointments_updated == 1
        store.fetch_window.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        store = make_store()
        summary = await SaveCoordinator(make_session(), store).save()

        assert summary.message == "No changes to save"
        store.update.assert_not_awaited()

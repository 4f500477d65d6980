"""Tests for projecting stored appointments onto calendar events."""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from conftest import TODAY, build_appointment

from hometrace.domain.scheduling.events import (
    CandidateEventKey,
    ScheduledEventKey,
    earliest_event_date,
    project_events,
    status_color,
)

UTC = ZoneInfo("UTC")


class TestCandidateFanOut:
    def test_single_candidate_scenario(self):
        """One future candidate yields one original, non-agent event."""
        events = project_events([build_appointment(7)], now=TODAY, zone=UTC)

        assert len(events) == 1
        event = events[0]
        assert event.start == datetime(2025, 3, 10, 10, 0)
        assert event.is_original is True
        assert event.is_agent_scheduled is False
        assert event.key == CandidateEventKey(7, 0)
        assert event.display_id == "7-0"
        assert event.title == "Jane Doe"
        assert event.property_address == "12 Harbour St, Sydney"

    def test_each_candidate_becomes_an_event(self):
        appointment = build_appointment(
            3, candidates=[("2025-03-10", "10:00"), ("2025-03-11", "11:15"), ("2025-03-12", "18:45")]
        )
        events = project_events([appointment], now=TODAY, zone=UTC)

        assert [e.display_id for e in events] == ["3-0", "3-1", "3-2"]
        assert all(e.is_original for e in events)
        assert len({e.key for e in events}) == 3

    def test_past_candidates_are_dropped(self):
        appointment = build_appointment(
            4, candidates=[("2025-02-27", "10:00"), ("2025-03-01", "09:00"), ("2025-03-05", "12:00")]
        )
        events = project_events([appointment], now=TODAY, zone=UTC)

        # Earlier today still counts; the day before does not
        assert [e.start.date() for e in events] == [date(2025, 3, 1), date(2025, 3, 5)]

    def test_all_past_yields_nothing(self):
        appointment = build_appointment(5, candidates=[("2025-01-10", "10:00"), ("2025-02-28", "17:00")])
        assert project_events([appointment], now=TODAY, zone=UTC) == []

    def test_no_candidates_and_no_schedule(self):
        assert project_events([build_appointment(6, candidates=[])], now=TODAY, zone=UTC) == []

    def test_unreadable_candidate_is_skipped(self):
        appointment = build_appointment(8, candidates=[("not-a-date", "10:00"), ("2025-03-10", "10:00")])
        events = project_events([appointment], now=TODAY, zone=UTC)

        assert [e.display_id for e in events] == ["8-1"]


class TestAgentScheduled:
    def test_scheduled_time_supersedes_candidates(self):
        """Setting the agent time replaces the candidate event entirely."""
        appointment = build_appointment(
            7,
            candidates=[("2025-03-10", "10:00"), ("2025-03-13", "15:00")],
            scheduled=datetime(2025, 3, 11, 14, 0, tzinfo=timezone.utc),
        )
        events = project_events([appointment], now=TODAY, zone=UTC)

        assert len(events) == 1
        event = events[0]
        assert event.start == datetime(2025, 3, 11, 14, 0)
        assert event.is_agent_scheduled is True
        assert event.is_original is False
        assert event.key == ScheduledEventKey(7)
        assert event.display_id == "7-agent-scheduled"
        assert event.duration_slots == 4
        assert event.end == datetime(2025, 3, 11, 15, 0)

    def test_past_pending_schedule_is_excluded(self):
        appointment = build_appointment(
            9, scheduled=datetime(2025, 2, 20, 10, 0), candidates=[("2025-03-10", "10:00")]
        )
        assert project_events([appointment], now=TODAY, zone=UTC) == []

    def test_scheduled_time_shown_in_calendar_zone(self):
        appointment = build_appointment(10, scheduled=datetime(2025, 3, 11, 3, 0))
        events = project_events([appointment], now=TODAY, zone=ZoneInfo("Australia/Sydney"))

        # 03:00 UTC is 14:00 in Sydney during daylight saving
        assert events[0].start == datetime(2025, 3, 11, 14, 0)


class TestStatus:
    def test_status_mirrors_appointment(self):
        events = project_events([build_appointment(1, status="cancelled")], now=TODAY, zone=UTC)
        assert events[0].status == "cancelled"
        assert events[0].color == "bg-red-500"

    def test_status_colors(self):
        assert status_color("confirmed") == "bg-green-500"
        assert status_color("pending") == "bg-yellow-500"
        assert status_color("archived") == "bg-gray-500"


class TestEarliestEventDate:
    def test_earliest_across_appointments(self):
        appointments = [
            build_appointment(1, candidates=[("2025-03-20", "10:00")]),
            build_appointment(2, candidates=[("2025-02-01", "10:00"), ("2025-03-04", "10:00")]),
            build_appointment(3, scheduled=datetime(2025, 3, 18, 10, 0)),
        ]
        assert earliest_event_date(appointments, now=TODAY, zone=UTC) == date(2025, 3, 4)

    def test_none_when_nothing_upcoming(self):
        assert earliest_event_date([build_appointment(1, candidates=[])], now=TODAY, zone=UTC) is None

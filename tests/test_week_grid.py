"""Tests for week grid geometry, navigation and same-slot stacking."""
from datetime import date, datetime

import pytest
from conftest import TODAY, build_appointment

from hometrace.domain.scheduling.events import CalendarEvent, CandidateEventKey, ScheduledEventKey
from hometrace.domain.scheduling.week_grid import (
    TIME_SLOTS,
    WeekGrid,
    layout_day,
    layout_week,
    slot_index_for,
    start_of_week,
)

MONDAY = date(2025, 3, 10)


def event(appointment_id, start, index=0):
    return CalendarEvent(
        key=CandidateEventKey(appointment_id, index),
        start=start,
        status="pending",
        customer_name=f"Customer {appointment_id}",
        is_original=True,
    )


class TestSlots:
    def test_forty_quarter_hour_slots(self):
        assert len(TIME_SLOTS) == 40
        assert TIME_SLOTS[0].label == "9:00"
        assert TIME_SLOTS[1].label == "9:15"
        assert TIME_SLOTS[-1].label == "18:45"
        assert TIME_SLOTS[2].on(MONDAY) == datetime(2025, 3, 10, 9, 30)

    @pytest.mark.parametrize(
        "moment, expected",
        [
            (datetime(2025, 3, 10, 9, 0), 0),
            (datetime(2025, 3, 10, 14, 0), 20),
            (datetime(2025, 3, 10, 18, 45), 39),
            (datetime(2025, 3, 10, 8, 45), None),
            (datetime(2025, 3, 10, 19, 0), None),
        ],
    )
    def test_slot_index_for(self, moment, expected):
        assert slot_index_for(moment) == expected


class TestNavigation:
    def test_week_starts_on_sunday_by_default(self):
        grid = WeekGrid(MONDAY)
        assert grid.anchor == date(2025, 3, 9)
        assert grid.end == date(2025, 3, 15)
        assert len(grid.days) == 7
        assert grid.title == "Mar 9 - Mar 15, 2025"

    def test_monday_first_week(self):
        assert start_of_week(date(2025, 3, 9), week_starts_on=0) == date(2025, 3, 3)

    def test_previous_and_next_move_seven_days(self):
        grid = WeekGrid(MONDAY)
        assert grid.next().anchor == date(2025, 3, 16)
        assert grid.previous().anchor == date(2025, 3, 2)
        assert grid.next().previous() == grid

    def test_fast_forward_two_weeks(self):
        assert WeekGrid(MONDAY).fast_forward().anchor == date(2025, 3, 23)

    def test_jump_to_date_string(self):
        grid = WeekGrid(MONDAY).jump_to("2025-12-25")
        assert grid.anchor == date(2025, 12, 21)
        assert grid.contains(date(2025, 12, 25))

    def test_jump_to_invalid_date(self):
        with pytest.raises(ValueError):
            WeekGrid(MONDAY).jump_to("25/12/2025")

    def test_today(self):
        assert WeekGrid(MONDAY).today(TODAY).anchor == date(2025, 2, 23)

    def test_initial_week_follows_earliest_event(self):
        appointments = [
            build_appointment(1, candidates=[("2025-04-02", "10:00")]),
            build_appointment(2, candidates=[("2025-03-12", "10:00")]),
        ]
        grid = WeekGrid.initial_for(appointments, now=TODAY)
        assert grid.anchor == date(2025, 3, 9)

    def test_initial_week_falls_back_to_current(self):
        grid = WeekGrid.initial_for([build_appointment(1, candidates=[("2024-01-01", "10:00")])], now=TODAY)
        assert grid.anchor == date(2025, 2, 23)

    def test_slot_datetime_bounds(self):
        grid = WeekGrid(MONDAY)
        assert grid.slot_datetime(3, 2) == datetime(2025, 3, 12, 9, 30)
        with pytest.raises(ValueError):
            grid.slot_datetime(7, 0)
        with pytest.raises(ValueError):
            grid.slot_datetime(0, 40)


class TestStacking:
    def test_five_events_same_slot_cap_at_three(self):
        start = datetime(2025, 3, 10, 10, 0)
        events = [event(i, start) for i in (5, 1, 4, 2, 3)]

        layout = layout_day(events, MONDAY, day_index=1)

        visible = layout.visible
        assert [p.event.appointment_id for p in visible] == [1, 2, 3]
        assert [round(p.width_pct, 2) for p in visible] == [33.33] * 3
        assert [round(p.left_pct, 2) for p in visible] == [0.0, 33.33, 66.67]
        assert len(layout.overflow) == 1
        assert layout.overflow[0].label == "+2 more"
        assert layout.overflow[0].slot_index == 4

    def test_two_events_split_width(self):
        start = datetime(2025, 3, 10, 11, 15)
        layout = layout_day([event(2, start), event(1, start)], MONDAY)

        assert [p.width_pct for p in layout.placements] == [50.0, 50.0]
        assert [p.left_pct for p in layout.placements] == [0.0, 50.0]
        assert layout.overflow == ()

    def test_only_identical_start_times_stack(self):
        events = [event(1, datetime(2025, 3, 10, 10, 0)), event(2, datetime(2025, 3, 10, 10, 15))]
        layout = layout_day(events, MONDAY)

        assert all(p.width_pct == 100.0 for p in layout.placements)

    def test_row_span_follows_duration(self):
        layout = layout_day([event(1, datetime(2025, 3, 10, 14, 0))], MONDAY)
        placement = layout.placements[0]

        assert placement.row == 20
        assert placement.row_span == 4
        assert placement.style() == {"left": "0%", "width": "100%", "zIndex": 1, "display": "block"}

    def test_sorted_by_display_id(self):
        start = datetime(2025, 3, 10, 10, 0)
        scheduled = CalendarEvent(
            key=ScheduledEventKey(1), start=start, status="confirmed", customer_name="A"
        )
        layout = layout_day([scheduled, event(1, start, index=2)], MONDAY)

        assert [p.event.display_id for p in layout.placements] == ["1-2", "1-agent-scheduled"]

    def test_events_outside_hours_not_placed(self):
        layout = layout_day([event(1, datetime(2025, 3, 10, 20, 0))], MONDAY)
        assert layout.visible == []

    def test_layout_week_assigns_columns(self):
        grid = WeekGrid(MONDAY)
        events = [event(1, datetime(2025, 3, 9, 9, 0)), event(2, datetime(2025, 3, 15, 9, 0))]
        layouts = layout_week(events, grid)

        assert len(layouts) == 7
        assert layouts[0].placements[0].event.appointment_id == 1
        assert layouts[6].placements[0].day_index == 6
        assert all(not layout.placements for layout in layouts[1:6])

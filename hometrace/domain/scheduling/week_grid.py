"""
Week grid model

Seven day columns by forty 15-minute rows (9:00 through 18:45). Events that
start in the same row of the same day are laid out side by side, at most
three wide; the rest are summarized by a "+N more" indicator on that row.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo

from ...config import WEEK_STARTS_ON
from ...shared.timeutils import calendar_zone, wall_clock_now
from .events import SLOT_MINUTES, CalendarEvent, earliest_event_date

FIRST_SLOT_HOUR = 9
SLOTS_PER_HOUR = 60 // SLOT_MINUTES
SLOTS_PER_DAY = 40
DAYS_PER_WEEK = 7
MAX_VISIBLE_PER_SLOT = 3
FAST_FORWARD_WEEKS = 2


@dataclass(frozen=True)
class TimeSlot:
    index: int
    hour: int
    minute: int

    @property
    def label(self) -> str:
        return f"{self.hour}:{self.minute:02d}"

    def on(self, day: date) -> datetime:
        return datetime.combine(day, time(self.hour, self.minute))


TIME_SLOTS = tuple(
    TimeSlot(i, FIRST_SLOT_HOUR + i // SLOTS_PER_HOUR, (i % SLOTS_PER_HOUR) * SLOT_MINUTES)
    for i in range(SLOTS_PER_DAY)
)


def slot_index_for(moment: datetime) -> Optional[int]:
    """Row containing ``moment``, or None when it falls outside the grid's hours"""
    minutes = (moment.hour - FIRST_SLOT_HOUR) * 60 + moment.minute
    if minutes < 0:
        return None
    index = minutes // SLOT_MINUTES
    return index if index < SLOTS_PER_DAY else None


def start_of_week(day: date, week_starts_on: int = WEEK_STARTS_ON) -> date:
    """First day of the week containing ``day`` (0=Monday ... 6=Sunday)"""
    return day - timedelta(days=(day.weekday() - week_starts_on) % DAYS_PER_WEEK)


@dataclass(frozen=True)
class WeekGrid:
    anchor: date
    week_starts_on: int = WEEK_STARTS_ON

    def __post_init__(self):
        object.__setattr__(self, "anchor", start_of_week(self.anchor, self.week_starts_on))

    # -- construction -------------------------------------------------

    @classmethod
    def containing(cls, day: date, week_starts_on: int = WEEK_STARTS_ON) -> "WeekGrid":
        return cls(day, week_starts_on)

    @classmethod
    def current(
        cls, now: Optional[datetime] = None, week_starts_on: int = WEEK_STARTS_ON
    ) -> "WeekGrid":
        return cls((now or wall_clock_now()).date(), week_starts_on)

    @classmethod
    def initial_for(
        cls,
        appointments: Iterable,
        now: Optional[datetime] = None,
        zone: Optional[ZoneInfo] = None,
        week_starts_on: int = WEEK_STARTS_ON,
    ) -> "WeekGrid":
        """Week of the earliest upcoming event, else the current week"""
        zone = zone or calendar_zone()
        now = now or wall_clock_now(zone)
        earliest = earliest_event_date(appointments, now, zone)
        return cls(earliest or now.date(), week_starts_on)

    # -- geometry -----------------------------------------------------

    @property
    def days(self) -> tuple[date, ...]:
        return tuple(self.anchor + timedelta(days=i) for i in range(DAYS_PER_WEEK))

    @property
    def end(self) -> date:
        return self.anchor + timedelta(days=DAYS_PER_WEEK - 1)

    @property
    def slots(self) -> tuple[TimeSlot, ...]:
        return TIME_SLOTS

    @property
    def title(self) -> str:
        return f"{self.anchor.strftime('%b')} {self.anchor.day} - {self.end.strftime('%b')} {self.end.day}, {self.end.year}"

    def contains(self, day: date) -> bool:
        return self.anchor <= day <= self.end

    def day_index(self, day: date) -> Optional[int]:
        return (day - self.anchor).days if self.contains(day) else None

    def slot_datetime(self, day_index: int, slot_index: int) -> datetime:
        """Absolute wall-clock start of a grid cell"""
        if not 0 <= day_index < DAYS_PER_WEEK:
            raise ValueError(f"Day index out of range: {day_index}")
        if not 0 <= slot_index < SLOTS_PER_DAY:
            raise ValueError(f"Slot index out of range: {slot_index}")
        return TIME_SLOTS[slot_index].on(self.days[day_index])

    def is_edge_column(self, day_index: int) -> bool:
        return day_index in (0, DAYS_PER_WEEK - 1)

    # -- navigation ---------------------------------------------------

    def shifted(self, weeks: int) -> "WeekGrid":
        return WeekGrid(self.anchor + timedelta(days=DAYS_PER_WEEK * weeks), self.week_starts_on)

    def previous(self) -> "WeekGrid":
        return self.shifted(-1)

    def next(self) -> "WeekGrid":
        return self.shifted(1)

    def fast_forward(self, weeks: int = FAST_FORWARD_WEEKS) -> "WeekGrid":
        return self.shifted(weeks)

    def jump_to(self, target: Union[date, str]) -> "WeekGrid":
        """Week containing ``target`` (a date or a YYYY-MM-DD string)"""
        if isinstance(target, str):
            try:
                target = date.fromisoformat(target.strip())
            except ValueError as e:
                raise ValueError(f"Invalid date format: {target!r}") from e
        if isinstance(target, datetime):
            target = target.date()
        return WeekGrid(target, self.week_starts_on)

    def today(self, now: Optional[datetime] = None) -> "WeekGrid":
        return WeekGrid.current(now, self.week_starts_on)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventPlacement:
    event: CalendarEvent
    day_index: int
    row: Optional[int]
    column: int
    columns: int
    visible: bool

    @property
    def row_span(self) -> int:
        return self.event.duration_slots

    @property
    def width_pct(self) -> float:
        return 100 / self.columns if self.visible else 0.0

    @property
    def left_pct(self) -> float:
        return self.column * self.width_pct if self.visible else 0.0

    @property
    def z_index(self) -> int:
        return self.column + 1 if self.visible else 0

    def style(self) -> dict:
        return {
            "left": f"{self.left_pct:g}%",
            "width": f"{self.width_pct:g}%",
            "zIndex": self.z_index,
            "display": "block" if self.visible else "none",
        }


@dataclass(frozen=True)
class OverflowIndicator:
    day_index: int
    slot_index: int
    hidden_count: int

    @property
    def label(self) -> str:
        return f"+{self.hidden_count} more"


@dataclass(frozen=True)
class DayLayout:
    day: date
    day_index: int
    placements: tuple[EventPlacement, ...]
    overflow: tuple[OverflowIndicator, ...]

    @property
    def visible(self) -> list[EventPlacement]:
        return [p for p in self.placements if p.visible]


def layout_day(events: Iterable[CalendarEvent], day: date, day_index: int = 0) -> DayLayout:
    """Stack events of ``day`` that share an identical start time"""
    groups: dict[tuple[int, int], list[CalendarEvent]] = {}
    for event in events:
        if event.start.date() == day:
            groups.setdefault((event.start.hour, event.start.minute), []).append(event)

    placements = []
    overflow = []
    for start in sorted(groups):
        group = sorted(groups[start], key=lambda e: e.display_id)
        columns = min(len(group), MAX_VISIBLE_PER_SLOT)
        row = slot_index_for(group[0].start)

        for position, event in enumerate(group):
            visible = row is not None and position < MAX_VISIBLE_PER_SLOT
            placements.append(
                EventPlacement(
                    event=event,
                    day_index=day_index,
                    row=row,
                    column=position if visible else 0,
                    columns=columns,
                    visible=visible,
                )
            )

        hidden = len(group) - MAX_VISIBLE_PER_SLOT
        if hidden > 0 and row is not None:
            overflow.append(OverflowIndicator(day_index, row, hidden))

    return DayLayout(day, day_index, tuple(placements), tuple(overflow))


def layout_week(events: Iterable[CalendarEvent], grid: WeekGrid) -> list[DayLayout]:
    events = list(events)
    return [layout_day(events, day, index) for index, day in enumerate(grid.days)]

"""Staging area - appointments temporarily pulled off the week grid"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, Optional

from ...email_service import format_viewing_time
from .events import CalendarEvent


@dataclass(frozen=True)
class StagingEntry:
    event: CalendarEvent
    original_start: datetime

    @property
    def appointment_id(self) -> int:
        return self.event.appointment_id

    @property
    def display_id(self) -> str:
        return self.event.display_id

    @property
    def label(self) -> str:
        return f"Originally: {format_viewing_time(self.original_start)}"


class StagingArea:
    """
    Ordered list of staged entries.

    ``on_change`` receives the new entry list after every mutation so a host
    can keep its own copy of the staging state.
    """

    def __init__(
        self,
        entries: Optional[list[StagingEntry]] = None,
        on_change: Optional[Callable[[list[StagingEntry]], None]] = None,
    ):
        self._entries: list[StagingEntry] = list(entries or [])
        self.on_change = on_change

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(list(self._entries))

    def append(self, event: CalendarEvent) -> StagingEntry:
        entry = StagingEntry(event=event, original_start=event.start)
        self._entries.append(entry)
        self._changed()
        return entry

    def find(self, display_id: str) -> Optional[StagingEntry]:
        return next((e for e in self._entries if e.display_id == display_id), None)

    def take(self, display_id: str) -> Optional[StagingEntry]:
        """Remove and return the entry, or None when it is not staged"""
        entry = self.find(display_id)
        if entry is None:
            return None
        self._entries.remove(entry)
        self._changed()
        return entry

    def remove(self, display_id: str) -> bool:
        """Explicit delete: discards the staged entry only"""
        return self.take(display_id) is not None

    def clear(self) -> None:
        if self._entries:
            self._entries.clear()
            self._changed()

    @property
    def entries(self) -> list[StagingEntry]:
        return list(self._entries)

    def __contains__(self, display_id: object) -> bool:
        return any(e.display_id == display_id for e in self._entries)

    def __iter__(self) -> Iterator[StagingEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

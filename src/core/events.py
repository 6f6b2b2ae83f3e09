"""
Date windows for multi-week live events.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class EventWindow:
    name: str
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


OLYMPICS_WINDOWS: List[EventWindow] = [
    EventWindow("2026 Winter Olympics", date(2026, 2, 6), date(2026, 2, 22)),
    EventWindow("2028 Summer Olympics", date(2028, 7, 21), date(2028, 8, 6)),
    EventWindow("2030 Winter Olympics", date(2030, 2, 10), date(2030, 2, 26)),
]

WORLDCUP_WINDOWS: List[EventWindow] = [
    EventWindow("2026 FIFA World Cup", date(2026, 6, 1), date(2026, 7, 31)),
    EventWindow("2030 FIFA World Cup", date(2030, 6, 1), date(2030, 7, 31)),
]

EVENT_WINDOWS = {
    "olympics": OLYMPICS_WINDOWS,
    "worldcup": WORLDCUP_WINDOWS,
}


def active_window(event_type: str, today: Optional[date] = None) -> Optional[EventWindow]:
    """Return the window of `event_type` containing `today`, if any."""
    today = today or date.today()
    for window in EVENT_WINDOWS.get(event_type, []):
        if window.contains(today):
            return window
    return None


def is_event_active(event_type: str, today: Optional[date] = None) -> bool:
    return active_window(event_type, today) is not None

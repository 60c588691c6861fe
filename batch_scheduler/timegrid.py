"""
Weekly time grid: six teaching days, seven one-hour slots from 09:00 to 17:00
with the 12:00-13:00 lunch hour left out.

All arithmetic is done in minutes since midnight.
"""
from typing import Iterable, List, Tuple

DAYS: Tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

# (start, end) of every schedulable hour
TIME_SLOTS: Tuple[Tuple[str, str], ...] = (
    ("09:00", "10:00"),
    ("10:00", "11:00"),
    ("11:00", "12:00"),
    ("13:00", "14:00"),
    ("14:00", "15:00"),
    ("15:00", "16:00"),
    ("16:00", "17:00"),
)
SLOT_STARTS: Tuple[str, ...] = tuple(start for start, _ in TIME_SLOTS)

LUNCH_START = "12:00"
LUNCH_END = "13:00"
WORK_START = "09:00"
WORK_END = "17:00"
AFTERNOON_START = "13:00"

# last slot index before lunch
MORNING_LAST_SLOT = 2

_DAY_ORDER = {day: i for i, day in enumerate(DAYS)}


def to_minutes(time: str) -> int:
    h, m = time.split(":")
    return int(h) * 60 + int(m)


def from_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def end_time(start: str, duration: int) -> str:
    return from_minutes(to_minutes(start) + duration * 60)


def time_ranges_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open intervals: 09:00-10:00 and 10:00-11:00 do not overlap."""
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def day_index(day: str) -> int:
    return _DAY_ORDER.get(day, len(DAYS))


def slot_index(start: str) -> int:
    """Index of the grid slot starting at ``start`` or -1 when off the grid."""
    try:
        return SLOT_STARTS.index(start)
    except ValueError:
        return -1


def block_fits(index: int, duration: int) -> bool:
    """A block starting at slot ``index`` stays inside the grid and never crosses lunch."""
    if index < 0 or index + duration > len(TIME_SLOTS):
        return False
    if index <= MORNING_LAST_SLOT < index + duration - 1:
        return False
    return True


def covered_slots(start: str, duration: int) -> List[str]:
    """Grid hours touched by a block, keyed by their start time."""
    s = to_minutes(start)
    e = s + duration * 60
    return [slot for slot, slot_end in TIME_SLOTS if to_minutes(slot) < e and s < to_minutes(slot_end)]


def sort_sessions(sessions: Iterable) -> list:
    return sorted(sessions, key=lambda s: (day_index(s.day), to_minutes(s.start_time)))

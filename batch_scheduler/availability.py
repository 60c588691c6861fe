"""
Occupancy indices.

``GlobalAvailabilityIndex`` is a read-only snapshot of the hours already taken
by other batches' committed timetables. It is built once per scheduling run
and passed in; candidate schedules of the batch being planned never write to
it. ``BatchOccupancy`` is the working index of a single attempt.
"""
import logging
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Set, Tuple

from .model import CommittedSchedule, Session
from .timegrid import covered_slots

logger = logging.getLogger(__name__)

Key = Tuple[str, str, str]  # (entity id, day, slot start)

FACULTY = "faculty"
ROOM = "room"


class GlobalAvailabilityIndex:
    def __init__(self, faculty: Iterable[Key] = (), rooms: Iterable[Key] = ()):
        self._faculty: FrozenSet[Key] = frozenset(faculty)
        self._rooms: FrozenSet[Key] = frozenset(rooms)

    @classmethod
    def build(
        cls,
        committed: Iterable[CommittedSchedule],
        exclude_batch_id: Optional[str] = None,
        statuses: Sequence[str] = ("active", "published"),
    ) -> "GlobalAvailabilityIndex":
        faculty: Set[Key] = set()
        rooms: Set[Key] = set()
        n_schedules = 0
        for schedule in committed:
            if schedule.status not in statuses:
                continue
            if exclude_batch_id is not None and schedule.batch_id == exclude_batch_id:
                continue
            n_schedules += 1
            for s in schedule.week_slots:
                for slot in covered_slots(s.start_time, s.duration):
                    if s.faculty_id:
                        faculty.add((s.faculty_id, s.day, slot))
                    if s.room_id:
                        rooms.add((s.room_id, s.day, slot))
        logger.info(
            "Availability index: %d committed schedules, %d faculty hours, %d room hours busy",
            n_schedules, len(faculty), len(rooms),
        )
        return cls(faculty, rooms)

    @classmethod
    def empty(cls) -> "GlobalAvailabilityIndex":
        return cls()

    def __bool__(self) -> bool:
        return bool(self._faculty or self._rooms)

    def is_faculty_busy(self, faculty_id: str, day: str, start: str) -> bool:
        return (faculty_id, day, start) in self._faculty

    def is_room_busy(self, room_id: str, day: str, start: str) -> bool:
        return (room_id, day, start) in self._rooms

    def is_occupied(self, kind: str, entity_id: str, day: str, start: str) -> bool:
        if kind == FACULTY:
            return self.is_faculty_busy(entity_id, day, start)
        if kind == ROOM:
            return self.is_room_busy(entity_id, day, start)
        raise ValueError(f"unknown occupancy kind {kind!r}")

    def clashes(self, session: Session) -> int:
        """Number of grid hours where ``session`` hits a committed faculty or room booking."""
        hits = 0
        for slot in covered_slots(session.start_time, session.duration):
            if self.is_faculty_busy(session.faculty_id, session.day, slot):
                hits += 1
            if self.is_room_busy(session.room_id, session.day, slot):
                hits += 1
        return hits


class BatchOccupancy:
    """Hours consumed by the batch's own placements during one attempt."""

    def __init__(self):
        self.faculty: Set[Key] = set()
        self.rooms: Set[Key] = set()
        self.batch: Set[Tuple[str, str]] = set()
        self.subject_daily: Dict[Tuple[str, str], int] = {}

    def is_free(self, faculty_id: str, room_id: Optional[str], day: str, start: str) -> bool:
        if (faculty_id, day, start) in self.faculty:
            return False
        if room_id is not None and (room_id, day, start) in self.rooms:
            return False
        return (day, start) not in self.batch

    def subject_count(self, subject_id: str, day: str) -> int:
        return self.subject_daily.get((subject_id, day), 0)

    def book(self, session: Session) -> None:
        for slot in covered_slots(session.start_time, session.duration):
            self.faculty.add((session.faculty_id, session.day, slot))
            self.rooms.add((session.room_id, session.day, slot))
            self.batch.add((session.day, slot))
        key = (session.subject_id, session.day)
        self.subject_daily[key] = self.subject_daily.get(key, 0) + 1

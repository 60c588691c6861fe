# batch_scheduler/validation.py
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple

from .exceptions import InvalidBatchError
from .model import Batch, Session
from .timegrid import covered_slots


@dataclass
class ValidationResult:
    faculty_overlaps: List[Dict[str, str]] = field(default_factory=list)
    classroom_overlaps: List[Dict[str, str]] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.faculty_overlaps and not self.classroom_overlaps

    @property
    def conflict_count(self) -> int:
        return len(self.faculty_overlaps)

    @property
    def conflicts(self) -> Dict[str, List[Dict[str, str]]]:
        return {
            "faculty_overlaps": self.faculty_overlaps,
            "classroom_overlaps": self.classroom_overlaps,
        }


def validate_timetable(week_slots: Iterable[Session]) -> ValidationResult:
    """
    Independent double-booking check of a finished timetable.

    Walks the sessions once, remembering every (faculty, day, hour) and
    (room, day, hour) already seen; a repeat is reported as an overlap.
    """
    result = ValidationResult()
    faculty_seen: Set[Tuple[str, str, str]] = set()
    room_seen: Set[Tuple[str, str, str]] = set()

    for s in week_slots:
        for slot in covered_slots(s.start_time, s.duration):
            time_key = f"{s.day}-{slot}"
            fkey = (s.faculty_id, s.day, slot)
            if fkey in faculty_seen:
                result.faculty_overlaps.append({"faculty": s.faculty_id, "time": time_key})
            else:
                faculty_seen.add(fkey)
            rkey = (s.room_id, s.day, slot)
            if rkey in room_seen:
                result.classroom_overlaps.append({"room": s.room_id, "time": time_key})
            else:
                room_seen.add(rkey)
    return result


def check_batch(batch: Batch) -> List[Dict[str, object]]:
    """Problems that make a batch unusable as scheduler input."""
    issues: List[Dict[str, object]] = []
    if not batch.subjects:
        issues.append({"issue": "Batch must have at least one subject assigned"})
    for index, req in enumerate(batch.subjects):
        if not req.subject_id:
            issues.append({"index": index, "issue": "Subject not populated"})
        if not req.faculty_id:
            issues.append({"index": index, "issue": "Faculty not assigned", "subject": req.label})
        if req.weekly_hours < 1:
            issues.append({"index": index, "issue": "Weekly hours must be positive", "subject": req.label})
    return issues


def ensure_schedulable(batch: Batch) -> None:
    issues = check_batch(batch)
    if issues:
        raise InvalidBatchError(
            f"Batch {batch.name} has {len(issues)} problem(s) with its subjects", issues
        )


def hours_shortfall(batch: Batch, week_slots: Iterable[Session]) -> Dict[str, int]:
    """Required minus scheduled hours for every under-served subject."""
    scheduled: Dict[str, int] = {}
    for s in week_slots:
        scheduled[s.subject_id] = scheduled.get(s.subject_id, 0) + s.duration
    return {
        str(req.subject_id): req.weekly_hours - scheduled.get(req.subject_id, 0)
        for req in batch.subjects
        if scheduled.get(req.subject_id, 0) < req.weekly_hours
    }

# batch_scheduler/model.py
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from .timegrid import end_time, to_minutes


@dataclass(frozen=True)
class SubjectRequirement:
    subject_id: Optional[str]
    faculty_id: Optional[str]
    weekly_hours: int
    session_type: str = "lecture"
    is_elective: bool = False
    name: str = ""

    @property
    def is_lab(self) -> bool:
        return self.session_type == "lab"

    @property
    def label(self) -> str:
        return self.name or str(self.subject_id)


@dataclass(frozen=True)
class Classroom:
    id: str
    capacity: int
    type: str = "lecture"
    is_active: bool = True
    name: str = ""


@dataclass
class Batch:
    id: str
    name: str
    strength: int
    subjects: List[SubjectRequirement] = field(default_factory=list)


@dataclass(frozen=True)
class Session:
    # Un gen = one placed teaching block
    day: str
    start_time: str
    duration: int
    subject_id: str
    faculty_id: str
    room_id: str
    session_type: str = "lecture"

    @property
    def end_time(self) -> str:
        return end_time(self.start_time, self.duration)

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration * 60

    @property
    def is_lab(self) -> bool:
        return self.session_type == "lab"

    def moved(self, **changes) -> "Session":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, object]:
        return {
            "day": self.day,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "subject": self.subject_id,
            "faculty": self.faculty_id,
            "classroom": self.room_id,
            "type": self.session_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Session":
        start = str(data["start_time"])
        if data.get("duration") is not None:
            duration = int(data["duration"])
        elif data.get("end_time"):
            duration = max(1, (to_minutes(str(data["end_time"])) - to_minutes(start)) // 60)
        else:
            duration = 1
        return cls(
            day=str(data["day"]),
            start_time=start,
            duration=duration,
            subject_id=str(data.get("subject", "")),
            faculty_id=str(data.get("faculty", "")),
            room_id=str(data.get("classroom", "")),
            session_type=str(data.get("type") or "lecture"),
        )


@dataclass
class CommittedSchedule:
    """Timetable of another batch, as stored by the caller."""
    batch_id: str
    status: str
    week_slots: List[Session] = field(default_factory=list)

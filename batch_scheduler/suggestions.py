from typing import Dict, List, Optional

from .config import SchedulerConfig
from .model import Batch


def generate_suggestions(batch: Batch, cfg: Optional[SchedulerConfig] = None) -> List[str]:
    """Human-readable planning hints shown next to a generated timetable."""
    cfg = cfg or SchedulerConfig()
    suggestions: List[str] = []

    electives = [s for s in batch.subjects if s.is_elective]
    if electives:
        suggestions.append(
            f"Consider scheduling {len(electives)} elective(s) in non-overlapping slots "
            "for student flexibility."
        )

    loads: Dict[str, int] = {}
    for s in batch.subjects:
        if s.faculty_id:
            loads[s.faculty_id] = loads.get(s.faculty_id, 0) + s.weekly_hours
    for faculty, load in loads.items():
        if load > cfg.faculty_load_warning:
            suggestions.append(
                f"Faculty {faculty} has high workload ({load} hrs/week). Consider load balancing."
            )

    labs = [s for s in batch.subjects if s.session_type == "lab"]
    if labs:
        suggestions.append(
            f"Schedule {len(labs)} lab session(s) in consecutive slots with adequate lab infrastructure."
        )

    practicals = [s for s in batch.subjects if s.session_type == "practical"]
    if practicals:
        suggestions.append(f"Reserve dedicated time slots for {len(practicals)} practical session(s).")

    suggestions.append(
        "Leave adequate free slots for interdisciplinary learning and skill development."
    )
    suggestions.append("Keep the 12:00-13:00 lunch break free for all batches.")
    return suggestions

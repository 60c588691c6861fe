# batch_scheduler/data_loader.py
from dataclasses import dataclass
from pathlib import Path
from typing import List

import pandas as pd

from .exceptions import InvalidBatchError
from .model import Batch, Classroom, CommittedSchedule, Session, SubjectRequirement

COMMITTED_COLUMNS = ["batch_id", "status", "day", "start_time", "end_time",
                     "subject", "faculty", "classroom", "type"]


@dataclass(frozen=True)
class DataBundle:
    classrooms: pd.DataFrame
    batches: pd.DataFrame
    batch_subjects: pd.DataFrame
    committed_slots: pd.DataFrame


def _read(path: Path) -> pd.DataFrame:
    # ids are kept as strings ("R101" and "101" are both valid)
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def load_data(data_dir: str) -> DataBundle:
    base = Path(data_dir)
    committed_path = base / "committed_slots.csv"
    committed = _read(committed_path) if committed_path.exists() else pd.DataFrame(columns=COMMITTED_COLUMNS)
    return DataBundle(
        classrooms=_read(base / "classrooms.csv"),
        batches=_read(base / "batches.csv"),
        batch_subjects=_read(base / "batch_subjects.csv"),
        committed_slots=committed,
    )


def _truthy(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "y")


def build_classrooms(df: pd.DataFrame) -> List[Classroom]:
    rooms = []
    for _, r in df.iterrows():
        rooms.append(
            Classroom(
                id=str(r["id"]),
                capacity=int(r["capacity"]),
                type=str(r.get("type", "lecture")).strip().lower() or "lecture",
                is_active=_truthy(r.get("is_active", "true") or "true"),
                name=str(r.get("name", "")),
            )
        )
    return rooms


def build_batch(bundle: DataBundle, batch_id: str) -> Batch:
    rows = bundle.batches.loc[bundle.batches["id"] == str(batch_id)]
    if rows.empty:
        raise InvalidBatchError(f"Batch with id {batch_id} not found")
    row = rows.iloc[0]

    subjects = []
    reqs = bundle.batch_subjects.loc[bundle.batch_subjects["batch_id"] == str(batch_id)]
    for _, r in reqs.iterrows():
        hours = str(r.get("hours_per_week", "")).strip()
        subjects.append(
            SubjectRequirement(
                subject_id=str(r.get("subject_id", "")).strip() or None,
                faculty_id=str(r.get("faculty_id", "")).strip() or None,
                weekly_hours=int(hours) if hours else 3,
                session_type=str(r.get("type", "lecture")).strip().lower() or "lecture",
                is_elective=_truthy(r.get("is_elective", "false")),
                name=str(r.get("subject_name", "")),
            )
        )
    return Batch(id=str(row["id"]), name=str(row["name"]), strength=int(row["strength"]), subjects=subjects)


def build_committed_schedules(df: pd.DataFrame) -> List[CommittedSchedule]:
    schedules = []
    for (batch_id, status), group in df.groupby(["batch_id", "status"], sort=False):
        slots = [Session.from_dict(rec) for rec in group.to_dict("records")]
        schedules.append(CommittedSchedule(batch_id=str(batch_id), status=str(status), week_slots=slots))
    return schedules


def sessions_to_dataframe(sessions: List[Session]) -> pd.DataFrame:
    return pd.DataFrame([s.to_dict() for s in sessions], columns=COMMITTED_COLUMNS[2:])

# batch_scheduler/domains.py
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, List, Sequence

from .model import Batch, Classroom, SubjectRequirement

logger = logging.getLogger(__name__)

BlockPolicy = Callable[[SubjectRequirement], List[int]]

LAB_ROOM_TYPES = ("lab",)
LECTURE_ROOM_TYPES = ("lecture", "seminar")


def unit_blocks(req: SubjectRequirement) -> List[int]:
    """Every weekly hour is its own one-hour block."""
    return [1] * max(0, req.weekly_hours)


def lab_blocks(req: SubjectRequirement, max_lab_block: int = 2) -> List[int]:
    """
    Labs are split into blocks of at most ``max_lab_block`` hours
    (3h -> [2, 1], 4h -> [2, 2]); every other session type uses 1h blocks.
    """
    if not req.is_lab:
        return unit_blocks(req)
    blocks = []
    remaining = req.weekly_hours
    while remaining > 0:
        size = min(remaining, max_lab_block)
        blocks.append(size)
        remaining -= size
    return blocks


def get_block_policy(name: str, max_lab_block: int = 2) -> BlockPolicy:
    if name == "unit":
        return unit_blocks
    if name == "lab_pairs":
        return partial(lab_blocks, max_lab_block=max_lab_block)
    raise ValueError(f"unknown block policy {name!r}")


def room_types_for(session_type: str) -> Sequence[str]:
    return LAB_ROOM_TYPES if session_type == "lab" else LECTURE_ROOM_TYPES


def room_matches(session_type: str, room: Classroom) -> bool:
    return room.type in room_types_for(session_type)


@dataclass
class CandidatePool:
    """Per-batch inputs for one scheduling run."""
    batch: Batch
    requirements: List[SubjectRequirement]
    lecture_rooms: List[Classroom]
    lab_rooms: List[Classroom]
    block_policy: BlockPolicy = unit_blocks
    skipped: List[SubjectRequirement] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        batch: Batch,
        classrooms: Sequence[Classroom],
        block_policy: BlockPolicy = unit_blocks,
    ) -> "CandidatePool":
        active = sorted((r for r in classrooms if r.is_active), key=lambda r: r.capacity)
        requirements, skipped = [], []
        for req in batch.subjects:
            if not req.subject_id or not req.faculty_id:
                logger.warning(
                    "Skipping %s for batch %s: missing subject or faculty", req.label, batch.name
                )
                skipped.append(req)
                continue
            requirements.append(req)
        return cls(
            batch=batch,
            requirements=requirements,
            lecture_rooms=[r for r in active if r.type in LECTURE_ROOM_TYPES],
            lab_rooms=[r for r in active if r.type in LAB_ROOM_TYPES],
            block_policy=block_policy,
            skipped=skipped,
        )

    @property
    def rooms_by_id(self) -> Dict[str, Classroom]:
        return {r.id: r for r in self.lecture_rooms + self.lab_rooms}

    def room_pool(self, session_type: str) -> List[Classroom]:
        return self.lab_rooms if session_type == "lab" else self.lecture_rooms

    def blocks_for(self, req: SubjectRequirement) -> List[int]:
        return self.block_policy(req)

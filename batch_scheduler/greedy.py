"""
Greedy heuristic scheduler.

Fast, deterministic alternative to the genetic algorithm: requirements are
placed one block at a time in the first free (day, slot, room) found while
scanning the week in order.
"""
import logging
from typing import List, Optional

from .availability import BatchOccupancy, GlobalAvailabilityIndex
from .domains import CandidatePool
from .model import Classroom, Session, SubjectRequirement
from .timegrid import DAYS, SLOT_STARTS, block_fits, sort_sessions

logger = logging.getLogger(__name__)

MAX_BLOCKS_PER_DAY = 1


class GreedyScheduler:
    def __init__(self, pool: CandidatePool, availability: Optional[GlobalAvailabilityIndex] = None):
        self.pool = pool
        self.availability = availability or GlobalAvailabilityIndex.empty()
        self.occupancy = BatchOccupancy()
        self.unplaced: List[SubjectRequirement] = []

    def _ordered_requirements(self) -> List[SubjectRequirement]:
        # biggest blocks first, then heaviest subjects
        return sorted(
            self.pool.requirements,
            key=lambda r: (max(self.pool.blocks_for(r), default=0), r.weekly_hours),
            reverse=True,
        )

    def _is_free(self, faculty_id: str, room_id: Optional[str], day: str, slots: List[str]) -> bool:
        for slot in slots:
            if self.availability.is_faculty_busy(faculty_id, day, slot):
                return False
            if room_id is not None and self.availability.is_room_busy(room_id, day, slot):
                return False
            if not self.occupancy.is_free(faculty_id, room_id, day, slot):
                return False
        return True

    def _find_room(self, req: SubjectRequirement, day: str, slots: List[str]) -> Optional[Classroom]:
        for room in self.pool.room_pool(req.session_type):
            if room.capacity < self.pool.batch.strength:
                continue
            if self._is_free(req.faculty_id, room.id, day, slots):
                return room
        return None

    def place_block(self, req: SubjectRequirement, duration: int) -> Optional[Session]:
        for day in DAYS:
            if self.occupancy.subject_count(req.subject_id, day) >= MAX_BLOCKS_PER_DAY:
                continue
            for idx in range(len(SLOT_STARTS)):
                if not block_fits(idx, duration):
                    continue
                slots = list(SLOT_STARTS[idx:idx + duration])
                if not self._is_free(req.faculty_id, None, day, slots):
                    continue
                room = self._find_room(req, day, slots)
                if room is None:
                    continue
                session = Session(
                    day=day,
                    start_time=SLOT_STARTS[idx],
                    duration=duration,
                    subject_id=req.subject_id,
                    faculty_id=req.faculty_id,
                    room_id=room.id,
                    session_type=req.session_type,
                )
                self.occupancy.book(session)
                return session
        return None

    def schedule(self) -> List[Session]:
        logger.info("Generating timetable (greedy) for %s", self.pool.batch.name)
        result: List[Session] = []
        for req in self._ordered_requirements():
            blocks = self.pool.blocks_for(req)
            placed = 0
            for i, duration in enumerate(blocks):
                session = self.place_block(req, duration)
                if session is None:
                    logger.warning(
                        "Unable to schedule %s (%s) block %d/%d: no free slot/room for %dh",
                        req.label, req.session_type, i + 1, len(blocks), duration,
                    )
                    self.unplaced.append(req)
                    break
                logger.debug("Scheduled %s on %s %s-%s", req.label, session.day,
                             session.start_time, session.end_time)
                result.append(session)
                placed += 1
            logger.info("%s: scheduled %d/%d blocks", req.label, placed, len(blocks))
        return sort_sessions(result)


def generate_greedy(
    pool: CandidatePool, availability: Optional[GlobalAvailabilityIndex] = None
) -> List[Session]:
    return GreedyScheduler(pool, availability).schedule()

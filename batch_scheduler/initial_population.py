# batch_scheduler/initial_population.py
import logging
import random
from typing import List, Optional, Set, Tuple

from .domains import CandidatePool
from .encoding import Encoding
from .model import Session
from .timegrid import DAYS, SLOT_STARTS, block_fits, covered_slots

logger = logging.getLogger(__name__)


def random_encoding(
    pool: CandidatePool,
    rng: Optional[random.Random] = None,
    max_attempts: int = 50,
) -> Encoding:
    """
    Place every block of every requirement at a random (day, slot, room).

    A draw is retried when its hours are already taken in that room inside
    this encoding or when the block would leave the grid or cross lunch.
    After ``max_attempts`` failed draws the last one is kept anyway; the
    resulting conflicts are left to fitness pressure.
    """
    rng = rng or random.Random()
    genes: List[Session] = []
    used: Set[Tuple[str, str, str]] = set()

    for req in pool.requirements:
        rooms = pool.room_pool(req.session_type)
        if not rooms:
            logger.warning("No %s rooms available for %s", req.session_type, req.label)
            continue

        for duration in pool.blocks_for(req):
            session = None
            for _ in range(max_attempts):
                day = rng.choice(DAYS)
                idx = rng.randrange(len(SLOT_STARTS))
                room = rng.choice(rooms)
                session = Session(
                    day=day,
                    start_time=SLOT_STARTS[idx],
                    duration=duration,
                    subject_id=req.subject_id,
                    faculty_id=req.faculty_id,
                    room_id=room.id,
                    session_type=req.session_type,
                )
                if not block_fits(idx, duration):
                    continue
                keys = [(day, slot, room.id) for slot in covered_slots(session.start_time, duration)]
                if any(k in used for k in keys):
                    continue
                used.update(keys)
                break
            genes.append(session)

    return Encoding(genes)


def build_initial_population(
    pool: CandidatePool,
    pop_size: int,
    rng: Optional[random.Random] = None,
    max_attempts: int = 50,
) -> List[Encoding]:
    rng = rng or random.Random()
    logger.info("Initializing population of %d encodings", pop_size)
    population = [random_encoding(pool, rng, max_attempts) for _ in range(pop_size)]
    logger.debug("Population ready (%d genes per encoding)", len(population[0]) if population else 0)
    return population


def tournament_selection(
    population: List[Encoding],
    tournament_size: int = 3,
    rng: Optional[random.Random] = None,
) -> Encoding:
    """Fittest of ``tournament_size`` individuals drawn with replacement."""
    rng = rng or random.Random()
    contenders = [rng.choice(population) for _ in range(tournament_size)]
    return max(contenders, key=lambda e: e.fitness)


def apply_elitism(population: List[Encoding], elite_ratio: float = 0.1) -> List[Encoding]:
    """Top fraction of a population already sorted by descending fitness."""
    elite_size = int(len(population) * elite_ratio)
    return population[:elite_size]

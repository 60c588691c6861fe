"""
Entry points used by callers: build the availability snapshot, run one of the
strategies and package the outcome as named timetable options.
"""
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .availability import GlobalAvailabilityIndex
from .config import SchedulerConfig
from .domains import CandidatePool, get_block_policy
from .encoding import Encoding
from .evaluation import ConstraintReport, EvaluationContext
from .ga import GeneticSolver
from .greedy import GreedyScheduler
from .model import Batch, Classroom, CommittedSchedule, Session
from .validation import ValidationResult, ensure_schedulable, hours_shortfall, validate_timetable

logger = logging.getLogger(__name__)

STRATEGIES = ("ga", "greedy", "both")

GA_OPTION = (
    "Optimized Schedule (Genetic Algorithm)",
    "Conflict-free schedule with balanced load and minimized gaps.",
)
GREEDY_OPTION = (
    "Sequential Schedule (Greedy Heuristic)",
    "Fast first-fit placement scanning the week from Monday morning.",
)


@dataclass
class SchedulingResult:
    strategy: str
    sessions: List[Session]
    report: ConstraintReport
    validation: ValidationResult
    shortfall: Dict[str, int] = field(default_factory=dict)
    history: List[Dict] = field(default_factory=list)
    generations_run: int = 0
    stop_reason: str = ""

    @property
    def is_complete(self) -> bool:
        return not self.shortfall


@dataclass
class ScheduleOption:
    option: int
    name: str
    description: str
    week_slots: List[Session]
    conflict_count: int = 0
    report: Optional[ConstraintReport] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "option": self.option,
            "name": self.name,
            "description": self.description,
            "week_slots": [s.to_dict() for s in self.week_slots],
            "conflict_count": self.conflict_count,
        }


def _prepare(batch, classrooms, committed, cfg):
    policy = get_block_policy(cfg.block_policy, cfg.max_lab_block)
    pool = CandidatePool.build(batch, classrooms, policy)
    availability = GlobalAvailabilityIndex.build(
        committed or (), exclude_batch_id=batch.id, statuses=cfg.committed_statuses
    )
    return pool, availability


def _finish(strategy, sessions, pool, availability, cfg, **extra) -> SchedulingResult:
    ctx = EvaluationContext.for_pool(pool, cfg, availability)
    return SchedulingResult(
        strategy=strategy,
        sessions=sessions,
        report=Encoding(sessions).report(ctx),
        validation=validate_timetable(sessions),
        shortfall=hours_shortfall(pool.batch, sessions),
        **extra,
    )


def run_greedy(
    batch: Batch,
    classrooms: Iterable[Classroom],
    committed: Optional[Iterable[CommittedSchedule]] = None,
    cfg: Optional[SchedulerConfig] = None,
) -> SchedulingResult:
    cfg = cfg or SchedulerConfig()
    pool, availability = _prepare(batch, list(classrooms), committed, cfg)
    sessions = GreedyScheduler(pool, availability).schedule()
    return _finish("greedy", sessions, pool, availability, cfg)


def run_ga(
    batch: Batch,
    classrooms: Iterable[Classroom],
    committed: Optional[Iterable[CommittedSchedule]] = None,
    cfg: Optional[SchedulerConfig] = None,
    rng: Optional[random.Random] = None,
) -> SchedulingResult:
    cfg = cfg or SchedulerConfig()
    pool, availability = _prepare(batch, list(classrooms), committed, cfg)
    solver = GeneticSolver(pool, cfg, availability, rng)
    best = solver.evolve()
    return _finish(
        "ga", list(best.genes), pool, availability, cfg,
        history=solver.history,
        generations_run=solver.generations_run,
        stop_reason=solver.stop_reason,
    )


def generate_timetable(batch, classrooms, committed=None, cfg=None) -> List[Session]:
    """Greedy timetable for ``batch``, sorted by day and start time."""
    return run_greedy(batch, classrooms, committed, cfg).sessions


def generate_timetable_ga(batch, classrooms, committed=None, cfg=None, rng=None) -> List[Session]:
    """Best timetable found by the genetic algorithm for ``batch``."""
    return run_ga(batch, classrooms, committed, cfg, rng).sessions


def _option(number: int, labels, result: SchedulingResult) -> ScheduleOption:
    name, description = labels
    return ScheduleOption(
        option=number,
        name=name,
        description=description,
        week_slots=result.sessions,
        conflict_count=result.validation.conflict_count,
        report=result.report,
    )


def generate_multiple_timetables(
    batch: Batch,
    classrooms: Iterable[Classroom],
    committed: Optional[Iterable[CommittedSchedule]] = None,
    cfg: Optional[SchedulerConfig] = None,
    strategy: str = "ga",
    rng: Optional[random.Random] = None,
) -> List[ScheduleOption]:
    """Timetable options for a batch; one genetic-algorithm option by default.

    Raises ``InvalidBatchError`` when the batch has no subjects or has entries
    without a subject or faculty.
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy {strategy!r}")
    ensure_schedulable(batch)
    classrooms = list(classrooms)
    committed = list(committed or ())

    options: List[ScheduleOption] = []
    if strategy in ("ga", "both"):
        result = run_ga(batch, classrooms, committed, cfg, rng)
        options.append(_option(len(options) + 1, GA_OPTION, result))
    if strategy in ("greedy", "both"):
        result = run_greedy(batch, classrooms, committed, cfg)
        options.append(_option(len(options) + 1, GREEDY_OPTION, result))

    for opt in options:
        logger.info("Option %d (%s): %d sessions, %d faculty conflicts",
                    opt.option, opt.name, len(opt.week_slots), opt.conflict_count)
    return options

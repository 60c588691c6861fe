# batch_scheduler/evaluation.py
"""
Constraint evaluator.

Every counter is a pure function of an encoding (and the run context); none of
them raise. Hard-constraint counters return violation counts, soft ones return
the raw quantity that is later weighted into the penalty.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Sequence

import numpy as np

from .availability import GlobalAvailabilityIndex
from .config import SchedulerConfig
from .domains import room_matches
from .model import Batch, Classroom, Session, SubjectRequirement
from .timegrid import (
    AFTERNOON_START, DAYS, LUNCH_END, LUNCH_START, WORK_END, WORK_START,
    day_index, to_minutes,
)


@dataclass
class EvaluationContext:
    batch: Batch
    rooms_by_id: Dict[str, Classroom]
    cfg: SchedulerConfig = field(default_factory=SchedulerConfig)
    availability: Optional[GlobalAvailabilityIndex] = None

    @property
    def requirements(self) -> List[SubjectRequirement]:
        return self.batch.subjects

    @classmethod
    def for_pool(cls, pool, cfg=None, availability=None) -> "EvaluationContext":
        return cls(
            batch=pool.batch,
            rooms_by_id=pool.rooms_by_id,
            cfg=cfg or SchedulerConfig(),
            availability=availability,
        )


@dataclass
class ConstraintReport:
    hard_constraints: Dict[str, int]
    soft_constraints: Dict[str, float]
    soft_penalty: float
    fitness: float

    @property
    def hard_violations(self) -> int:
        return sum(self.hard_constraints.values())

    @property
    def is_feasible(self) -> bool:
        return self.hard_violations == 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "hard_constraints": dict(self.hard_constraints),
            "soft_constraints": dict(self.soft_constraints),
            "soft_penalty": self.soft_penalty,
            "fitness": self.fitness,
        }


def _genes(encoding) -> Sequence[Session]:
    return getattr(encoding, "genes", encoding)


def _pairwise_overlaps(groups: Dict[object, List[Session]]) -> int:
    violations = 0
    for sessions in groups.values():
        for a, b in combinations(sessions, 2):
            if a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes:
                violations += 1
    return violations


# ---------------------------------------------------------------------------
# Hard constraints
# ---------------------------------------------------------------------------

def count_faculty_overlaps(encoding) -> int:
    groups: Dict[object, List[Session]] = defaultdict(list)
    for g in _genes(encoding):
        groups[(g.faculty_id, g.day)].append(g)
    return _pairwise_overlaps(groups)


def count_room_overlaps(encoding) -> int:
    groups: Dict[object, List[Session]] = defaultdict(list)
    for g in _genes(encoding):
        groups[(g.room_id, g.day)].append(g)
    return _pairwise_overlaps(groups)


def count_batch_overlaps(encoding) -> int:
    """The batch attends every session, so any two overlapping sessions clash."""
    groups: Dict[object, List[Session]] = defaultdict(list)
    for g in _genes(encoding):
        groups[g.day].append(g)
    return _pairwise_overlaps(groups)


def count_capacity_violations(encoding, batch: Batch, rooms_by_id: Dict[str, Classroom]) -> int:
    violations = 0
    for g in _genes(encoding):
        room = rooms_by_id.get(g.room_id)
        if room is not None and room.capacity < batch.strength:
            violations += 1
    return violations


def count_room_type_mismatches(encoding, rooms_by_id: Dict[str, Classroom]) -> int:
    violations = 0
    for g in _genes(encoding):
        room = rooms_by_id.get(g.room_id)
        if room is not None and not room_matches(g.session_type, room):
            violations += 1
    return violations


def count_lunch_break_violations(encoding) -> int:
    lunch_start, lunch_end = to_minutes(LUNCH_START), to_minutes(LUNCH_END)
    return sum(
        1 for g in _genes(encoding)
        if g.start_minutes < lunch_end and lunch_start < g.end_minutes
    )


def count_subject_per_day_violations(encoding) -> int:
    counts: Dict[object, int] = defaultdict(int)
    for g in _genes(encoding):
        counts[(g.subject_id, g.day)] += 1
    return sum(c - 1 for c in counts.values() if c > 1)


def count_working_hours_violations(encoding) -> int:
    start, end = to_minutes(WORK_START), to_minutes(WORK_END)
    return sum(1 for g in _genes(encoding) if g.start_minutes < start or g.end_minutes > end)


def count_missing_hours_violations(encoding, requirements: Sequence[SubjectRequirement]) -> int:
    scheduled: Dict[str, int] = defaultdict(int)
    for g in _genes(encoding):
        scheduled[g.subject_id] += g.duration
    return sum(abs(req.weekly_hours - scheduled.get(req.subject_id, 0)) for req in requirements)


def count_external_conflicts(encoding, availability: Optional[GlobalAvailabilityIndex]) -> int:
    if not availability:
        return 0
    return sum(availability.clashes(g) for g in _genes(encoding))


# ---------------------------------------------------------------------------
# Soft constraints
# ---------------------------------------------------------------------------

def count_gaps(encoding, gap_limit_minutes: int = 180) -> float:
    """Idle hours between consecutive sessions of a day, ignoring gaps of 3h or more."""
    by_day: Dict[str, List[Session]] = defaultdict(list)
    for g in _genes(encoding):
        by_day[g.day].append(g)
    total = 0.0
    for sessions in by_day.values():
        sessions.sort(key=lambda s: s.start_minutes)
        for current, nxt in zip(sessions, sessions[1:]):
            gap = nxt.start_minutes - current.end_minutes
            if 0 < gap < gap_limit_minutes:
                total += gap / 60
    return total


def calculate_load_imbalance(encoding) -> float:
    counts = np.zeros(len(DAYS))
    for g in _genes(encoding):
        idx = day_index(g.day)
        if idx < len(DAYS):
            counts[idx] += 1
    return float(np.std(counts))


def count_afternoon_theory(encoding) -> int:
    afternoon = to_minutes(AFTERNOON_START)
    return sum(1 for g in _genes(encoding) if not g.is_lab and g.start_minutes >= afternoon)


def count_consecutive_days(encoding) -> int:
    days_by_subject: Dict[str, List[int]] = defaultdict(list)
    for g in _genes(encoding):
        days_by_subject[g.subject_id].append(day_index(g.day))
    count = 0
    for idxs in days_by_subject.values():
        idxs.sort()
        count += sum(1 for a, b in zip(idxs, idxs[1:]) if b - a == 1)
    return count


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def hard_constraint_counts(encoding, ctx: EvaluationContext) -> Dict[str, int]:
    counts = {
        "faculty_overlaps": count_faculty_overlaps(encoding),
        "room_overlaps": count_room_overlaps(encoding),
        "batch_overlaps": count_batch_overlaps(encoding),
        "capacity_violations": count_capacity_violations(encoding, ctx.batch, ctx.rooms_by_id),
        "room_type_mismatches": count_room_type_mismatches(encoding, ctx.rooms_by_id),
        "lunch_break_violations": count_lunch_break_violations(encoding),
        "subject_per_day_violations": count_subject_per_day_violations(encoding),
        "working_hours_violations": count_working_hours_violations(encoding),
        "missing_hours_violations": count_missing_hours_violations(encoding, ctx.requirements),
    }
    if ctx.availability:
        counts["external_conflicts"] = count_external_conflicts(encoding, ctx.availability)
    return counts


def soft_constraint_values(encoding, ctx: EvaluationContext) -> Dict[str, float]:
    return {
        "gaps": count_gaps(encoding, ctx.cfg.gap_limit_minutes),
        "load_imbalance": calculate_load_imbalance(encoding),
        "afternoon_theory": count_afternoon_theory(encoding),
        "consecutive_days": count_consecutive_days(encoding),
    }


def _weighted(soft: Dict[str, float], cfg: SchedulerConfig) -> float:
    return (
        soft["gaps"] * cfg.weight_gaps
        + soft["load_imbalance"] * cfg.weight_load_imbalance
        + soft["afternoon_theory"] * cfg.weight_afternoon_theory
        + soft["consecutive_days"] * cfg.weight_consecutive_days
    )


def evaluate_hard_constraints(encoding, ctx: EvaluationContext) -> int:
    """1 when every hard constraint holds, 0 otherwise."""
    return 1 if sum(hard_constraint_counts(encoding, ctx).values()) == 0 else 0


def evaluate_soft_constraints(encoding, ctx: EvaluationContext) -> float:
    return _weighted(soft_constraint_values(encoding, ctx), ctx.cfg)


def fitness_from(violations: int, soft_penalty: float, cfg: SchedulerConfig) -> float:
    return cfg.base_fitness - violations * cfg.hard_violation_weight - soft_penalty


def calculate_fitness(encoding, ctx: EvaluationContext) -> float:
    violations = sum(hard_constraint_counts(encoding, ctx).values())
    return fitness_from(violations, evaluate_soft_constraints(encoding, ctx), ctx.cfg)


def constraint_report(encoding, ctx: EvaluationContext) -> ConstraintReport:
    hard = hard_constraint_counts(encoding, ctx)
    soft = soft_constraint_values(encoding, ctx)
    penalty = _weighted(soft, ctx.cfg)
    return ConstraintReport(
        hard_constraints=hard,
        soft_constraints=soft,
        soft_penalty=penalty,
        fitness=fitness_from(sum(hard.values()), penalty, ctx.cfg),
    )

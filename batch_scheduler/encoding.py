"""
Chromosome of the genetic algorithm: one candidate week for one batch,
stored as an ordered list of placed sessions (genes).
"""
from typing import Dict, List, Optional

from .evaluation import ConstraintReport, EvaluationContext, calculate_fitness, constraint_report
from .model import Session


class Encoding:
    def __init__(self, genes: Optional[List[Session]] = None, fitness: float = 0.0):
        self.genes: List[Session] = list(genes or [])
        self.fitness = fitness

    def __len__(self) -> int:
        return len(self.genes)

    def __repr__(self) -> str:
        return f"Encoding(genes={len(self.genes)}, fitness={self.fitness:.2f})"

    def evaluate(self, ctx: EvaluationContext) -> float:
        self.fitness = calculate_fitness(self, ctx)
        return self.fitness

    def report(self, ctx: EvaluationContext) -> ConstraintReport:
        return constraint_report(self, ctx)

    def clone(self) -> "Encoding":
        # Sessions are frozen, so a new list is a full value copy.
        return Encoding(list(self.genes), self.fitness)

    def hours_by_subject(self) -> Dict[str, int]:
        hours: Dict[str, int] = {}
        for g in self.genes:
            hours[g.subject_id] = hours.get(g.subject_id, 0) + g.duration
        return hours

import enum
import logging
import random
import time
from typing import Dict, List, Optional

from .availability import GlobalAvailabilityIndex
from .config import SchedulerConfig
from .domains import CandidatePool
from .encoding import Encoding
from .evaluation import EvaluationContext
from .initial_population import apply_elitism, build_initial_population, tournament_selection
from .operators import mutate, single_point_crossover, swap_mutation, uniform_crossover

logger = logging.getLogger(__name__)


class EvolutionState(enum.Enum):
    INIT = "init"
    EVALUATING = "evaluating"
    ADVANCING = "advancing"
    TERMINATED = "terminated"
    DONE = "done"


class GeneticSolver:
    def __init__(
        self,
        pool: CandidatePool,
        cfg: Optional[SchedulerConfig] = None,
        availability: Optional[GlobalAvailabilityIndex] = None,
        rng: Optional[random.Random] = None,
    ):
        self.pool = pool
        self.cfg = cfg or SchedulerConfig()
        self.ctx = EvaluationContext.for_pool(pool, self.cfg, availability)
        self.rng = rng or random.Random(self.cfg.seed)
        self.history: List[Dict] = []
        self.state = EvolutionState.INIT
        self.stop_reason = ""
        self.generations_run = 0
        self.best: Optional[Encoding] = None

    def _crossover(self, p1: Encoding, p2: Encoding):
        if self.cfg.crossover == "uniform":
            return uniform_crossover(p1, p2, self.rng)
        return single_point_crossover(p1, p2, self.rng)

    def _mutate(self, child: Encoding) -> Encoding:
        cfg = self.cfg
        if cfg.mutation in ("per_gene", "both"):
            child = mutate(child, cfg.mutation_rate, self.pool, self.rng)
        if cfg.mutation in ("swap", "both") and self.rng.random() < cfg.mutation_rate:
            child = swap_mutation(child, self.rng)
        return child

    def next_generation(self, population: List[Encoding]) -> List[Encoding]:
        """Elites plus tournament-selected, recombined and mutated offspring."""
        cfg = self.cfg
        new_pop = [e.clone() for e in apply_elitism(population, cfg.elite_ratio)]

        while len(new_pop) < cfg.population_size:
            p1 = tournament_selection(population, cfg.tournament_size, self.rng)
            p2 = tournament_selection(population, cfg.tournament_size, self.rng)
            if self.rng.random() < cfg.crossover_rate:
                child1, child2 = self._crossover(p1, p2)
            else:
                child1, child2 = p1.clone(), p2.clone()

            new_pop.append(self._mutate(child1))
            if len(new_pop) < cfg.population_size:
                new_pop.append(self._mutate(child2))
        return new_pop

    def evolve(self, population: Optional[List[Encoding]] = None) -> Encoding:
        """
        Run the generational loop and return the best encoding ever seen.

        Stops when the generation budget is spent, when the current best
        reaches ``target_fitness``, after ``stagnation_limit`` generations
        without improvement, or when ``time_limit`` seconds have elapsed. The
        result may still violate hard constraints; callers inspect its report.
        """
        cfg = self.cfg
        started = time.perf_counter()
        if population is None:
            population = build_initial_population(
                self.pool, cfg.population_size, self.rng, cfg.max_placement_attempts
            )
        logger.info(
            "Starting GA for %s: population=%d generations=%d mutation=%.2f",
            self.pool.batch.name, len(population), cfg.generations, cfg.mutation_rate,
        )

        best_fitness = float("-inf")
        stagnation = 0
        self.stop_reason = "generation budget exhausted"

        for gen in range(cfg.generations):
            self.state = EvolutionState.EVALUATING
            for enc in population:
                enc.evaluate(self.ctx)
            population.sort(key=lambda e: e.fitness, reverse=True)
            self.generations_run = gen + 1

            current = population[0]
            if current.fitness > best_fitness:
                self.best = current.clone()
                best_fitness = current.fitness
                stagnation = 0
                logger.info("Gen %d: new best fitness = %.2f", gen, best_fitness)
            else:
                stagnation += 1

            avg = sum(e.fitness for e in population) / len(population)
            self.history.append({"gen": gen, "best_fitness": current.fitness,
                                 "avg_fitness": avg, "best_ever": best_fitness})
            if gen % 10 == 0 and gen > 0:
                logger.info("Gen %d: best=%.2f avg=%.2f", gen, current.fitness, avg)

            if current.fitness >= cfg.target_fitness:
                self.stop_reason = f"target fitness reached in generation {gen}"
                break
            if stagnation >= cfg.stagnation_limit:
                self.stop_reason = f"no improvement for {cfg.stagnation_limit} generations"
                break
            if cfg.time_limit is not None and time.perf_counter() - started >= cfg.time_limit:
                self.stop_reason = f"time limit of {cfg.time_limit}s reached"
                break
            if gen == cfg.generations - 1:
                break

            self.state = EvolutionState.ADVANCING
            population = self.next_generation(population)

        self.state = EvolutionState.TERMINATED
        logger.info("Evolution stopped after %d generations: %s", self.generations_run, self.stop_reason)
        self._log_report()
        self.state = EvolutionState.DONE
        return self.best

    def _log_report(self) -> None:
        report = self.best.report(self.ctx)
        logger.info("Best fitness achieved: %.2f", report.fitness)
        for name, count in report.hard_constraints.items():
            level = logging.INFO if count == 0 else logging.WARNING
            logger.log(level, "  hard %s: %d violations", name, count)
        for name, value in report.soft_constraints.items():
            logger.info("  soft %s: %.2f", name, value)

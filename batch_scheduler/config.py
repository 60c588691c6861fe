"""
Scheduler configuration.

Includes a YAML (or JSON) loader so GA parameters and fitness weights can be
kept in a file and reproduced between runs.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import json

import yaml

from .exceptions import ConfigError


BLOCK_POLICIES = ("unit", "lab_pairs")
CROSSOVER_KINDS = ("single_point", "uniform")
MUTATION_OPERATORS = ("per_gene", "swap", "both")


@dataclass
class SchedulerConfig:
    # Genetic algorithm
    population_size: int = 50
    generations: int = 100
    tournament_size: int = 3
    mutation_rate: float = 0.15
    elite_ratio: float = 0.1
    crossover_rate: float = 0.8
    crossover: str = "single_point"
    mutation: str = "per_gene"
    target_fitness: float = 1000.0
    stagnation_limit: int = 20
    max_placement_attempts: int = 50
    seed: Optional[int] = None
    time_limit: Optional[float] = None  # seconds, whole run

    # Fitness
    base_fitness: float = 1000.0
    hard_violation_weight: float = 100.0
    weight_gaps: float = 10.0
    weight_load_imbalance: float = 5.0
    weight_afternoon_theory: float = 3.0
    weight_consecutive_days: float = 2.0
    gap_limit_minutes: int = 180

    # Domain
    block_policy: str = "lab_pairs"
    max_lab_block: int = 2
    committed_statuses: Tuple[str, ...] = field(default_factory=lambda: ("active", "published"))
    faculty_load_warning: int = 20

    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        merged["committed_statuses"] = tuple(merged["committed_statuses"])
        return cls(**merged)

    def __post_init__(self):
        for name in ("mutation_rate", "elite_ratio", "crossover_rate"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{name} must be within [0, 1]", {name: value})
        for name in ("population_size", "generations", "tournament_size", "max_lab_block"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1", {name: getattr(self, name)})
        if self.block_policy not in BLOCK_POLICIES:
            raise ConfigError(
                f"unknown block policy {self.block_policy!r}",
                {"allowed": list(BLOCK_POLICIES)},
            )
        if self.crossover not in CROSSOVER_KINDS:
            raise ConfigError(
                f"unknown crossover {self.crossover!r}",
                {"allowed": list(CROSSOVER_KINDS)},
            )
        if self.mutation not in MUTATION_OPERATORS:
            raise ConfigError(
                f"unknown mutation {self.mutation!r}",
                {"allowed": list(MUTATION_OPERATORS)},
            )

    @property
    def elite_size(self) -> int:
        return int(self.population_size * self.elite_ratio)


def _load_yaml_or_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text) or {}
    return yaml.safe_load(text) or {}


def load_config(path: str = "config.yaml") -> SchedulerConfig:
    cfg_path = Path(path)
    data = _load_yaml_or_json(cfg_path)
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")
    return SchedulerConfig.from_dict(data)

import argparse
import logging
import random
import sys
import time
from pathlib import Path
from typing import List

import pandas as pd

from batch_scheduler.config import load_config
from batch_scheduler.data_loader import (
    build_batch, build_classrooms, build_committed_schedules, load_data, sessions_to_dataframe,
)
from batch_scheduler.exceptions import InvalidBatchError, SchedulerError
from batch_scheduler.model import Session
from batch_scheduler.scheduler import SchedulingResult, run_ga, run_greedy
from batch_scheduler.suggestions import generate_suggestions
from batch_scheduler.timegrid import DAYS, SLOT_STARTS, covered_slots
from batch_scheduler.validation import ensure_schedulable

logger = logging.getLogger("batch_scheduler.run")


def timetable_grid(sessions: List[Session]) -> pd.DataFrame:
    """Slot x day matrix with one "subject@room" label per occupied hour."""
    grid = pd.DataFrame("", index=list(SLOT_STARTS), columns=list(DAYS))
    for s in sessions:
        for slot in covered_slots(s.start_time, s.duration):
            label = f"{s.subject_id}@{s.room_id}"
            current = grid.at[slot, s.day]
            grid.at[slot, s.day] = f"{current} {label}".strip()
    return grid


def print_report(result: SchedulingResult, elapsed: float) -> None:
    report = result.report
    print("\n" + "=" * 80)
    print(f"STRATEGY: {result.strategy} | Fitness: {report.fitness:.2f} | Time: {elapsed:.2f}s")
    if result.strategy == "ga":
        print(f"Generations: {result.generations_run} ({result.stop_reason})")
    print("=" * 80)
    with pd.option_context("display.width", 200, "display.max_columns", None):
        print(timetable_grid(result.sessions))
    print("\nHard constraints:")
    for name, count in report.hard_constraints.items():
        print(f"  {'OK ' if count == 0 else 'ERR'} {name}: {count}")
    print("Soft constraints:")
    for name, value in report.soft_constraints.items():
        print(f"  {name}: {value:.2f}")
    if result.shortfall:
        print(f"Unscheduled hours: {result.shortfall}")
    print(f"Validator: valid={result.validation.is_valid} conflicts={result.validation.conflict_count}")
    print("=" * 80 + "\n")


def export_outputs(result: SchedulingResult, elapsed: float, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    sessions_to_dataframe(result.sessions).to_csv(out_dir / "schedule.csv", index=False)
    rows = [{"kind": "hard", "constraint": k, "value": v} for k, v in result.report.hard_constraints.items()]
    rows += [{"kind": "soft", "constraint": k, "value": v} for k, v in result.report.soft_constraints.items()]
    pd.DataFrame(rows).to_csv(out_dir / "conflicts.csv", index=False)
    if result.history:
        pd.DataFrame(result.history).to_csv(out_dir / "history.csv", index=False)
    metrics = {
        "strategy": result.strategy,
        "fitness": result.report.fitness,
        "hard_violations": result.report.hard_violations,
        "soft_penalty": result.report.soft_penalty,
        "conflict_count": result.validation.conflict_count,
        "time_sec": elapsed,
        "generations_ran": result.generations_run,
    }
    pd.DataFrame([metrics]).to_csv(out_dir / "metrics.csv", index=False)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate a weekly timetable for one batch")
    parser.add_argument("--config", default="config.yaml", help="Path to the configuration file")
    parser.add_argument("--data_dir", default="data", help="Directory holding the input CSV files")
    parser.add_argument("--batch", required=True, help="Id of the batch to schedule")
    parser.add_argument("--strategy", choices=("ga", "greedy"), default="ga")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the genetic algorithm")
    parser.add_argument("--out_dir", default="outputs")
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    logging.basicConfig(
        level=(args.log_level or cfg.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.seed is not None:
        cfg.seed = args.seed

    logger.info("Loading data from %s", args.data_dir)
    try:
        bundle = load_data(args.data_dir)
        batch = build_batch(bundle, args.batch)
    except (OSError, SchedulerError) as exc:
        logger.error("Cannot load input data: %s", exc)
        return 1

    try:
        ensure_schedulable(batch)
    except InvalidBatchError as exc:
        logger.error("%s: %s", exc, exc.issues)
        return 2

    classrooms = build_classrooms(bundle.classrooms)
    committed = build_committed_schedules(bundle.committed_slots)

    start = time.perf_counter()
    if args.strategy == "greedy":
        result = run_greedy(batch, classrooms, committed, cfg)
    else:
        result = run_ga(batch, classrooms, committed, cfg, random.Random(cfg.seed))
    elapsed = time.perf_counter() - start

    print_report(result, elapsed)
    for tip in generate_suggestions(batch, cfg):
        print(f"- {tip}")

    out_dir = Path(args.out_dir)
    export_outputs(result, elapsed, out_dir)
    print(f"Results saved to {out_dir / 'schedule.csv'} and {out_dir / 'conflicts.csv'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

import json
import tempfile
import unittest
from pathlib import Path

import pandas as pd

from batch_scheduler.config import SchedulerConfig, load_config
from batch_scheduler.data_loader import (
    build_batch, build_classrooms, build_committed_schedules, load_data, sessions_to_dataframe,
)
from batch_scheduler.exceptions import ConfigError, InvalidBatchError
from batch_scheduler.model import Session


class ConfigTests(unittest.TestCase):
    def test_defaults(self):
        cfg = SchedulerConfig()
        self.assertEqual(cfg.population_size, 50)
        self.assertEqual(cfg.generations, 100)
        self.assertEqual(cfg.tournament_size, 3)
        self.assertAlmostEqual(cfg.mutation_rate, 0.15)
        self.assertEqual(cfg.elite_size, 5)
        self.assertEqual(cfg.committed_statuses, ("active", "published"))

    def test_from_dict_ignores_unknown_keys(self):
        cfg = SchedulerConfig.from_dict({"generations": 3, "colour": "blue"})
        self.assertEqual(cfg.generations, 3)
        self.assertFalse(hasattr(cfg, "colour"))

    def test_invalid_values(self):
        with self.assertRaises(ConfigError):
            SchedulerConfig(mutation_rate=1.5)
        with self.assertRaises(ConfigError):
            SchedulerConfig(population_size=0)
        with self.assertRaises(ConfigError):
            SchedulerConfig(block_policy="triples")
        with self.assertRaises(ConfigError):
            SchedulerConfig(mutation="inversion")

    def test_load_yaml_and_json(self):
        with tempfile.TemporaryDirectory() as tmp:
            yml = Path(tmp) / "config.yaml"
            yml.write_text("population_size: 12\ncommitted_statuses: [active]\n", encoding="utf-8")
            cfg = load_config(str(yml))
            self.assertEqual(cfg.population_size, 12)
            self.assertEqual(cfg.committed_statuses, ("active",))

            js = Path(tmp) / "config.json"
            js.write_text(json.dumps({"seed": 9}), encoding="utf-8")
            self.assertEqual(load_config(str(js)).seed, 9)

            self.assertEqual(load_config(str(Path(tmp) / "missing.yaml")).generations, 100)

            bad = Path(tmp) / "bad.yaml"
            bad.write_text("- 1\n- 2\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                load_config(str(bad))


class DataLoaderTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        base = Path(self.tmp.name)
        pd.DataFrame([
            {"id": "R1", "name": "Room 1", "capacity": 40, "type": "lecture", "is_active": "true"},
            {"id": "L1", "name": "Lab 1", "capacity": 30, "type": "Lab", "is_active": "false"},
        ]).to_csv(base / "classrooms.csv", index=False)
        pd.DataFrame([{"id": "B1", "name": "Batch 1", "strength": 28}]).to_csv(base / "batches.csv", index=False)
        pd.DataFrame([
            {"batch_id": "B1", "subject_id": "S1", "subject_name": "Algebra", "faculty_id": "F1",
             "hours_per_week": 3, "type": "lecture", "is_elective": "false"},
            {"batch_id": "B1", "subject_id": "S2", "subject_name": "Lab", "faculty_id": "",
             "hours_per_week": "", "type": "lab", "is_elective": "yes"},
            {"batch_id": "B2", "subject_id": "S3", "subject_name": "Other", "faculty_id": "F3",
             "hours_per_week": 1, "type": "lecture", "is_elective": "false"},
        ]).to_csv(base / "batch_subjects.csv", index=False)
        self.base = base

    def tearDown(self):
        self.tmp.cleanup()

    def test_build_entities(self):
        bundle = load_data(str(self.base))
        rooms = build_classrooms(bundle.classrooms)
        self.assertEqual([(r.id, r.type, r.is_active) for r in rooms],
                         [("R1", "lecture", True), ("L1", "lab", False)])

        batch = build_batch(bundle, "B1")
        self.assertEqual(batch.strength, 28)
        self.assertEqual([s.subject_id for s in batch.subjects], ["S1", "S2"])
        lab = batch.subjects[1]
        self.assertIsNone(lab.faculty_id)
        self.assertEqual(lab.weekly_hours, 3)
        self.assertTrue(lab.is_elective)

    def test_missing_committed_file_means_no_schedules(self):
        bundle = load_data(str(self.base))
        self.assertEqual(build_committed_schedules(bundle.committed_slots), [])

    def test_unknown_batch(self):
        with self.assertRaises(InvalidBatchError):
            build_batch(load_data(str(self.base)), "B9")

    def test_committed_round_trip(self):
        sessions = [Session("Monday", "09:00", 2, "S1", "F1", "L1", "lab"),
                    Session("Friday", "13:00", 1, "S2", "F2", "R1", "lecture")]
        df = sessions_to_dataframe(sessions)
        df.insert(0, "status", "active")
        df.insert(0, "batch_id", "B7")
        df.to_csv(self.base / "committed_slots.csv", index=False)

        schedules = build_committed_schedules(load_data(str(self.base)).committed_slots)
        self.assertEqual(len(schedules), 1)
        self.assertEqual(schedules[0].batch_id, "B7")
        self.assertEqual(schedules[0].week_slots, sessions)


if __name__ == "__main__":
    unittest.main()

import random
import unittest
from collections import Counter

from batch_scheduler.availability import GlobalAvailabilityIndex
from batch_scheduler.config import SchedulerConfig
from batch_scheduler.domains import CandidatePool, get_block_policy, lab_blocks, unit_blocks
from batch_scheduler.encoding import Encoding
from batch_scheduler.evaluation import (
    EvaluationContext, calculate_fitness, constraint_report, count_batch_overlaps,
    count_capacity_violations, count_consecutive_days, count_afternoon_theory,
    count_faculty_overlaps, count_gaps, count_lunch_break_violations,
    count_missing_hours_violations, count_room_overlaps, count_room_type_mismatches,
    count_subject_per_day_violations, count_working_hours_violations,
    calculate_load_imbalance, evaluate_hard_constraints,
)
from batch_scheduler.initial_population import (
    apply_elitism, build_initial_population, random_encoding, tournament_selection,
)
from batch_scheduler.model import Batch, Classroom, Session, SubjectRequirement
from batch_scheduler.operators import (
    mutate, repair_genes, single_point_crossover, swap_mutation, uniform_crossover,
)
from batch_scheduler.timegrid import block_fits, covered_slots, end_time, time_ranges_overlap


ROOMS = [
    Classroom("R1", 40, "lecture"),
    Classroom("S1", 35, "seminar"),
    Classroom("L1", 40, "lab"),
]


def sess(day, start, subject="A", faculty="F1", room="R1", duration=1, kind="lecture"):
    return Session(day, start, duration, subject, faculty, room, kind)


def make_batch(*reqs, strength=30):
    return Batch("B1", "Batch 1", strength, list(reqs))


def make_ctx(batch, rooms=ROOMS, availability=None):
    return EvaluationContext(batch=batch, rooms_by_id={r.id: r for r in rooms},
                             cfg=SchedulerConfig(), availability=availability)


class TimeGridTests(unittest.TestCase):
    def test_touching_intervals_do_not_overlap(self):
        self.assertFalse(time_ranges_overlap("09:00", "10:00", "10:00", "11:00"))
        self.assertFalse(time_ranges_overlap("10:00", "11:00", "09:00", "10:00"))

    def test_partial_overlap_is_symmetric(self):
        self.assertTrue(time_ranges_overlap("09:00", "10:30", "10:00", "11:00"))
        self.assertTrue(time_ranges_overlap("10:00", "11:00", "09:00", "10:30"))

    def test_end_time(self):
        self.assertEqual(end_time("11:00", 2), "13:00")
        self.assertEqual(end_time("09:30", 1), "10:30")

    def test_block_fits_rejects_lunch_and_grid_overflow(self):
        self.assertTrue(block_fits(1, 2))
        self.assertFalse(block_fits(2, 2))
        self.assertTrue(block_fits(3, 2))
        self.assertFalse(block_fits(6, 2))
        self.assertFalse(block_fits(-1, 1))

    def test_covered_slots(self):
        self.assertEqual(covered_slots("09:00", 2), ["09:00", "10:00"])
        self.assertEqual(covered_slots("11:00", 2), ["11:00"])


class BlockPolicyTests(unittest.TestCase):
    def test_lab_split(self):
        lab = SubjectRequirement("L", "F", 3, "lab")
        self.assertEqual(lab_blocks(lab), [2, 1])
        self.assertEqual(lab_blocks(SubjectRequirement("L", "F", 4, "lab")), [2, 2])
        self.assertEqual(unit_blocks(lab), [1, 1, 1])

    def test_lectures_always_use_single_hours(self):
        lec = SubjectRequirement("A", "F", 3, "lecture")
        self.assertEqual(get_block_policy("lab_pairs")(lec), [1, 1, 1])

    def test_unknown_policy(self):
        with self.assertRaises(ValueError):
            get_block_policy("weekly")


class EvaluationTests(unittest.TestCase):
    def test_faculty_overlap_detected(self):
        enc = Encoding([sess("Monday", "09:00", "A", room="R1"),
                        sess("Monday", "09:00", "B", room="S1")])
        self.assertGreaterEqual(count_faculty_overlaps(enc), 1)
        self.assertEqual(count_room_overlaps(enc), 0)
        self.assertEqual(count_batch_overlaps(enc), 1)

    def test_multi_hour_overlap(self):
        enc = Encoding([sess("Monday", "09:00", "A", duration=2),
                        sess("Monday", "10:00", "B", faculty="F2", room="S1")])
        self.assertEqual(count_faculty_overlaps(enc), 0)
        self.assertEqual(count_batch_overlaps(enc), 1)

    def test_clean_schedule(self):
        batch = make_batch(SubjectRequirement("A", "F1", 2), SubjectRequirement("B", "F2", 1, "lab"))
        enc = Encoding([
            sess("Monday", "09:00", "A"),
            sess("Wednesday", "09:00", "A"),
            sess("Friday", "09:00", "B", "F2", "L1", kind="lab"),
        ])
        ctx = make_ctx(batch)
        self.assertEqual(evaluate_hard_constraints(enc, ctx), 1)
        # one session on three of six days -> std 0.5
        self.assertAlmostEqual(calculate_load_imbalance(enc), 0.5)
        self.assertAlmostEqual(calculate_fitness(enc, ctx), 1000 - 0.5 * 5)

    def test_room_rules(self):
        batch = make_batch(SubjectRequirement("A", "F1", 1))
        small = Classroom("X", 20, "lecture")
        rooms = {r.id: r for r in ROOMS + [small]}
        self.assertEqual(count_capacity_violations([sess("Monday", "09:00", room="X")], batch, rooms), 1)
        self.assertEqual(count_room_type_mismatches([sess("Monday", "09:00", room="L1")], rooms), 1)
        self.assertEqual(count_room_type_mismatches([sess("Monday", "09:00", room="R1", kind="lab")], rooms), 1)
        self.assertEqual(count_room_type_mismatches([sess("Monday", "09:00", room="S1")], rooms), 0)

    def test_time_rules(self):
        self.assertEqual(count_lunch_break_violations([sess("Monday", "11:00", duration=2)]), 1)
        self.assertEqual(count_lunch_break_violations([sess("Monday", "11:00")]), 0)
        self.assertEqual(count_working_hours_violations([sess("Monday", "16:00", duration=2)]), 1)
        self.assertEqual(count_working_hours_violations([sess("Monday", "08:00")]), 1)

    def test_subject_per_day_and_missing_hours(self):
        genes = [sess("Monday", t) for t in ("09:00", "10:00", "11:00")]
        self.assertEqual(count_subject_per_day_violations(genes), 2)
        reqs = [SubjectRequirement("A", "F1", 5), SubjectRequirement("Z", "F9", 2)]
        self.assertEqual(count_missing_hours_violations(genes, reqs), 2 + 2)

    def test_soft_counters(self):
        genes = [sess("Monday", "09:00"), sess("Monday", "11:00", "B"), sess("Monday", "16:00", "C")]
        # 1h gap counted, 4h gap (12:00-16:00) ignored
        self.assertAlmostEqual(count_gaps(genes), 1.0)
        self.assertEqual(count_afternoon_theory(genes), 1)
        self.assertEqual(count_afternoon_theory([sess("Monday", "14:00", kind="lab")]), 0)
        self.assertEqual(count_consecutive_days([sess("Monday", "09:00"), sess("Tuesday", "09:00"),
                                                 sess("Thursday", "09:00")]), 1)

    def test_fitness_penalizes_violations(self):
        batch = make_batch(SubjectRequirement("A", "F1", 2))
        enc = Encoding([sess("Monday", "09:00"), sess("Monday", "10:00")])
        ctx = make_ctx(batch)
        report = constraint_report(enc, ctx)
        self.assertEqual(report.hard_constraints["subject_per_day_violations"], 1)
        self.assertEqual(report.hard_violations, 1)
        self.assertFalse(report.is_feasible)
        self.assertAlmostEqual(report.fitness, 1000 - 100 - report.soft_penalty)
        self.assertAlmostEqual(enc.evaluate(ctx), report.fitness)

    def test_external_conflicts_with_committed_schedules(self):
        batch = make_batch(SubjectRequirement("A", "F1", 1))
        index = GlobalAvailabilityIndex(faculty=[("F1", "Monday", "09:00")])
        report = constraint_report(Encoding([sess("Monday", "09:00")]), make_ctx(batch, availability=index))
        self.assertEqual(report.hard_constraints["external_conflicts"], 1)
        empty = constraint_report(Encoding([sess("Monday", "09:00")]), make_ctx(batch))
        self.assertNotIn("external_conflicts", empty.hard_constraints)


def make_pool(policy="lab_pairs", rooms=ROOMS):
    batch = make_batch(
        SubjectRequirement("A", "F1", 3),
        SubjectRequirement("B", "F2", 2, "seminar"),
        SubjectRequirement("L", "F3", 3, "lab"),
        SubjectRequirement("C", "F4", 2),
    )
    return CandidatePool.build(batch, rooms, get_block_policy(policy))


class PopulationTests(unittest.TestCase):
    def test_random_encoding_covers_required_hours(self):
        pool = make_pool()
        enc = random_encoding(pool, random.Random(3))
        self.assertEqual(enc.hours_by_subject(), {"A": 3, "B": 2, "L": 3, "C": 2})
        lab_durations = sorted(g.duration for g in enc.genes if g.subject_id == "L")
        self.assertEqual(lab_durations, [1, 2])
        for g in enc.genes:
            self.assertEqual(g.room_id == "L1", g.subject_id == "L")

    def test_missing_room_type_omits_subject(self):
        pool = make_pool(rooms=[Classroom("R1", 40, "lecture")])
        enc = random_encoding(pool, random.Random(1))
        self.assertNotIn("L", enc.hours_by_subject())

    def test_initial_population_size(self):
        population = build_initial_population(make_pool(), 7, random.Random(0))
        self.assertEqual(len(population), 7)

    def test_tournament_picks_fittest_contender(self):
        weak, strong = Encoding(fitness=1.0), Encoding(fitness=5.0)
        self.assertIs(tournament_selection([weak, strong], 64, random.Random(2)), strong)

    def test_elitism(self):
        population = [Encoding(fitness=float(10 - i)) for i in range(10)]
        self.assertEqual(len(apply_elitism(population, 0.1)), 1)
        self.assertEqual([e.fitness for e in apply_elitism(population, 0.25)], [10.0, 9.0])


class OperatorTests(unittest.TestCase):
    def setUp(self):
        self.pool = make_pool()
        self.rng = random.Random(11)
        self.p1 = random_encoding(self.pool, self.rng)
        self.p2 = random_encoding(self.pool, self.rng)
        # shuffle so lab blocks sit at different positions in each parent
        self.rng.shuffle(self.p2.genes)

    def test_crossover_repair_keeps_parent_hours(self):
        for _ in range(30):
            c1, c2 = single_point_crossover(self.p1, self.p2, self.rng)
            self.assertEqual(c1.hours_by_subject(), self.p1.hours_by_subject())
            self.assertEqual(c2.hours_by_subject(), self.p2.hours_by_subject())

    def test_uniform_crossover_keeps_parent_hours(self):
        c1, c2 = uniform_crossover(self.p1, self.p2, self.rng)
        self.assertEqual(c1.hours_by_subject(), self.p1.hours_by_subject())
        self.assertEqual(c2.hours_by_subject(), self.p2.hours_by_subject())

    def test_repair_drops_surplus_and_adds_missing(self):
        ref = [sess("Monday", "09:00", "A"), sess("Tuesday", "09:00", "B")]
        genes = [sess("Monday", "09:00", "A"), sess("Friday", "09:00", "A")]
        repaired = repair_genes(genes, ref)
        self.assertEqual(Counter(g.subject_id for g in repaired), Counter({"A": 1, "B": 1}))
        self.assertEqual(repaired[0].day, "Monday")

    def test_short_parents_are_cloned(self):
        a = Encoding([sess("Monday", "09:00")])
        b = Encoding([sess("Tuesday", "09:00")])
        c1, c2 = single_point_crossover(a, b, self.rng)
        self.assertEqual(c1.genes, a.genes)
        self.assertIsNot(c1, a)
        self.assertEqual(c2.genes, b.genes)

    def test_mutation_keeps_identity_fields(self):
        mutated = mutate(self.p1, 1.0, self.pool, self.rng)
        before = [(g.subject_id, g.faculty_id, g.duration) for g in self.p1.genes]
        after = [(g.subject_id, g.faculty_id, g.duration) for g in mutated.genes]
        self.assertEqual(before, after)
        for g in mutated.genes:
            self.assertIn(g.room_id, [r.id for r in self.pool.room_pool(g.session_type)])

    def test_mutation_does_not_touch_parent(self):
        snapshot = list(self.p1.genes)
        mutate(self.p1, 1.0, self.pool, self.rng)
        self.assertEqual(self.p1.genes, snapshot)
        self.assertEqual(mutate(self.p1, 0.0, self.pool, self.rng).genes, snapshot)

    def test_swap_mutation_permutes(self):
        swapped = swap_mutation(self.p1, self.rng)
        self.assertEqual(Counter(swapped.genes), Counter(self.p1.genes))


if __name__ == "__main__":
    unittest.main()

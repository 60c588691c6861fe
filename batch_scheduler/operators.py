import random
from collections import Counter
from typing import List, Optional, Tuple

from .domains import CandidatePool
from .encoding import Encoding
from .model import Session
from .timegrid import DAYS, SLOT_STARTS

MUTATION_KINDS = ("day", "time", "room")


def repair_genes(genes: List[Session], reference: List[Session]) -> List[Session]:
    """
    Bring a recombined gene list back in line with a reference parent.

    Blocks are counted per (subject, duration): surplus blocks are dropped
    from the end and missing ones are copied from the reference, so every
    subject ends up with exactly the reference's hours.
    """
    expected = Counter((g.subject_id, g.duration) for g in reference)
    actual = Counter((g.subject_id, g.duration) for g in genes)

    repaired = list(genes)
    for key, count in actual.items():
        excess = count - expected.get(key, 0)
        i = len(repaired) - 1
        while excess > 0 and i >= 0:
            if (repaired[i].subject_id, repaired[i].duration) == key:
                del repaired[i]
                excess -= 1
            i -= 1

    for key, count in expected.items():
        missing = count - actual.get(key, 0)
        if missing <= 0:
            continue
        donors = [g for g in reference if (g.subject_id, g.duration) == key]
        repaired.extend(donors[:missing])
    return repaired


def single_point_crossover(
    p1: Encoding, p2: Encoding, rng: Optional[random.Random] = None
) -> Tuple[Encoding, Encoding]:
    """Cut both parents at one point and swap tails; each child is repaired against its head parent."""
    rng = rng or random.Random()
    shortest = min(len(p1.genes), len(p2.genes))
    if shortest < 2:
        return p1.clone(), p2.clone()

    point = rng.randint(1, shortest - 1)
    child1 = p1.genes[:point] + p2.genes[point:]
    child2 = p2.genes[:point] + p1.genes[point:]
    return Encoding(repair_genes(child1, p1.genes)), Encoding(repair_genes(child2, p2.genes))


def uniform_crossover(
    p1: Encoding, p2: Encoding, rng: Optional[random.Random] = None
) -> Tuple[Encoding, Encoding]:
    """Each position comes from either parent with equal probability."""
    rng = rng or random.Random()
    if len(p1.genes) != len(p2.genes):
        return single_point_crossover(p1, p2, rng)

    genes1, genes2 = [], []
    for g1, g2 in zip(p1.genes, p2.genes):
        if rng.random() < 0.5:
            genes1.append(g1)
            genes2.append(g2)
        else:
            genes1.append(g2)
            genes2.append(g1)
    return Encoding(repair_genes(genes1, p1.genes)), Encoding(repair_genes(genes2, p2.genes))


def mutate(
    encoding: Encoding,
    mutation_rate: float,
    pool: CandidatePool,
    rng: Optional[random.Random] = None,
) -> Encoding:
    """
    Return a mutated copy. Each gene moves with probability ``mutation_rate``
    to a random day, slot or type-matching room. Subject, faculty and
    duration never change and new clashes are not repaired.
    """
    rng = rng or random.Random()
    mutated = encoding.clone()
    for i, gene in enumerate(mutated.genes):
        if rng.random() >= mutation_rate:
            continue
        kind = rng.choice(MUTATION_KINDS)
        if kind == "day":
            mutated.genes[i] = gene.moved(day=rng.choice(DAYS))
        elif kind == "time":
            mutated.genes[i] = gene.moved(start_time=rng.choice(SLOT_STARTS))
        else:
            rooms = pool.room_pool(gene.session_type)
            if rooms:
                mutated.genes[i] = gene.moved(room_id=rng.choice(rooms).id)
    return mutated


def swap_mutation(encoding: Encoding, rng: Optional[random.Random] = None) -> Encoding:
    """
    Exchange the positions of two random genes. The week itself is unchanged;
    only the order that single-point crossover cuts through differs.
    """
    rng = rng or random.Random()
    mutated = encoding.clone()
    if len(mutated.genes) < 2:
        return mutated
    i = rng.randrange(len(mutated.genes))
    j = rng.randrange(len(mutated.genes))
    mutated.genes[i], mutated.genes[j] = mutated.genes[j], mutated.genes[i]
    return mutated

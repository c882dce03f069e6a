import random
from typing import Iterable, List, Optional, Tuple

from branchset.utils.data_types import CandidateRow, BalanceStats


class PairBalancer:
    """
    Equalises positive and negative candidate rows by sampling k = min(#pos, #neg)
    rows from each class, then shuffles the combined selection.

    The random source is injectable: pass a seeded ``random.Random`` for
    reproducible output, or leave it out to get a freshly seeded one.
    """
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()
        self.last_stats: Optional[BalanceStats] = None

    @staticmethod
    def partition(candidates: Iterable[CandidateRow]) -> Tuple[List[CandidateRow], List[CandidateRow]]:
        positives: List[CandidateRow] = []
        negatives: List[CandidateRow] = []
        for row in candidates:
            (positives if row.label else negatives).append(row)
        return positives, negatives

    def sample(self, rows: List[CandidateRow], k: int) -> List[CandidateRow]:
        shuffled = list(rows)
        self.rng.shuffle(shuffled)
        return shuffled[:k]

    def balance(self, candidates: Iterable[CandidateRow]) -> List[CandidateRow]:
        positives, negatives = self.partition(candidates)
        k = min(len(positives), len(negatives))
        self.last_stats = {"positives": len(positives), "negatives": len(negatives), "per_class": k}
        if k == 0:
            # One class is empty: nothing to balance against. Not an error.
            return []

        selected = self.sample(positives, k) + self.sample(negatives, k)
        self.rng.shuffle(selected)
        return selected

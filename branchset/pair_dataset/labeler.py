from typing import Iterable, Iterator

from branchset.utils.data_types import Beat, BeatPair, CandidateRow


def is_adjacent(a: Beat, b: Beat) -> bool:
    """
    True if an edge joins a and b. a's edges are scanned first, then b's, so
    an edge recorded on only one of its endpoints labels (a, b) and (b, a)
    the same way. A beat with no recorded edges simply contributes none.
    """
    for edge in a.neighbors or ():
        if edge.connects(a, b):
            return True
    for edge in b.neighbors or ():
        if edge.connects(a, b):
            return True
    return False


def label_pair(a: Beat, b: Beat) -> CandidateRow:
    return CandidateRow(is_adjacent(a, b), a, b)


def label_pairs(pairs: Iterable[BeatPair]) -> Iterator[CandidateRow]:
    for a, b in pairs:
        yield label_pair(a, b)

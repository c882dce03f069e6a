from typing import Iterator

from branchset.utils.data_types import BeatGraph, BeatPair


def enumerate_pairs(graph: BeatGraph) -> Iterator[BeatPair]:
    """
    Yields every ordered (a, b) pair of the graph's beats: the full N x N cross
    product, self-pairs and both orderings included. Calling it again on the
    same graph restarts the sequence from the beginning.
    """
    num_beats = len(graph)
    for i in range(num_beats):
        beat_a = graph[i]
        for j in range(num_beats):
            yield beat_a, graph[j]


def count_pairs(graph: BeatGraph) -> int:
    return len(graph) * len(graph)

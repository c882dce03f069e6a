from branchset.pair_dataset.labeler import is_adjacent, label_pairs
from branchset.pair_dataset.pair_enumerator import enumerate_pairs
from branchset.utils.data_types import BeatGraph, Edge

from conftest import make_beats, connect


def test_abc_scenario_labels(abc_graph):
    rows = list(label_pairs(enumerate_pairs(abc_graph)))
    positives = [(r.beat_a.which, r.beat_b.which) for r in rows if r.label]
    assert sorted(positives) == [(0, 1), (1, 0)]
    assert sum(1 for r in rows if not r.label) == 7


def test_symmetry_over_all_pairs():
    beats = make_beats(6)
    connect(beats[0], beats[3])
    connect(beats[2], beats[5])
    connect(beats[5], beats[1])
    connect(beats[4], beats[4])
    for a in beats:
        for b in beats:
            assert is_adjacent(a, b) == is_adjacent(b, a)


def test_edge_recorded_reversed_on_src_beat():
    a, b = make_beats(2)
    a.neighbors = [Edge(b, a)]
    assert is_adjacent(a, b)
    assert is_adjacent(b, a)


def test_absent_neighbors_is_not_an_error():
    a, b = make_beats(2)
    assert a.neighbors is None
    assert is_adjacent(a, b) is False
    b.neighbors = []
    assert is_adjacent(a, b) is False


def test_value_equal_beats_are_not_confused():
    a, b = make_beats(2)
    a_twin = make_beats(1)[0]
    connect(a, b)
    assert is_adjacent(a, b)
    assert not is_adjacent(a_twin, b)


def test_labeling_is_idempotent():
    beats = make_beats(5)
    connect(beats[1], beats[2])
    connect(beats[3], beats[0])
    graph = BeatGraph(beats)
    first = [r.label for r in label_pairs(enumerate_pairs(graph))]
    second = [r.label for r in label_pairs(enumerate_pairs(graph))]
    assert first == second

import numpy as np
import pytest

from branchset.data_processing.nearest_neighbors import NearestNeighborCalculator, segment_distance_matrix
from branchset.pair_dataset.labeler import is_adjacent
from branchset.utils.data_types import Beat, BeatGraph


def _segment(timbre0=0.0, pitch0=0.0, duration=0.25, loudness_max=-10.0):
    timbre = [0.0] * 12
    timbre[0] = timbre0
    pitches = [0.0] * 12
    pitches[0] = pitch0
    return {
        "start": 0.0, "duration": duration, "confidence": 0.5,
        "loudness_start": -20.0, "loudness_max": loudness_max,
        "pitches": pitches, "timbre": timbre,
    }


def _graph(segments_per_beat, bar_positions=None):
    beats = []
    for i, segments in enumerate(segments_per_beat):
        position = 0 if bar_positions is None else bar_positions[i]
        beats.append(Beat(which=i, start=i * 0.5, duration=0.5, index_in_parent=position,
                          overlapping_segments=segments))
    return BeatGraph(beats, title="nn")


def test_segment_distance_weights():
    base = _segment()
    dist = segment_distance_matrix([base, _segment(timbre0=3.0), _segment(pitch0=0.5),
                                    _segment(duration=0.35), _segment(loudness_max=-7.0)])
    assert dist[0, 0] == pytest.approx(0.0)
    assert dist[0, 1] == pytest.approx(3.0)    # timbre weight 1
    assert dist[0, 2] == pytest.approx(5.0)    # pitch weight 10
    assert dist[0, 3] == pytest.approx(10.0)   # duration weight 100
    assert dist[0, 4] == pytest.approx(3.0)    # loudness weight 1
    assert np.allclose(dist, dist.T)


def test_similar_beats_are_connected():
    graph = _graph([[_segment()], [_segment(timbre0=500.0)], [_segment()], [_segment(timbre0=-500.0)]])
    threshold = NearestNeighborCalculator().calculate(graph)
    assert threshold == 10
    b0, b1, b2, b3 = graph.beats
    assert [edge.dest for edge in b0.neighbors] == [b2]
    assert [edge.dest for edge in b2.neighbors] == [b0]
    assert b1.neighbors == [] and b3.neighbors == []
    assert is_adjacent(b0, b2) and is_adjacent(b2, b0)
    assert not is_adjacent(b0, b1)


def test_different_bar_positions_are_penalised():
    graph = _graph([[_segment()], [_segment()]], bar_positions=[0, 1])
    NearestNeighborCalculator().calculate(graph)
    assert graph.edge_count() == 0


def test_shared_segment_counts_as_unmatched():
    shared = _segment()
    graph = _graph([[shared], [shared]])
    distances = NearestNeighborCalculator().beat_distance_matrix(graph)
    assert distances[0, 1] == pytest.approx(100.0)


def test_missing_counterpart_segment_counts_as_unmatched():
    graph = _graph([[_segment(), _segment()], [_segment()]])
    distances = NearestNeighborCalculator().beat_distance_matrix(graph)
    assert distances[0, 1] == pytest.approx((0.0 + 100.0) / 2)
    assert distances[1, 0] == pytest.approx(0.0)


def test_beat_without_segments_never_branches_out():
    graph = _graph([[], [_segment()], [_segment()]])
    NearestNeighborCalculator().calculate(graph)
    assert graph[0].all_neighbors == []
    assert len(graph[1].neighbors) == 1


def test_max_branches_keeps_closest():
    graph = _graph([[_segment(timbre0=float(i))] for i in range(6)])
    NearestNeighborCalculator(max_branches=2).precalculate(graph)
    closest_to_first = [edge.dest.which for edge in graph[0].all_neighbors]
    assert closest_to_first == [1, 2]
    assert all(len(beat.all_neighbors) == 2 for beat in graph)
    distances = [edge.distance for edge in graph[0].all_neighbors]
    assert distances == sorted(distances)


def test_threshold_rises_until_enough_beats_branch():
    graph = _graph([[_segment()], [_segment(timbre0=12.0)]])
    threshold = NearestNeighborCalculator().calculate(graph)
    assert threshold == 15
    assert graph.edge_count() == 2


def test_threshold_stops_below_maximum():
    graph = _graph([[_segment()], [_segment(timbre0=79.0)], [_segment(timbre0=-79.0)]])
    threshold = NearestNeighborCalculator().calculate(graph)
    assert threshold == 75
    assert graph.edge_count() == 0


def test_invalid_settings():
    with pytest.raises(ValueError):
        NearestNeighborCalculator(max_branches=0)
    with pytest.raises(ValueError):
        NearestNeighborCalculator(threshold_step=0)

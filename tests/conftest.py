import random
from typing import List

import pytest

from branchset.utils.data_types import AudioFrame, Beat, BeatGraph, Edge, FrameIndex


def make_beats(count: int, duration: float = 0.5) -> List[Beat]:
    return [Beat(which=i, start=i * duration, duration=duration) for i in range(count)]


def connect(a: Beat, b: Beat, distance: float = 1.0) -> Edge:
    """Records an a -> b edge on a only, the way the branch search stores them."""
    edge = Edge(a, b, distance)
    a.neighbors = (a.neighbors or []) + [edge]
    return edge


def make_frame_index(graph: BeatGraph) -> FrameIndex:
    """Two small frames per beat whose bytes identify the beat and the frame position."""
    return {
        beat: [AudioFrame(beat.start, bytes([beat.which, 0, 1])),
               AudioFrame(beat.start + beat.duration / 2, bytes([beat.which, 1, 2, 3]))]
        for beat in graph
    }


@pytest.fixture
def abc_graph() -> BeatGraph:
    """Three beats A, B, C with a single A-B edge."""
    beats = make_beats(3)
    connect(beats[0], beats[1])
    return BeatGraph(beats, title="abc")


@pytest.fixture
def abc_frames(abc_graph) -> FrameIndex:
    return make_frame_index(abc_graph)


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)

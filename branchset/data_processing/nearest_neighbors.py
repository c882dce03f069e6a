# branchset/data_processing/nearest_neighbors.py
import time
from typing import List, Dict

import numpy as np

from branchset.utils.data_types import BeatGraph, Edge, Segment

LOG_PREFIX_NN = "[Neighbors]"

# Weights of the individual segment features in the segment distance
TIMBRE_WEIGHT = 1.0
PITCH_WEIGHT = 10.0
LOUDNESS_START_WEIGHT = 1.0
LOUDNESS_MAX_WEIGHT = 1.0
DURATION_WEIGHT = 100.0
CONFIDENCE_WEIGHT = 1.0

# Distance charged when a segment has no counterpart (or is the very same segment)
UNMATCHED_SEGMENT_DISTANCE = 100.0
# Added when two beats sit at different positions within their bars
BAR_POSITION_PENALTY = 100.0


def _pairwise_euclidean(vectors: np.ndarray) -> np.ndarray:
    squared_norms = np.sum(vectors * vectors, axis=1)
    squared = squared_norms[:, None] + squared_norms[None, :] - 2.0 * (vectors @ vectors.T)
    return np.sqrt(np.clip(squared, 0.0, None))


def _pairwise_abs(values: np.ndarray) -> np.ndarray:
    return np.abs(values[:, None] - values[None, :])


def segment_distance_matrix(segments: List[Segment]) -> np.ndarray:
    """(S, S) matrix of weighted distances between every pair of segments."""
    if not segments:
        return np.zeros((0, 0), dtype=np.float64)
    timbre = np.asarray([s["timbre"] for s in segments], dtype=np.float64)
    pitches = np.asarray([s["pitches"] for s in segments], dtype=np.float64)

    def column(key: str) -> np.ndarray:
        return np.asarray([s[key] for s in segments], dtype=np.float64)

    return (_pairwise_euclidean(timbre) * TIMBRE_WEIGHT
            + _pairwise_euclidean(pitches) * PITCH_WEIGHT
            + _pairwise_abs(column("loudness_start")) * LOUDNESS_START_WEIGHT
            + _pairwise_abs(column("loudness_max")) * LOUDNESS_MAX_WEIGHT
            + _pairwise_abs(column("duration")) * DURATION_WEIGHT
            + _pairwise_abs(column("confidence")) * CONFIDENCE_WEIGHT)


class NearestNeighborCalculator:
    def __init__(self,
                 max_branches: int = 4,            # Max candidate edges kept per beat
                 max_branch_threshold: float = 80, # Edges at or above this distance are never kept
                 threshold_start: float = 10,
                 threshold_step: float = 5,
                 target_branch_divisor: float = 6, # Aim for len(graph) / divisor branching beats
                 verbose: bool = False):
        if max_branches < 1:
            raise ValueError(f"max_branches must be >= 1, got {max_branches}")
        if threshold_step <= 0:
            raise ValueError(f"threshold_step must be positive, got {threshold_step}")
        self.max_branches = max_branches
        self.max_branch_threshold = max_branch_threshold
        self.threshold_start = threshold_start
        self.threshold_step = threshold_step
        self.target_branch_divisor = target_branch_divisor
        self.verbose = verbose

    def beat_distance_matrix(self, graph: BeatGraph) -> np.ndarray:
        """
        (N, N) matrix where entry [i, j] is the distance from beat i to beat j:
        the mean, over beat i's overlapping segments, of the distance to beat j's
        segment at the same position, plus a penalty when the beats sit at
        different bar positions. Rows of beats without segments are all inf.
        """
        num_beats = len(graph)
        segment_ids: Dict[int, int] = {}
        unique_segments: List[Segment] = []
        for beat in graph:
            for segment in beat.overlapping_segments:
                if id(segment) not in segment_ids:
                    segment_ids[id(segment)] = len(unique_segments)
                    unique_segments.append(segment)
        seg_dist = segment_distance_matrix(unique_segments)

        max_segments = max((len(beat.overlapping_segments) for beat in graph), default=0)
        # -1 pads beats that overlap fewer segments than the longest one
        beat_segments = np.full((num_beats, max(max_segments, 1)), -1, dtype=np.int64)
        for i, beat in enumerate(graph):
            for j, segment in enumerate(beat.overlapping_segments):
                beat_segments[i, j] = segment_ids[id(segment)]

        bar_positions = np.asarray(
            [-1 if beat.index_in_parent is None else beat.index_in_parent for beat in graph], dtype=np.int64)

        distances = np.full((num_beats, num_beats), np.inf, dtype=np.float64)
        for i, beat in enumerate(graph):
            num_own = len(beat.overlapping_segments)
            if num_own == 0:
                continue
            own = beat_segments[i, :num_own]                 # (m,)
            others = beat_segments[:, :num_own]              # (N, m)
            comparable = (others >= 0) & (others != own[None, :])
            per_segment = np.where(comparable,
                                   seg_dist[own[None, :], np.clip(others, 0, None)],
                                   UNMATCHED_SEGMENT_DISTANCE)
            penalty = np.where(bar_positions == bar_positions[i], 0.0, BAR_POSITION_PENALTY)
            distances[i] = per_segment.sum(axis=1) / num_own + penalty
        return distances

    def precalculate(self, graph: BeatGraph) -> int:
        """Fills every beat's all_neighbors with its closest candidate edges. Returns the edge total."""
        distances = self.beat_distance_matrix(graph)
        edge_id = 0
        for i, beat in enumerate(graph):
            row = distances[i]
            candidates = [j for j in np.argsort(row, kind="stable")
                          if j != i and row[j] < self.max_branch_threshold]
            beat.all_neighbors = []
            for j in candidates[:self.max_branches]:
                beat.all_neighbors.append(Edge(beat, graph[int(j)], float(row[j]), edge_id))
                edge_id += 1
        return edge_id

    @staticmethod
    def collect(graph: BeatGraph, threshold: float) -> int:
        """Keeps the candidate edges within threshold as each beat's neighbors. Returns the number of branching beats."""
        branching_beats = 0
        for beat in graph:
            beat.neighbors = [edge for edge in beat.all_neighbors if edge.distance <= threshold]
            if beat.neighbors:
                branching_beats += 1
        return branching_beats

    def calculate(self, graph: BeatGraph) -> float:
        """
        Builds the graph's edges, raising the distance threshold step by step
        until enough beats can branch. Returns the threshold that was applied.
        """
        start_time = time.time()
        total_candidates = self.precalculate(graph)
        target_branching = len(graph) / self.target_branch_divisor

        threshold = self.threshold_start
        branching = self.collect(graph, threshold)
        while branching < target_branching and threshold + self.threshold_step < self.max_branch_threshold:
            threshold += self.threshold_step
            branching = self.collect(graph, threshold)

        if self.verbose:
            print(f"{LOG_PREFIX_NN} [{graph.title}] {total_candidates} candidate edges, threshold {threshold}: "
                  f"{branching}/{len(graph)} beats branch, {graph.edge_count()} edges "
                  f"({time.time() - start_time:.2f}s).", flush=True)
        return threshold

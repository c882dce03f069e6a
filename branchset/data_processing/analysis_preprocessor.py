# branchset/data_processing/analysis_preprocessor.py
import json
import os
from typing import List, Dict, Tuple, Any, Optional

from branchset.utils.data_types import Beat, BeatGraph, Segment, TimedQuantum, TrackAnalysis
from branchset.utils.errors import AnalysisFormatError

LOG_PREFIX_AP = "[Analysis]"

REQUIRED_QUANTA = ("beats", "segments")
SEGMENT_KEYS = ("start", "duration", "confidence", "loudness_start", "loudness_max", "pitches", "timbre")


def load_track_analysis(path: str) -> TrackAnalysis:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Analysis file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            track = json.load(f)
    except json.JSONDecodeError as e:
        raise AnalysisFormatError(f"Analysis file {path} is not valid JSON: {e}") from e
    validate_track_analysis(track, source=path)
    return track


def validate_track_analysis(track: Any, source: str = "<memory>"):
    if not isinstance(track, dict) or not isinstance(track.get("analysis"), dict):
        raise AnalysisFormatError(f"{source}: expected an object with an 'analysis' mapping.")
    analysis = track["analysis"]
    for quantum_type in REQUIRED_QUANTA:
        if not isinstance(analysis.get(quantum_type), list):
            raise AnalysisFormatError(f"{source}: 'analysis.{quantum_type}' is missing or not a list.")
    for i, segment in enumerate(analysis["segments"]):
        missing = [k for k in SEGMENT_KEYS if k not in segment]
        if missing:
            raise AnalysisFormatError(f"{source}: segment {i} is missing {', '.join(missing)}.")


def _indices_in_parents(children: List[TimedQuantum], parents: List[TimedQuantum]) -> List[Optional[int]]:
    """
    For every child quantum, its position among the children whose start falls
    inside the same parent. Children outside every parent get None.
    Both lists must be sorted by start time.
    """
    result: List[Optional[int]] = [None] * len(children)
    last = 0
    for parent in parents:
        parent_start = parent["start"]
        parent_end = parent["start"] + parent["duration"]
        count_in_parent = 0
        for j in range(last, len(children)):
            child_start = children[j]["start"]
            if parent_start <= child_start < parent_end:
                result[j] = count_in_parent
                count_in_parent += 1
                last = j + 1
            elif child_start > parent_start:
                break
    return result


def _overlapping_segments(quantum: TimedQuantum, segments: List[Segment], first: int) -> Tuple[List[Segment], int]:
    """
    Segments that overlap the quantum's span, scanning from index `first`.
    Also returns where the next quantum's scan starts: the last overlapping
    segment, or `first` when nothing overlapped.
    """
    overlapping: List[Segment] = []
    last = first
    q_start = quantum["start"]
    q_end = quantum["start"] + quantum["duration"]
    for j in range(first, len(segments)):
        segment = segments[j]
        if segment["start"] + segment["duration"] < q_start:
            continue
        if segment["start"] > q_end:
            break
        last = j
        overlapping.append(segment)
    return overlapping, last


def preprocess_track(track: TrackAnalysis, verbose: bool = False) -> BeatGraph:
    """Turns a track analysis into a BeatGraph arena (no edges yet)."""
    validate_track_analysis(track)
    analysis: Dict[str, List[Any]] = track["analysis"]
    title = (track.get("info") or {}).get("title", "Unknown Title")

    raw_beats: List[TimedQuantum] = sorted(analysis["beats"], key=lambda q: q["start"])
    bars: List[TimedQuantum] = sorted(analysis.get("bars") or [], key=lambda q: q["start"])
    segments: List[Segment] = sorted(analysis["segments"], key=lambda q: q["start"])

    bar_positions = _indices_in_parents(raw_beats, bars)

    beats: List[Beat] = []
    first_segment = 0
    for which, raw_beat in enumerate(raw_beats):
        overlapping, first_segment = _overlapping_segments(raw_beat, segments, first_segment)
        beats.append(Beat(
            which=which,
            start=float(raw_beat["start"]),
            duration=float(raw_beat["duration"]),
            confidence=float(raw_beat.get("confidence", 0.0)),
            index_in_parent=bar_positions[which],
            overlapping_segments=overlapping,
        ))

    if verbose:
        print(f"{LOG_PREFIX_AP} [{title}] {len(beats)} beats, {len(bars)} bars, {len(segments)} segments.", flush=True)
    return BeatGraph(beats, title=title)

from typing import TypedDict, List, Dict, Tuple, Iterator, Any, Optional, NamedTuple

# Track Analysis Related (as served by the analysis endpoint)
class Segment(TypedDict):
    start: float
    duration: float
    confidence: float
    loudness_start: float
    loudness_max: float
    pitches: List[float]   # 12 chroma values
    timbre: List[float]    # 12 timbre coefficients

class TimedQuantum(TypedDict):
    start: float
    duration: float
    confidence: float

class TrackAnalysis(TypedDict):
    info: Dict[str, Any]                 # title, artist, ...
    analysis: Dict[str, List[Any]]       # sections, bars, beats, tatums, segments


# Beat Graph Related
class Beat:
    """
    One beat of a track. Beats are compared and hashed by identity: two beats
    with the same start/duration are still different beats.
    """
    def __init__(self,
                 which: int,              # Index of this beat in its graph's arena
                 start: float,            # Seconds from track start
                 duration: float,         # Seconds
                 confidence: float = 0.0,
                 index_in_parent: Optional[int] = None, # Position inside its bar
                 overlapping_segments: Optional[List[Segment]] = None,
                 neighbors: Optional[List["Edge"]] = None):
        self.which = which
        self.start = start
        self.duration = duration
        self.confidence = confidence
        self.index_in_parent = index_in_parent
        self.overlapping_segments: List[Segment] = overlapping_segments if overlapping_segments is not None else []
        self.all_neighbors: List["Edge"] = [] # Nearest-neighbour candidates, best first
        self.neighbors: Optional[List["Edge"]] = neighbors # Edges that make up the graph; None = none recorded

    @property
    def end(self) -> float:
        return self.start + self.duration

    def __repr__(self) -> str:
        return f"Beat(which={self.which}, start={self.start:.3f}, duration={self.duration:.3f})"


class Edge:
    def __init__(self, src: Beat, dest: Beat, distance: float = 0.0, edge_id: int = 0):
        self.src = src
        self.dest = dest
        self.distance = distance
        self.id = edge_id

    def connects(self, a: Beat, b: Beat) -> bool:
        """True if this edge joins a and b, whichever end was recorded as src."""
        return (self.src is a and self.dest is b) or (self.src is b and self.dest is a)

    def __repr__(self) -> str:
        return f"Edge({self.src.which} -> {self.dest.which}, distance={self.distance:.2f})"


class BeatGraph:
    """Arena of beats in track order. Not mutated while a dataset is being built."""
    def __init__(self, beats: List[Beat], title: str = "Unknown Title"):
        self.beats = beats
        self.title = title

    def __len__(self) -> int:
        return len(self.beats)

    def __iter__(self) -> Iterator[Beat]:
        return iter(self.beats)

    def __getitem__(self, index: int) -> Beat:
        return self.beats[index]

    def edge_count(self) -> int:
        return sum(len(beat.neighbors or []) for beat in self.beats)


# Audio Frame Related
class AudioFrame(NamedTuple):
    timecode_sec: float
    data: bytes

FrameGroup = List[AudioFrame]          # Ordered frames belonging to one beat
FrameIndex = Dict[Beat, FrameGroup]    # Keyed by beat identity


# Pair Dataset Related
class CandidateRow(NamedTuple):
    label: bool
    beat_a: Beat
    beat_b: Beat

class OutputRow(NamedTuple):
    label: str       # "true" / "false"
    encoded_a: str   # base64 of beat_a's concatenated frame bytes
    encoded_b: str

BeatPair = Tuple[Beat, Beat]

class BalanceStats(TypedDict):
    positives: int
    negatives: int
    per_class: int  # k = min(positives, negatives)

class DatasetBuildSummary(TypedDict):
    track_title: str
    candidate_count: int
    positive_count: int
    negative_count: int
    rows_written: int
    output_path: str

# This file makes Python treat the directory as a package.

from .analysis_preprocessor import load_track_analysis, preprocess_track
from .nearest_neighbors import NearestNeighborCalculator, segment_distance_matrix
from .audio_frame_grouper import AudioFrameGrouper

__all__ = [
    "load_track_analysis",
    "preprocess_track",
    "NearestNeighborCalculator",
    "segment_distance_matrix",
    "AudioFrameGrouper"
]

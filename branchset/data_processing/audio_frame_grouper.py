# branchset/data_processing/audio_frame_grouper.py
import os
import time
from typing import List, Optional

import librosa
import numpy as np
import torch

from branchset.utils.data_types import AudioFrame, BeatGraph, FrameIndex
from branchset.utils.errors import AudioDecodeError

LOG_PREFIX_AFG = "[Frames]"


class AudioFrameGrouper:
    """
    Cuts a track's audio into fixed-size 16-bit PCM frames and hands every
    beat the frames that start inside its time span.
    """
    def __init__(self,
                 sample_rate: int = 44100,
                 frame_size: int = 1024,   # Samples per frame
                 verbose: bool = False):
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.verbose = verbose

    def load_pcm(self, audio_path: str) -> np.ndarray:
        if not os.path.exists(audio_path):
            raise FileNotFoundError(f"Audio file not found: {audio_path}")
        try:
            waveform, _ = librosa.load(audio_path, sr=self.sample_rate, mono=True)
        except Exception as e_load:
            raise AudioDecodeError(audio_path, e_load) from e_load
        return self.to_pcm16(waveform)

    @staticmethod
    def to_pcm16(waveform: np.ndarray) -> np.ndarray:
        clipped = np.clip(waveform, -1.0, 1.0)
        return (clipped * 32767.0).astype("<i2")

    def split_frames(self, pcm: np.ndarray) -> List[AudioFrame]:
        frames: List[AudioFrame] = []
        for offset in range(0, len(pcm), self.frame_size):
            chunk = pcm[offset:offset + self.frame_size]
            frames.append(AudioFrame(offset / self.sample_rate, chunk.astype("<i2").tobytes()))
        return frames

    @staticmethod
    def group_frames(graph: BeatGraph, frames: List[AudioFrame]) -> FrameIndex:
        """
        Every frame goes to the beat whose [start, end) holds its timecode.
        Frames outside every beat are dropped; every beat gets a group, even
        an empty one.
        """
        frame_index: FrameIndex = {beat: [] for beat in graph}
        if not frames or len(graph) == 0:
            return frame_index
        timecodes = np.asarray([frame.timecode_sec for frame in frames], dtype=np.float64)
        for beat in graph:
            first = int(np.searchsorted(timecodes, beat.start, side="left"))
            last = int(np.searchsorted(timecodes, beat.end, side="left"))
            frame_index[beat] = frames[first:last]
        return frame_index

    def _load_cached_groups(self, graph: BeatGraph, cache_path: str) -> Optional[FrameIndex]:
        try:
            cached = torch.load(cache_path, weights_only=False)
        except Exception as e_load:
            print(f"{LOG_PREFIX_AFG} Warning - Failed to load frame cache ({cache_path}): {e_load}. Reprocessing.", flush=True)
            return None
        if (not isinstance(cached, dict)
                or cached.get("sample_rate") != self.sample_rate
                or cached.get("frame_size") != self.frame_size
                or len(cached.get("groups", [])) != len(graph)):
            print(f"{LOG_PREFIX_AFG} Frame cache {cache_path} does not match this track/settings. Reprocessing.", flush=True)
            return None
        return {
            beat: [AudioFrame(float(t), bytes(data)) for t, data in group]
            for beat, group in zip(graph, cached["groups"])
        }

    def _save_cached_groups(self, graph: BeatGraph, frame_index: FrameIndex, cache_path: str):
        cache_dir = os.path.dirname(cache_path)
        if cache_dir:
            os.makedirs(cache_dir, exist_ok=True)
        groups = [[(frame.timecode_sec, frame.data) for frame in frame_index[beat]] for beat in graph]
        torch.save({"sample_rate": self.sample_rate, "frame_size": self.frame_size, "groups": groups}, cache_path)

    def build_frame_index(self,
                          graph: BeatGraph,
                          audio_path: str,
                          cache_path: Optional[str] = None,
                          force_reprocess: bool = False) -> FrameIndex:
        if cache_path and not force_reprocess and os.path.exists(cache_path):
            frame_index = self._load_cached_groups(graph, cache_path)
            if frame_index is not None:
                if self.verbose:
                    print(f"{LOG_PREFIX_AFG} [{graph.title}] Frame groups loaded from cache: {cache_path}", flush=True)
                return frame_index

        start_time = time.time()
        frames = self.split_frames(self.load_pcm(audio_path))
        frame_index = self.group_frames(graph, frames)
        grouped = sum(len(group) for group in frame_index.values())
        if self.verbose:
            print(f"{LOG_PREFIX_AFG} [{graph.title}] {len(frames)} frames decoded, {grouped} assigned to "
                  f"{len(graph)} beats ({time.time() - start_time:.2f}s).", flush=True)

        if cache_path:
            self._save_cached_groups(graph, frame_index, cache_path)
        return frame_index

import base64
from typing import Iterable, List

from tqdm import tqdm

from branchset.utils.data_types import Beat, CandidateRow, FrameGroup, FrameIndex, OutputRow
from branchset.utils.errors import MissingFrameGroup


def get_frame_group(frame_index: FrameIndex, beat: Beat) -> FrameGroup:
    frame_group = frame_index.get(beat)
    if frame_group is None:
        raise MissingFrameGroup(beat)
    return frame_group


def frame_group_bytes(frame_group: FrameGroup) -> bytes:
    return b"".join(frame.data for frame in frame_group)


def encode_frame_group(frame_group: FrameGroup) -> str:
    # Standard alphabet, padding kept, no line breaks. Never contains a comma.
    return base64.b64encode(frame_group_bytes(frame_group)).decode("ascii")


def encode_row(candidate: CandidateRow, frame_index: FrameIndex) -> OutputRow:
    encoded_a = encode_frame_group(get_frame_group(frame_index, candidate.beat_a))
    encoded_b = encode_frame_group(get_frame_group(frame_index, candidate.beat_b))
    return OutputRow("true" if candidate.label else "false", encoded_a, encoded_b)


def encode_rows(candidates: Iterable[CandidateRow],
                frame_index: FrameIndex,
                show_progress: bool = True) -> List[OutputRow]:
    candidates = list(candidates)
    return [
        encode_row(candidate, frame_index)
        for candidate in tqdm(candidates, desc="Encoding pairs", disable=not show_progress)
    ]

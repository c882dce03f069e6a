# This file makes Python treat the directory as a package.

from .pair_enumerator import enumerate_pairs, count_pairs
from .labeler import is_adjacent, label_pair, label_pairs
from .balancer import PairBalancer
from .row_encoder import encode_row, encode_rows, encode_frame_group
from .appender import append_rows
from .pipeline import build_pair_dataset

__all__ = [
    "enumerate_pairs",
    "count_pairs",
    "is_adjacent",
    "label_pair",
    "label_pairs",
    "PairBalancer",
    "encode_row",
    "encode_rows",
    "encode_frame_group",
    "append_rows",
    "build_pair_dataset"
]

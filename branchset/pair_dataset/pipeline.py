import random
import time
from typing import Optional

from branchset.pair_dataset.pair_enumerator import enumerate_pairs, count_pairs
from branchset.pair_dataset.labeler import label_pairs
from branchset.pair_dataset.balancer import PairBalancer
from branchset.pair_dataset.row_encoder import encode_rows
from branchset.pair_dataset.appender import append_rows
from branchset.utils.data_types import BeatGraph, FrameIndex, DatasetBuildSummary

LOG_PREFIX_PD = "[PairDataset]"


def build_pair_dataset(graph: BeatGraph,
                       frame_index: FrameIndex,
                       output_path: str,
                       rng: Optional[random.Random] = None,
                       verbose: bool = True) -> DatasetBuildSummary:
    """
    Runs enumerate -> label -> balance -> encode -> append for one track and
    returns a summary of what was written.

    Every selected row is encoded before the output file is opened, so a
    MissingFrameGroup aborts the run without appending anything.
    """
    start_time = time.time()
    if verbose:
        print(f"{LOG_PREFIX_PD} [{graph.title}] Labeling {count_pairs(graph)} beat pairs "
              f"({len(graph)} beats, {graph.edge_count()} edges)...", flush=True)

    balancer = PairBalancer(rng)
    selected = balancer.balance(label_pairs(enumerate_pairs(graph)))
    stats = balancer.last_stats

    if verbose:
        print(f"{LOG_PREFIX_PD} [{graph.title}] Candidates: {stats['positives']} adjacent, "
              f"{stats['negatives']} non-adjacent. Keeping {stats['per_class']} of each.", flush=True)

    rows_written = 0
    if selected:
        output_rows = encode_rows(selected, frame_index, show_progress=verbose)
        rows_written = append_rows(output_path, output_rows)
    elif verbose:
        print(f"{LOG_PREFIX_PD} [{graph.title}] Warning: One class is empty, no rows to write.", flush=True)

    if verbose:
        print(f"{LOG_PREFIX_PD} [{graph.title}] Appended {rows_written} rows to {output_path} "
              f"in {time.time() - start_time:.2f}s.", flush=True)

    return {
        "track_title": graph.title,
        "candidate_count": stats["positives"] + stats["negatives"],
        "positive_count": stats["positives"],
        "negative_count": stats["negatives"],
        "rows_written": rows_written,
        "output_path": output_path,
    }

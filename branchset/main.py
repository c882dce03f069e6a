import argparse
import os
import random
import sys
import time
from typing import List, Optional, Dict, Any

from branchset.data_acquisition.track_fetcher import TrackFetcher
from branchset.data_processing.analysis_preprocessor import load_track_analysis, preprocess_track
from branchset.data_processing.nearest_neighbors import NearestNeighborCalculator
from branchset.data_processing.audio_frame_grouper import AudioFrameGrouper
from branchset.pair_dataset.pipeline import build_pair_dataset
from branchset.utils.config import load_config
from branchset.utils.data_types import DatasetBuildSummary
from branchset.utils.errors import BranchSetError

DEFAULT_SONG_ID = "03UrZgTINDqvnUMbbIMhql" # Gangnam Style
DEFAULT_CONFIG_PATH = os.path.join("config", "branchset_config.yaml")


def build_dataset_for_song(song_id: str,
                           config: Dict[str, Any],
                           force_reprocess: bool = False) -> DatasetBuildSummary:
    fetcher = TrackFetcher(base_url=config["base_url"],
                           data_dir=config["data_dir"],
                           analysis_url=config["analysis_url"],
                           audio_url=config["audio_url"],
                           timeout=config["request_timeout"])
    print("Downloading analysis...", flush=True)
    analysis_path = fetcher.fetch_analysis(song_id)
    print("Downloading audio...", flush=True)
    audio_path = fetcher.fetch_audio(song_id)

    track = load_track_analysis(analysis_path)
    print(f"Preprocessing {(track.get('info') or {}).get('title', song_id)}...", flush=True)
    graph = preprocess_track(track, verbose=True)

    NearestNeighborCalculator(max_branches=config["max_branches"],
                              max_branch_threshold=config["max_branch_threshold"],
                              threshold_start=config["threshold_start"],
                              threshold_step=config["threshold_step"],
                              target_branch_divisor=config["target_branch_divisor"],
                              verbose=True).calculate(graph)

    print("Separating audio...", flush=True)
    grouper = AudioFrameGrouper(sample_rate=config["sample_rate"], frame_size=config["frame_size"], verbose=True)
    cache_path = os.path.join(config["cache_dir"], f"{song_id}_frames.pt")
    frame_index = grouper.build_frame_index(graph, audio_path, cache_path=cache_path, force_reprocess=force_reprocess)

    print("Writing pair data...", flush=True)
    seed = config.get("random_seed")
    rng = random.Random(seed) if seed is not None else random.Random()
    return build_pair_dataset(graph, frame_index, config["output_csv"], rng=rng)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a balanced beat-pair (branch / no branch) dataset for a song.")
    parser.add_argument("song_id", nargs="?", default=DEFAULT_SONG_ID, help=f"Song id to process. Default: {DEFAULT_SONG_ID}")
    parser.add_argument("--config", default=None, help=f"YAML config file. Default: {DEFAULT_CONFIG_PATH} if it exists, else built-in defaults.")
    parser.add_argument("--data_dir", default=None, help="Directory for downloaded analysis and audio files. Overrides the config.")
    parser.add_argument("--output_csv", default=None, help="Dataset file rows are appended to. Overrides the config.")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for class balancing. Overrides the config.")
    parser.add_argument("--force_reprocess", action="store_true", help="Ignore the cached frame groups and decode the audio again.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config_path = args.config
    if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
        config_path = DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e_config:
        print(f"ERROR: Could not load configuration: {e_config}", flush=True)
        return 1

    if args.data_dir: config["data_dir"] = args.data_dir
    if args.output_csv: config["output_csv"] = args.output_csv
    if args.seed is not None: config["random_seed"] = args.seed

    start_time = time.time()
    try:
        summary = build_dataset_for_song(args.song_id, config, force_reprocess=args.force_reprocess)
    except (BranchSetError, OSError, ValueError) as e:
        print(f"ERROR [{args.song_id}]: {type(e).__name__} - {e}", flush=True)
        return 1

    print(f"Done! {summary['rows_written']} rows ({summary['candidate_count']} candidates) "
          f"appended to {summary['output_path']} in {time.time() - start_time:.1f}s.", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())

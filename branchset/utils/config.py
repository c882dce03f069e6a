import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

LOG_PREFIX_CFG = "[Config]"

DEFAULT_CONFIG: Dict[str, Any] = {
    # Remote analysis / audio service
    "base_url": "https://eternalbox.dev/api",
    "analysis_url": "{base_url}/analysis/analyse/{song_id}",
    "audio_url": "{base_url}/audio/jukebox/{song_id}",
    "request_timeout": 30,
    # Local storage
    "data_dir": "data/tracks",
    "cache_dir": "data/frame_cache",
    "output_csv": "branches.csv",
    # Audio framing
    "sample_rate": 44100,
    "frame_size": 1024,
    # Nearest-neighbour branch search
    "max_branches": 4,
    "max_branch_threshold": 80,
    "threshold_start": 10,
    "threshold_step": 5,
    "target_branch_divisor": 6,
    # None -> fresh random source every run
    "random_seed": None,
}

# Environment variable -> config key
ENV_OVERRIDES = {
    "BRANCHSET_BASE_URL": "base_url",
    "BRANCHSET_DATA_DIR": "data_dir",
}


def load_yaml_config(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found at {path}")
    with open(path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level, got {type(loaded).__name__}.")
    return loaded


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Returns DEFAULT_CONFIG, overlaid with the YAML file at `path` (if given)
    and then with any BRANCHSET_* environment variables.
    """
    config = dict(DEFAULT_CONFIG)
    if path:
        file_values = load_yaml_config(path)
        unknown_keys = sorted(set(file_values) - set(DEFAULT_CONFIG))
        if unknown_keys:
            print(f"{LOG_PREFIX_CFG} Warning: Ignoring unknown keys in {path}: {', '.join(unknown_keys)}", flush=True)
        config.update({k: v for k, v in file_values.items() if k in DEFAULT_CONFIG})

    for env_var, key in ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            config[key] = value
    return config

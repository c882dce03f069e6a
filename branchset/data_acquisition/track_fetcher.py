# branchset/data_acquisition/track_fetcher.py
import os
from typing import Optional

import requests

from branchset.utils.config import DEFAULT_CONFIG
from branchset.utils.errors import TrackFetchError

LOG_PREFIX_TF = "[Fetch]"
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"


class TrackFetcher:
    """
    Downloads a song's analysis JSON and audio into data_dir. A file that is
    already on disk is reused as-is, no request is made for it.
    """
    def __init__(self,
                 base_url: str = DEFAULT_CONFIG["base_url"],
                 data_dir: str = DEFAULT_CONFIG["data_dir"],
                 analysis_url: str = DEFAULT_CONFIG["analysis_url"],
                 audio_url: str = DEFAULT_CONFIG["audio_url"],
                 timeout: float = DEFAULT_CONFIG["request_timeout"],
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.data_dir = data_dir
        self.analysis_url = analysis_url
        self.audio_url = audio_url
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers["User-Agent"] = USER_AGENT

    def analysis_path(self, song_id: str) -> str:
        return os.path.join(self.data_dir, f"{song_id}.json")

    def audio_path(self, song_id: str) -> str:
        return os.path.join(self.data_dir, f"{song_id}.m4a")

    def _download(self, url: str, target_path: str) -> str:
        if os.path.exists(target_path):
            print(f"{LOG_PREFIX_TF} Using existing file: {target_path}", flush=True)
            return target_path

        print(f"{LOG_PREFIX_TF} Downloading {url} -> {target_path}", flush=True)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TrackFetchError(url, e) from e

        # A half-written download must never pass the existence check.
        partial_path = f"{target_path}.part"
        try:
            os.makedirs(os.path.dirname(target_path) or ".", exist_ok=True)
            with open(partial_path, 'wb') as f:
                f.write(response.content)
            os.replace(partial_path, target_path)
        except OSError as e_write:
            raise TrackFetchError(url, e_write) from e_write
        return target_path

    def fetch_analysis(self, song_id: str) -> str:
        url = self.analysis_url.format(base_url=self.base_url, song_id=song_id)
        return self._download(url, self.analysis_path(song_id))

    def fetch_audio(self, song_id: str) -> str:
        url = self.audio_url.format(base_url=self.base_url, song_id=song_id)
        return self._download(url, self.audio_path(song_id))

# This file makes Python treat the directory as a package.

from .track_fetcher import TrackFetcher

__all__ = [
    "TrackFetcher"
]

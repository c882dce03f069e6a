from typing import Any, Optional


class BranchSetError(Exception):
    """Base class for every error raised by branchset."""


class MissingFrameGroup(BranchSetError, LookupError):
    """A beat selected for the dataset has no frame group in the frame index."""
    def __init__(self, beat: Any):
        self.beat = beat
        super().__init__(f"No frame group recorded for {beat!r}. The beat graph and frame index are inconsistent.")


class SinkWriteFailure(BranchSetError, OSError):
    """The dataset file could not be opened or written."""
    def __init__(self, path: str, reason: Optional[BaseException] = None):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not append to dataset file '{path}': {reason}")


class TrackFetchError(BranchSetError):
    def __init__(self, url: str, reason: Optional[BaseException] = None):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch '{url}': {type(reason).__name__ if reason else 'unknown'} - {reason}")


class AnalysisFormatError(BranchSetError, ValueError):
    pass


class AudioDecodeError(BranchSetError, ValueError):
    """The audio file exists but could not be decoded."""
    def __init__(self, path: str, reason: Optional[BaseException] = None):
        self.path = path
        self.reason = reason
        super().__init__(f"Could not decode audio '{path}': {type(reason).__name__ if reason else 'unknown'} - {reason}")

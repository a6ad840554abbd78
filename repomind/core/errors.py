"""Exception types raised by the indexing and retrieval core."""

from typing import List, Optional


class RepomindError(Exception):
    """Base class for all repomind failures."""
    pass


class WalkReadError(RepomindError):
    """A single file or directory could not be read.

    Never raised out of the walker or the readers; instances are recorded as
    the reason a file was skipped.
    """

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not read {path}{detail}")


class IndexWriteError(RepomindError):
    """The repository index was built but could not be written to disk.

    The in-memory index stays available on ``index`` so callers can carry on
    without persistence.
    """

    def __init__(self, path: str, index, cause: Optional[BaseException] = None):
        self.path = path
        self.index = index
        self.cause = cause
        super().__init__(f"Failed to write index file at {path}: {cause}")


class EmbeddingWriteError(RepomindError):
    """The embedding index was built but could not be written to disk."""

    def __init__(self, path: str, chunks: List, cause: Optional[BaseException] = None):
        self.path = path
        self.chunks = chunks
        self.cause = cause
        super().__init__(f"Failed to write embedding index at {path}: {cause}")


class ProviderError(RepomindError):
    """The embedding/generation provider failed or answered with a bad body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (status {status_code})"
        super().__init__(message)

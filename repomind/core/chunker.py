"""Fixed-size, non-overlapping character chunking."""

from dataclasses import dataclass
from typing import Any, List

from langchain_text_splitters import TextSplitter


DEFAULT_CHUNK_SIZE = 800  # characters
DEFAULT_MAX_CHUNKS_PER_FILE = 8


@dataclass(frozen=True)
class TextChunk:
    """A ``[start, end)`` slice of a file's text."""
    start: int
    end: int
    text: str


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE,
               max_chunks_per_file: int = DEFAULT_MAX_CHUNKS_PER_FILE) -> List[TextChunk]:
    """Split ``text`` into consecutive slices of ``chunk_size`` characters.

    Only the last slice may be shorter. Anything past
    ``chunk_size * max_chunks_per_file`` characters is dropped.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if max_chunks_per_file < 0:
        raise ValueError(f"max_chunks_per_file must not be negative, got {max_chunks_per_file}")

    chunks = []
    start = 0
    while start < len(text) and len(chunks) < max_chunks_per_file:
        end = min(start + chunk_size, len(text))
        chunks.append(TextChunk(start=start, end=end, text=text[start:end]))
        start = end
    return chunks


class FixedWindowSplitter(TextSplitter):
    """Text splitter cutting fixed windows with no overlap and no whitespace stripping.

    Unlike the recursive splitters it keeps exact character offsets, which the
    embedding index stores next to each vector.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE,
                 max_chunks_per_file: int = DEFAULT_MAX_CHUNKS_PER_FILE, **kwargs: Any):
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=0, **kwargs)
        self.max_chunks_per_file = max_chunks_per_file

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def split_spans(self, text: str) -> List[TextChunk]:
        return chunk_text(text, self._chunk_size, self.max_chunks_per_file)

    def split_text(self, text: str) -> List[str]:
        return [chunk.text for chunk in self.split_spans(text)]

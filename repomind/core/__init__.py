"""Core indexing and retrieval modules."""

from .chunker import FixedWindowSplitter, TextChunk, chunk_text
from .errors import (
    EmbeddingWriteError,
    IndexWriteError,
    ProviderError,
    RepomindError,
    WalkReadError,
)
from .models import EmbeddingChunk, IndexEntry, RepositoryIndex
from .prompt_builder import assemble_prompt
from .repository_parser import build_index, find_index_file, load_index, walk_repository
from .retriever import CodeRetriever, RetrievalResult
from .vector_store import build_embedding_index, load_embedding_index

__all__ = [
    "FixedWindowSplitter", "TextChunk", "chunk_text",
    "EmbeddingWriteError", "IndexWriteError", "ProviderError", "RepomindError", "WalkReadError",
    "EmbeddingChunk", "IndexEntry", "RepositoryIndex",
    "assemble_prompt",
    "build_index", "find_index_file", "load_index", "walk_repository",
    "CodeRetriever", "RetrievalResult",
    "build_embedding_index", "load_embedding_index",
]

"""Chunk-level embedding index, persisted next to the repository index."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from langchain_core.embeddings import Embeddings

from .chunker import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_CHUNKS_PER_FILE, FixedWindowSplitter
from .errors import EmbeddingWriteError, ProviderError
from .models import (
    VECTOR_INDEX_FILENAME,
    EmbeddingChunk,
    RepositoryIndex,
    dump_embedding_chunks,
    parse_embedding_chunks,
)
from .repository_parser import read_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddingTask:
    """A chunk waiting for its vector; id and position are fixed before dispatch."""
    id: int
    file: str
    start: int
    end: int
    text: str


def plan_embedding_tasks(root: Path, index: RepositoryIndex,
                         splitter: FixedWindowSplitter) -> List[EmbeddingTask]:
    """Read and chunk every indexed file, in entry order.

    Unreadable entries contribute no tasks at all.
    """
    tasks = []
    for entry in index.entries:
        result = read_file(root / entry.path)
        if not result.ok:
            continue
        for chunk in splitter.split_spans(result.content):
            tasks.append(EmbeddingTask(
                id=len(tasks),
                file=entry.path,
                start=chunk.start,
                end=chunk.end,
                text=chunk.text,
            ))
    return tasks


def run_ordered(func: Callable, items: Sequence, max_workers: int = 1) -> List:
    """Apply ``func`` to every item, returning results in item order.

    With ``max_workers`` above one the calls run on a bounded thread pool;
    the first failure cancels everything not yet started and is re-raised.
    """
    if max_workers <= 1:
        return [func(item) for item in items]

    pool = ThreadPoolExecutor(max_workers=max_workers)
    try:
        return list(pool.map(func, items))
    finally:
        pool.shutdown(wait=True, cancel_futures=True)


def build_embedding_index(root_dir: Union[str, Path], index: RepositoryIndex, embeddings: Embeddings,
                          output_path: Optional[Union[str, Path]] = None,
                          chunk_size: int = DEFAULT_CHUNK_SIZE,
                          max_chunks_per_file: int = DEFAULT_MAX_CHUNKS_PER_FILE,
                          max_workers: int = 1) -> List[EmbeddingChunk]:
    """Embed every chunk of every indexed file and persist the result.

    Args:
        root_dir: Repository root the index entries are relative to
        index: Repository index to embed
        embeddings: Embedding capability, called once per chunk
        output_path: Vector index location (defaults to <root>/.repomind-vec.json)
        chunk_size: Characters per chunk
        max_chunks_per_file: Chunks kept per file; the rest of the file is not embedded
        max_workers: Concurrent embedding requests

    Returns:
        The embedded chunks, ordered by id

    Raises:
        ProviderError: If any embedding request fails; nothing is written
        EmbeddingWriteError: If the vector index could not be written
    """
    root = Path(root_dir).resolve()
    splitter = FixedWindowSplitter(chunk_size=chunk_size, max_chunks_per_file=max_chunks_per_file)

    tasks = plan_embedding_tasks(root, index, splitter)
    logger.info(f"Embedding {len(tasks)} chunks from {len(index.entries)} files "
                f"(max_workers={max_workers})")

    vectors = run_ordered(lambda task: embeddings.embed_query(task.text), tasks, max_workers)

    dimensions = {len(vector) for vector in vectors}
    if len(dimensions) > 1:
        raise ProviderError(f"Embedding dimensions differ within one build: {sorted(dimensions)}")

    chunks = [
        EmbeddingChunk(id=task.id, file=task.file, start=task.start, end=task.end, embedding=vector)
        for task, vector in zip(tasks, vectors)
    ]

    target = Path(output_path) if output_path else root / VECTOR_INDEX_FILENAME
    try:
        target.write_text(dump_embedding_chunks(chunks), encoding='utf-8')
    except OSError as e:
        raise EmbeddingWriteError(str(target), chunks, e) from e

    logger.info(f"Embedding index with {len(chunks)} chunks written to {target}")
    return chunks


def load_embedding_index(vector_path: Union[str, Path]) -> Optional[List[EmbeddingChunk]]:
    """Load a vector index file.

    Returns:
        The chunks, or None when the file is missing, unreadable or not a
        valid chunk array
    """
    vector_path = Path(vector_path)
    if not vector_path.is_file():
        return None

    try:
        return parse_embedding_chunks(vector_path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unusable embedding index {vector_path}: {e}")
        return None

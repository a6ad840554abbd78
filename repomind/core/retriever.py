"""Retriever selecting the snippets sent along with a question."""

import math
import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings

from .models import EmbeddingChunk, IndexEntry, RepositoryIndex
from .repository_parser import read_file

logger = logging.getLogger(__name__)


TRUNCATION_MARKER = "\n... [truncated]"
SIMILARITY_EPSILON = 1e-8
SEMANTIC = "semantic"
LEXICAL = "lexical"

_KEYWORD_SPLIT = re.compile(r"[^a-z0-9_]+")


@dataclass
class RetrievalResult:
    """Snippets chosen for a question and the files they came from."""
    strategy: str
    snippets: List[Document] = field(default_factory=list)
    used_files: List[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.snippets)


def extract_keywords(question: str) -> List[str]:
    """Lower-cased alphanumeric/underscore tokens of 3 to 40 characters, first occurrence only."""
    keywords = []
    for token in _KEYWORD_SPLIT.split(question.lower()):
        if 3 <= len(token) <= 40 and token not in keywords:
            keywords.append(token)
    return keywords


def score_path(file_path: str, keywords: Sequence[str]) -> int:
    """Number of keywords found anywhere in the lower-cased path."""
    lower = file_path.lower()
    return sum(1 for keyword in keywords if keyword in lower)


def select_files_by_path(entries: Sequence[IndexEntry], keywords: Sequence[str],
                         max_files: int) -> List[Tuple[IndexEntry, int]]:
    """Best-scoring entries, highest score first and by path on ties."""
    if not entries or not keywords:
        return []

    scored = [(entry, score_path(entry.path, keywords)) for entry in entries]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: (-item[1], item[0].path))
    return scored[:max_files]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b| + eps)``; vectors of different length score 0."""
    if len(a) != len(b):
        return 0.0
    dot = na = nb = 0.0
    for x, y in zip(a, b):
        dot += x * y
        na += x * x
        nb += y * y
    return dot / (math.sqrt(na) * math.sqrt(nb) + SIMILARITY_EPSILON)


def rank_chunks(query_vector: Sequence[float], chunks: Sequence[EmbeddingChunk],
                top_k: int) -> List[Tuple[EmbeddingChunk, float]]:
    """Chunks ordered by similarity to the query; equal scores keep their stored order."""
    scored = [(chunk, cosine_similarity(query_vector, chunk.embedding)) for chunk in chunks]
    scored.sort(key=lambda item: item[1], reverse=True)
    return scored[:top_k]


def clip(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class CodeRetriever:
    """Picks context snippets from the embedding index, or from file paths when there is none."""

    def __init__(self, embeddings: Optional[Embeddings] = None, max_files: int = 5,
                 max_chars_per_file: int = 2000, top_k_chunks: int = 10):
        """Initialize code retriever.

        Args:
            embeddings: Embedding capability used to embed questions
            max_files: Files kept by the path-keyword search
            max_chars_per_file: Characters kept per snippet
            top_k_chunks: Chunks kept by the semantic search
        """
        self.embeddings = embeddings
        self.max_files = max_files
        self.max_chars_per_file = max_chars_per_file
        self.top_k_chunks = top_k_chunks

    def retrieve(self, question: str, index: RepositoryIndex,
                 embedding_chunks: Optional[Sequence[EmbeddingChunk]] = None) -> RetrievalResult:
        """Select snippets for a question.

        The semantic search is used whenever a non-empty embedding index is
        given, regardless of how well either search would match.

        Args:
            question: User question
            index: Repository index the snippets are read through
            embedding_chunks: Loaded embedding index, if any

        Returns:
            RetrievalResult; empty when nothing usable was found
        """
        if embedding_chunks:
            return self.search_embeddings(question, index, embedding_chunks)
        return self.search_paths(question, index)

    def search_embeddings(self, question: str, index: RepositoryIndex,
                          embedding_chunks: Sequence[EmbeddingChunk]) -> RetrievalResult:
        """Rank chunks by cosine similarity to the embedded question."""
        if self.embeddings is None:
            raise ValueError("An Embeddings instance is required to search the embedding index")

        query_vector = self.embeddings.embed_query(question)
        ranked = rank_chunks(query_vector, embedding_chunks, self.top_k_chunks)
        logger.info(f"Semantic search over {len(embedding_chunks)} chunks, kept {len(ranked)}")

        result = RetrievalResult(strategy=SEMANTIC)
        root = Path(index.root)
        for chunk, score in ranked:
            read = read_file(root / chunk.file)
            if not read.ok:
                continue
            # Offsets date from the embedding build; the file may have changed since.
            text = read.content[chunk.start:chunk.end]
            if not text:
                continue

            result.snippets.append(Document(
                page_content=clip(text, self.max_chars_per_file),
                metadata={'source': chunk.file, 'start': chunk.start, 'end': chunk.end, 'score': score},
            ))
            if chunk.file not in result.used_files:
                result.used_files.append(chunk.file)

        return result

    def search_paths(self, question: str, index: RepositoryIndex) -> RetrievalResult:
        """Score indexed paths by the question's keywords and read the best files."""
        keywords = extract_keywords(question)
        selected = select_files_by_path(index.entries, keywords, self.max_files)
        logger.info(f"Path search with keywords {keywords} matched {len(selected)} files")

        result = RetrievalResult(strategy=LEXICAL)
        root = Path(index.root)
        for entry, score in selected:
            read = read_file(root / entry.path)
            if not read.ok or not read.content:
                continue

            result.snippets.append(Document(
                page_content=clip(read.content, self.max_chars_per_file),
                metadata={'source': entry.path, 'score': score},
            ))
            result.used_files.append(entry.path)

        return result

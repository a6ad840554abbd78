"""
Pydantic models for the persisted repository and embedding indexes.

Both indexes are value snapshots: nothing here holds a live reference to the
filesystem, files are re-opened by path whenever their content is needed.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator


INDEX_FILENAME = ".repomind-index.json"
VECTOR_INDEX_FILENAME = ".repomind-vec.json"


class IndexEntry(BaseModel):
    """One indexed file."""
    path: str = Field(description="Path relative to the index root, forward slashes")
    size: int = Field(description="Size in bytes at index time", ge=0)
    ext: str = Field(description="Lower-cased extension including the leading dot")


class RepositoryIndex(BaseModel):
    """
    Snapshot of one repository walk.

    Created wholesale by a single walk and superseded, never merged, by the
    next build. Serialized with the ``generatedAt`` key.
    """
    model_config = ConfigDict(populate_by_name=True)

    root: str = Field(description="Absolute path of the indexed directory")
    generated_at: datetime = Field(
        alias="generatedAt",
        default_factory=lambda: datetime.now(timezone.utc),
        description="Build timestamp",
    )
    entries: List[IndexEntry] = Field(default_factory=list, description="Entries in walk order")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "RepositoryIndex":
        return cls.model_validate_json(raw)


class EmbeddingChunk(BaseModel):
    """An embedded character range of one indexed file."""
    id: int = Field(description="Unique, increasing within one build")
    file: str = Field(description="Path of the entry the chunk was cut from")
    start: int = Field(description="Start character offset (inclusive)", ge=0)
    end: int = Field(description="End character offset (exclusive)")
    embedding: List[float] = Field(description="Embedding vector of the chunk text")

    @model_validator(mode="after")
    def _check_range(self) -> "EmbeddingChunk":
        if self.end <= self.start:
            raise ValueError(f"chunk {self.id} has an empty range [{self.start}, {self.end})")
        return self


EMBEDDING_CHUNKS = TypeAdapter(List[EmbeddingChunk])


def dump_embedding_chunks(chunks: List[EmbeddingChunk]) -> str:
    """Serialize chunks as the bare JSON array stored in the vector index file."""
    return EMBEDDING_CHUNKS.dump_json(chunks).decode("utf-8")


def parse_embedding_chunks(raw: str) -> List[EmbeddingChunk]:
    """Parse a vector index file; raises ``pydantic.ValidationError`` on bad data."""
    return EMBEDDING_CHUNKS.validate_json(raw)

"""
Configuration management for repomind.
Handles the provider endpoint, model names and indexing/retrieval limits.
"""

import os
from dataclasses import dataclass

from ..core.chunker import DEFAULT_CHUNK_SIZE, DEFAULT_MAX_CHUNKS_PER_FILE


@dataclass
class OllamaConfig:
    """Embedding/generation provider configuration."""
    base_url: str = "http://localhost:11434"
    model: str = "llama3"
    embed_model: str = "nomic-embed-text"
    timeout: float = 120.0

    @property
    def api_base(self) -> str:
        """OpenAI-compatible endpoint served by Ollama."""
        return self.base_url.rstrip("/") + "/v1"


@dataclass
class IndexConfig:
    """Indexing and retrieval limits."""
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_chunks_per_file: int = DEFAULT_MAX_CHUNKS_PER_FILE
    max_files: int = 5
    max_chars_per_file: int = 2000
    top_k_chunks: int = 10
    embed_workers: int = 1
    respect_gitignore: bool = False


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class Config:
    """Main configuration class for repomind, read from the environment."""

    def __init__(self):
        self.ollama = self._load_ollama_config()
        self.index = self._load_index_config()

    def _load_ollama_config(self) -> OllamaConfig:
        """Load provider configuration from environment variables."""
        defaults = OllamaConfig()
        return OllamaConfig(
            base_url=os.getenv("REPOMIND_OLLAMA_URL", defaults.base_url),
            model=os.getenv("REPOMIND_MODEL", defaults.model),
            embed_model=os.getenv("REPOMIND_EMBED_MODEL", defaults.embed_model),
            timeout=_env_float("REPOMIND_TIMEOUT", defaults.timeout),
        )

    def _load_index_config(self) -> IndexConfig:
        """Load indexing limits from environment variables."""
        defaults = IndexConfig()
        return IndexConfig(
            chunk_size=_env_int("REPOMIND_CHUNK_SIZE", defaults.chunk_size),
            max_chunks_per_file=_env_int("REPOMIND_MAX_CHUNKS", defaults.max_chunks_per_file),
            max_files=_env_int("REPOMIND_MAX_FILES", defaults.max_files),
            max_chars_per_file=_env_int("REPOMIND_MAX_CHARS", defaults.max_chars_per_file),
            top_k_chunks=_env_int("REPOMIND_TOP_K", defaults.top_k_chunks),
            embed_workers=_env_int("REPOMIND_EMBED_WORKERS", defaults.embed_workers),
            respect_gitignore=os.getenv("REPOMIND_RESPECT_GITIGNORE", "false").lower() == "true",
        )


def load_config() -> Config:
    return Config()

"""Configuration and provider modules."""

from .llms import OllamaProvider, ProviderEmbeddings, get_embeddings, get_provider
from .settings import Config, IndexConfig, OllamaConfig, load_config

__all__ = [
    "OllamaProvider", "ProviderEmbeddings", "get_embeddings", "get_provider",
    "Config", "IndexConfig", "OllamaConfig", "load_config",
]

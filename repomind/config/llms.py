"""Provider client for generation and embeddings, served by a local Ollama."""

import logging
import time
from typing import List, Optional

import openai
from langchain_core.embeddings import Embeddings

from ..core.errors import ProviderError
from ..utils.provider_logger import provider_logger
from .settings import OllamaConfig

logger = logging.getLogger(__name__)

# Client failures plus the shape errors raised while unpacking a response
_PROVIDER_FAILURES = (openai.OpenAIError, ProviderError, AttributeError, IndexError, KeyError, TypeError)


class OllamaProvider:
    """
    Generation and embedding capability of an Ollama server.

    Talks to Ollama's OpenAI-compatible API through the openai client. No
    retries are made: a failed call raises ProviderError and the caller
    decides what to do.
    """

    def __init__(self, config: Optional[OllamaConfig] = None, client: Optional[openai.OpenAI] = None):
        """
        Args:
            config: Endpoint and model configuration
            client: Preconfigured openai client (mostly for tests)
        """
        self.config = config or OllamaConfig()
        self.client = client or openai.OpenAI(
            base_url=self.config.api_base,
            api_key="ollama",  # ignored by Ollama, required by the client
            timeout=self.config.timeout,
            max_retries=0,
        )

    def generate(self, model: str, prompt: str) -> str:
        """Generate a completion for ``prompt``.

        Raises:
            ProviderError: On a transport failure, a non-success status or a
                response without text content
        """
        method = "chat.completions.create"
        messages = [{"role": "user", "content": prompt}]
        start_time = time.time()
        try:
            response = self.client.chat.completions.create(model=model, messages=messages)
            content = response.choices[0].message.content
            if not isinstance(content, str):
                raise ProviderError("Unexpected Ollama response format: no message content")
        except _PROVIDER_FAILURES as e:
            duration_ms = (time.time() - start_time) * 1000
            provider_logger.log_api_failure(method, model, e, duration_ms)
            raise _as_provider_error(e, "Ollama error") from e

        duration_ms = (time.time() - start_time) * 1000
        provider_logger.log_api_call(method, model, {"prompt": prompt}, content, duration_ms)
        return content

    def embed(self, text: str, model: Optional[str] = None) -> List[float]:
        """Embed ``text`` and return its vector.

        Raises:
            ProviderError: On a transport failure, a non-success status or a
                response without a numeric vector
        """
        method = "embeddings.create"
        model = model or self.config.embed_model
        start_time = time.time()
        try:
            response = self.client.embeddings.create(model=model, input=text, encoding_format="float")
            vector = _parse_vector(response.data[0].embedding)
        except _PROVIDER_FAILURES as e:
            duration_ms = (time.time() - start_time) * 1000
            provider_logger.log_api_failure(method, model, e, duration_ms)
            raise _as_provider_error(e, "Ollama embeddings error") from e

        duration_ms = (time.time() - start_time) * 1000
        provider_logger.log_api_call(method, model, {"input": text}, vector, duration_ms)
        return vector

    def health_check(self) -> bool:
        """Best-effort liveness probe; never raises."""
        try:
            self.client.models.list()
            return True
        except openai.OpenAIError as e:
            logger.debug(f"Ollama health check failed at {self.config.base_url}: {e}")
            return False


def _parse_vector(raw) -> List[float]:
    if not isinstance(raw, list) or not raw:
        raise ProviderError("Unexpected Ollama embeddings response format: no vector")
    try:
        return [float(x) for x in raw]
    except (TypeError, ValueError):
        raise ProviderError("Unexpected Ollama embeddings response format: non-numeric vector")


def _as_provider_error(error: Exception, prefix: str) -> ProviderError:
    """Map client and response-shape failures onto ProviderError."""
    if isinstance(error, ProviderError):
        return error
    if isinstance(error, openai.APIStatusError):
        return ProviderError(f"{prefix}: {error.message}", status_code=error.status_code)
    if isinstance(error, openai.APIConnectionError):
        return ProviderError(f"{prefix}: cannot reach Ollama ({error})")
    if isinstance(error, openai.OpenAIError):
        return ProviderError(f"{prefix}: {error}")
    return ProviderError(f"Unexpected Ollama response format: {error}")


class ProviderEmbeddings(Embeddings):
    """LangChain Embeddings backed by OllamaProvider.embed, one request per text."""

    def __init__(self, provider: OllamaProvider, model: Optional[str] = None):
        self.provider = provider
        self.model = model

    def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return [self.provider.embed(text, model=self.model) for text in texts]

    def embed_query(self, text: str) -> List[float]:
        return self.provider.embed(text, model=self.model)


def get_provider(config: Optional[OllamaConfig] = None) -> OllamaProvider:
    return OllamaProvider(config)


def get_embeddings(provider: OllamaProvider) -> ProviderEmbeddings:
    return ProviderEmbeddings(provider, model=provider.config.embed_model)

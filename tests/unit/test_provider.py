import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from repomind.config.llms import OllamaProvider, ProviderEmbeddings, get_embeddings, get_provider
from repomind.config.settings import OllamaConfig
from repomind.core.errors import ProviderError


def _provider(client):
    return OllamaProvider(OllamaConfig(embed_model="embedder"), client=client)


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _embedding_response(vector):
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


def _status_error(status):
    request = httpx.Request("POST", "http://localhost:11434/v1/embeddings")
    response = httpx.Response(status, request=request, text="model not found")
    return openai.APIStatusError("model not found", response=response, body=None)


def test_default_client_targets_openai_compatible_endpoint():
    provider = OllamaProvider(OllamaConfig(base_url="http://example:11434/"))

    assert str(provider.client.base_url).rstrip("/") == "http://example:11434/v1"
    assert provider.client.max_retries == 0


def test_generate_returns_message_content():
    client = MagicMock()
    client.chat.completions.create.return_value = _chat_response("answer")

    assert _provider(client).generate("llama3", "prompt") == "answer"
    client.chat.completions.create.assert_called_once_with(
        model="llama3", messages=[{"role": "user", "content": "prompt"}])


def test_generate_rejects_missing_content():
    client = MagicMock()
    client.chat.completions.create.return_value = _chat_response(None)

    with pytest.raises(ProviderError, match="Unexpected Ollama response format"):
        _provider(client).generate("llama3", "prompt")


def test_generate_rejects_malformed_body():
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])

    with pytest.raises(ProviderError):
        _provider(client).generate("llama3", "prompt")


def test_status_error_carries_status_code():
    client = MagicMock()
    client.embeddings.create.side_effect = _status_error(404)

    with pytest.raises(ProviderError) as excinfo:
        _provider(client).embed("text")

    assert excinfo.value.status_code == 404
    assert "404" in str(excinfo.value)


def test_connection_error_is_provider_error():
    client = MagicMock()
    request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
    client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

    with pytest.raises(ProviderError, match="cannot reach Ollama"):
        _provider(client).generate("llama3", "prompt")


def test_embed_uses_configured_model_and_float_encoding():
    client = MagicMock()
    client.embeddings.create.return_value = _embedding_response([1, 2.5])

    assert _provider(client).embed("text") == [1.0, 2.5]
    client.embeddings.create.assert_called_once_with(model="embedder", input="text", encoding_format="float")


@pytest.mark.parametrize("vector", [[], None, ["a", "b"]])
def test_embed_rejects_bad_vectors(vector):
    client = MagicMock()
    client.embeddings.create.return_value = _embedding_response(vector)

    with pytest.raises(ProviderError):
        _provider(client).embed("text")


def test_health_check_never_raises():
    client = MagicMock()
    request = httpx.Request("GET", "http://localhost:11434/v1/models")
    client.models.list.side_effect = openai.APIConnectionError(request=request)

    assert _provider(client).health_check() is False


def test_health_check_ok():
    assert _provider(MagicMock()).health_check() is True


def test_failures_are_logged(caplog):
    client = MagicMock()
    client.embeddings.create.side_effect = _status_error(500)

    with caplog.at_level(logging.ERROR, logger="repomind.provider"):
        with pytest.raises(ProviderError):
            _provider(client).embed("text")

    assert "embeddings.create failed" in caplog.text


def test_provider_embeddings_adapter():
    client = MagicMock()
    client.embeddings.create.return_value = _embedding_response([0.5])
    embeddings = get_embeddings(_provider(client))

    assert isinstance(embeddings, ProviderEmbeddings)
    assert embeddings.embed_query("q") == [0.5]
    assert embeddings.embed_documents(["a", "b"]) == [[0.5], [0.5]]
    assert client.embeddings.create.call_count == 3


def test_get_provider_points_client_at_ollama_v1():
    provider = get_provider(OllamaConfig(base_url="http://ollama.local:11434", timeout=5.0))

    assert str(provider.client.base_url).rstrip("/") == "http://ollama.local:11434/v1"
    assert provider.client.max_retries == 0
    assert provider.config.timeout == 5.0

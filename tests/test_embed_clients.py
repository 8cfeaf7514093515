# FILE: tests/test_embed_clients.py
"""
Tests for shared/clients/embed/ and shared/helper/RetryPolicy.py
Provider payloads, response parsing, error classification and retries.
"""

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.errors import ProviderError, ValidationError
from shared.helper.RetryPolicy import RetryPolicy, is_retryable


@pytest.fixture
def ollama_env(monkeypatch):
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama.test")
    monkeypatch.setenv("EMBED_DIMENSION", "3")


@pytest.fixture
def openai_env(monkeypatch):
    monkeypatch.setenv("EMBED_OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EMBED_OPENAI_BASE_URL", "http://openai.test")
    monkeypatch.setenv("EMBED_DIMENSION", "3")


class TestOllamaClient:
    """Test the Ollama backend."""

    async def test_embed(self, ollama_env, helper_config):
        """Test the request body and vector extraction."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.read()
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]})

        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        vectors = await client.do_embed([" first ", "second"])
        await client.close()

        assert vectors == [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]
        assert seen["url"] == "http://ollama.test/api/embed"
        assert b'"input":["first","second"]' in seen["body"].replace(b" ", b"")
        assert client.get_dimension() == 3

    def test_base_url_required(self, helper_config, monkeypatch):
        """Test a missing base URL fails at construction."""
        monkeypatch.delenv("EMBED_OLLAMA_BASE_URL", raising=False)
        with pytest.raises(ValueError):
            EmbedClientOllama(helper_config=helper_config)

    async def test_empty_response_is_not_retryable(self, ollama_env, helper_config):
        """Test a malformed body is a permanent provider error."""
        client = EmbedClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"embeddings": []})))
        with pytest.raises(ProviderError) as exc_info:
            await client.do_embed("text")
        assert exc_info.value.retryable is False
        await client.close()


class TestOpenaiClient:
    """Test the OpenAI-compatible backend."""

    async def test_embed_sorted_by_index(self, openai_env, helper_config):
        """Test vectors are returned in input order and the key is sent."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"data": [
                {"index": 1, "embedding": [0.0, 1.0, 0.0]},
                {"index": 0, "embedding": [1.0, 0.0, 0.0]},
            ]})

        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        vectors = await client.do_embed(["a", "b"])
        await client.close()
        assert vectors == [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
        assert seen["auth"] == "Bearer sk-test"

    @pytest.mark.parametrize("status,retryable", [(429, True), (503, True), (500, True), (400, False), (401, False)])
    async def test_status_classification(self, openai_env, helper_config, status, retryable):
        """Test rate limits and 5xx are retryable, other failures are not."""
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(status, text="nope")))
        with pytest.raises(ProviderError) as exc_info:
            await client.do_embed("text")
        assert exc_info.value.retryable is retryable
        await client.close()

    async def test_timeout_is_retryable(self, openai_env, helper_config):
        """Test transport failures become retryable provider errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError) as exc_info:
            await client.do_embed("text")
        assert exc_info.value.retryable is True
        await client.close()

    async def test_vector_count_mismatch(self, openai_env, helper_config):
        """Test fewer vectors than inputs is a permanent error."""
        body = {"data": [{"index": 0, "embedding": [1.0, 0.0, 0.0]}]}
        client = EmbedClientOpenai(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
        with pytest.raises(ProviderError) as exc_info:
            await client.do_embed(["a", "b"])
        assert exc_info.value.retryable is False
        await client.close()

    async def test_not_booted(self, openai_env, helper_config):
        """Test requests before boot fail loudly."""
        with pytest.raises(RuntimeError):
            await EmbedClientOpenai(helper_config=helper_config).do_embed("text")


class TestEmbedClientManager:
    """Test engine selection."""

    def test_selects_engine(self, ollama_env, monkeypatch, helper_config):
        """Test EMBED_ENGINE picks the backend."""
        monkeypatch.setenv("EMBED_ENGINE", "OLLAMA")
        assert isinstance(EmbedClientManager(helper_config).get_client(), EmbedClientOllama)

    def test_unknown_engine(self, monkeypatch, helper_config):
        """Test an unknown engine is a ValueError."""
        monkeypatch.setenv("EMBED_ENGINE", "cohere")
        with pytest.raises(ValueError):
            EmbedClientManager(helper_config)

    async def test_boot_survives_unreachable_provider(self, ollama_env, monkeypatch, helper_config):
        """Test a failing health probe is logged and the client stays usable."""
        monkeypatch.setenv("EMBED_ENGINE", "ollama")
        manager = EmbedClientManager(helper_config)

        async def unreachable():
            raise httpx.ConnectError("refused")

        monkeypatch.setattr(manager.client, "do_healthcheck", unreachable)
        await manager.boot()
        assert manager.client._client is not None
        await manager.close()
        assert manager.client._client is None


class TestRetryPolicy:
    """Test the shared retry policy."""

    def test_only_retryable_provider_errors(self):
        """Test the retry predicate."""
        assert is_retryable(ProviderError("x", retryable=True))
        assert not is_retryable(ProviderError("x", retryable=False))
        assert not is_retryable(ValidationError("x"))
        assert not is_retryable(RuntimeError("x"))

    async def test_succeeds_after_transient_failures(self, retry_policy):
        """Test a call that fails twice then succeeds."""
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ProviderError("busy", retryable=True)
            return "ok"

        assert await retry_policy.run(flaky) == "ok"
        assert len(attempts) == 3

    async def test_gives_up_after_attempts(self, retry_policy):
        """Test the last error is re-raised once attempts run out."""
        attempts = []

        async def always_busy():
            attempts.append(1)
            raise ProviderError("busy", retryable=True)

        with pytest.raises(ProviderError):
            await retry_policy.run(always_busy)
        assert len(attempts) == 3

    async def test_permanent_errors_are_not_retried(self, retry_policy):
        """Test non-retryable errors propagate on the first attempt."""
        attempts = []

        async def broken():
            attempts.append(1)
            raise ProviderError("bad request", retryable=False)

        with pytest.raises(ProviderError):
            await retry_policy.run(broken)
        assert len(attempts) == 1

    def test_invalid_attempts(self, monkeypatch, helper_config):
        """Test zero attempts is a configuration error."""
        monkeypatch.setenv("EMBED_RETRY_ATTEMPTS", "0")
        with pytest.raises(ValueError):
            RetryPolicy(helper_config)

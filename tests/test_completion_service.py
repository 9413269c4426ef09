"""
Tests for the completion-service boundary and its HTTP backends.

These tests verify:
1. HTTP errors map to the right FailureKind
2. Retryable failures are retried, terminal ones are not
3. The fallback chain order and stop conditions
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from conftest import ScriptedCompletionService
from labdigest.ai.completion_service import (
    CompletionFailure,
    CompletionSuccess,
    FailureKind,
    failure_kind_for_status,
)
from labdigest.ai.fallback import FallbackCompletionService, create_completion_service
from labdigest.ai.groq_client import SUMMARIZER_SYSTEM_PROMPT, GroqCompletionService
from labdigest.ai.ollama_client import OllamaCompletionService


def _response(status_code=200, json_data=None, json_error=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def ollama():
    return OllamaCompletionService(api_base="http://ollama.test", max_tries=2, backoff_factor=0)


@pytest.fixture
def groq():
    return GroqCompletionService(api_key="test-key", api_base="https://groq.test/v1", max_tries=2, backoff_factor=0)


class TestStatusMapping:

    @pytest.mark.parametrize("status, kind", [
        (429, FailureKind.RATE_LIMIT),
        (408, FailureKind.TIMEOUT),
        (504, FailureKind.TIMEOUT),
        (500, FailureKind.SERVER_ERROR),
        (503, FailureKind.SERVER_ERROR),
        (404, FailureKind.UNKNOWN),
    ])
    def test_failure_kind_for_status(self, status, kind):
        assert failure_kind_for_status(status) == kind

    def test_failure_kind_str(self):
        assert str(FailureKind.RATE_LIMIT) == "rate_limit"


class TestOllamaCompletionService:
    """Test request shape and error mapping for Ollama."""

    @pytest.mark.asyncio
    async def test_success(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_data={"response": "  A summary.  "})

            result = await ollama.complete("Summarize this")

        assert result == CompletionSuccess("A summary.")
        url = mock_post.call_args.args[0]
        payload = mock_post.call_args.kwargs["json"]
        assert url == "http://ollama.test/api/generate"
        assert payload["prompt"] == "Summarize this"
        assert payload["stream"] is False
        assert payload["options"]["num_ctx"] == ollama.context_window
        assert "system" not in payload

    @pytest.mark.asyncio
    async def test_system_prompt_sent_when_configured(self):
        ollama = OllamaCompletionService(api_base="http://ollama.test", system_prompt="Be brief.")
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_data={"response": "ok"})

            await ollama.complete("prompt")

        assert mock_post.call_args.kwargs["json"]["system"] == "Be brief."

    @pytest.mark.asyncio
    async def test_timeout_is_retried_then_reported(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.Timeout("slow")

            result = await ollama.complete("prompt")

        assert isinstance(result, CompletionFailure)
        assert result.kind == FailureKind.TIMEOUT
        assert result.backend == "ollama"
        assert mock_post.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_recovers(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.side_effect = [
                requests.exceptions.ConnectionError("refused"),
                _response(json_data={"response": "ok"}),
            ]

            result = await ollama.complete("prompt")

        assert result == CompletionSuccess("ok")
        assert mock_post.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_is_network(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.side_effect = requests.exceptions.ConnectionError("refused")

            result = await ollama.complete("prompt")

        assert result.kind == FailureKind.NETWORK

    @pytest.mark.asyncio
    async def test_rate_limit_status(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.return_value = _response(status_code=429, text="slow down")

            result = await ollama.complete("prompt")

        assert result.kind == FailureKind.RATE_LIMIT
        assert "429" in result.message

    @pytest.mark.asyncio
    async def test_malformed_response_is_not_retried(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_data={"done": True})

            result = await ollama.complete("prompt")

        assert result.kind == FailureKind.MALFORMED_RESPONSE
        assert mock_post.call_count == 1

    @pytest.mark.asyncio
    async def test_non_json_body(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_error=ValueError("not json"))

            result = await ollama.complete("prompt")

        assert result.kind == FailureKind.MALFORMED_RESPONSE

    def test_is_available(self, ollama):
        with patch('labdigest.ai.ollama_client.requests.get') as mock_get:
            mock_get.return_value = _response(status_code=200)
            assert ollama.is_available() is True

            mock_get.side_effect = requests.exceptions.ConnectionError("down")
            assert ollama.is_available() is False


class TestGroqCompletionService:
    """Test request shape and error mapping for Groq."""

    @pytest.mark.asyncio
    async def test_success(self, groq):
        body = {"choices": [{"message": {"content": " Groq summary. "}}]}
        with patch('labdigest.ai.groq_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_data=body)

            result = await groq.complete("Summarize this")

        assert result == CompletionSuccess("Groq summary.")
        assert mock_post.call_args.args[0] == "https://groq.test/v1/chat/completions"
        assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer test-key"
        payload = mock_post.call_args.kwargs["json"]
        assert payload["messages"][0] == {"role": "system", "content": SUMMARIZER_SYSTEM_PROMPT}
        assert payload["messages"][1] == {"role": "user", "content": "Summarize this"}
        assert payload["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_missing_choices_is_malformed(self, groq):
        with patch('labdigest.ai.groq_client.requests.post') as mock_post:
            mock_post.return_value = _response(json_data={"choices": []})

            result = await groq.complete("prompt")

        assert result.kind == FailureKind.MALFORMED_RESPONSE
        assert result.backend == "groq"

    @pytest.mark.asyncio
    async def test_server_error_retried(self, groq):
        with patch('labdigest.ai.groq_client.requests.post') as mock_post:
            mock_post.return_value = _response(status_code=502, text="bad gateway")

            result = await groq.complete("prompt")

        assert result.kind == FailureKind.SERVER_ERROR
        assert mock_post.call_count == 2


class TestFallbackCompletionService:
    """Test backend ordering and stop conditions."""

    @pytest.mark.asyncio
    async def test_first_success_wins(self):
        primary = ScriptedCompletionService(responder=lambda p: "primary")
        secondary = ScriptedCompletionService(responder=lambda p: "secondary")

        result = await FallbackCompletionService([primary, secondary]).complete("prompt")

        assert result == CompletionSuccess("primary")
        assert secondary.prompts == []

    @pytest.mark.asyncio
    async def test_falls_back_on_rate_limit(self):
        primary = ScriptedCompletionService(fail_on_call=1, failure_kind=FailureKind.RATE_LIMIT)
        secondary = ScriptedCompletionService(responder=lambda p: "secondary")

        result = await FallbackCompletionService([primary, secondary]).complete("prompt")

        assert result == CompletionSuccess("secondary")
        assert secondary.prompts == ["prompt"]

    @pytest.mark.asyncio
    async def test_malformed_response_does_not_fall_back(self):
        primary = ScriptedCompletionService(fail_on_call=1, failure_kind=FailureKind.MALFORMED_RESPONSE)
        secondary = ScriptedCompletionService(responder=lambda p: "secondary")

        result = await FallbackCompletionService([primary, secondary]).complete("prompt")

        assert isinstance(result, CompletionFailure)
        assert result.kind == FailureKind.MALFORMED_RESPONSE
        assert secondary.prompts == []

    @pytest.mark.asyncio
    async def test_all_backends_fail(self):
        primary = ScriptedCompletionService(fail_on_call=1, failure_kind=FailureKind.TIMEOUT)
        secondary = ScriptedCompletionService(fail_on_call=1, failure_kind=FailureKind.NETWORK)

        result = await FallbackCompletionService([primary, secondary]).complete("prompt")

        assert result.kind == FailureKind.NETWORK

    def test_requires_a_backend(self):
        with pytest.raises(ValueError):
            FallbackCompletionService([])

    def test_factory_without_key_uses_ollama(self):
        service = create_completion_service(api_key="")

        assert isinstance(service, OllamaCompletionService)
        assert service.system_prompt == SUMMARIZER_SYSTEM_PROMPT

    def test_factory_with_key_chains_groq_then_ollama(self):
        service = create_completion_service(api_key="key")

        assert isinstance(service, FallbackCompletionService)
        assert [b.name for b in service.backends] == ["groq", "ollama"]
        assert service.backends[1].system_prompt == SUMMARIZER_SYSTEM_PROMPT

"""
Ollama Completion Backend for LabDigest
Generates text through a local or remote Ollama server's REST API.

Requests are made with the synchronous requests library inside a worker
thread, so an awaiting pipeline never blocks the event loop.
"""

import asyncio
import json
import time

import requests

from labdigest.config import (
    OLLAMA_API_BASE,
    OLLAMA_CONTEXT_WINDOW,
    OLLAMA_MODEL_NAME,
    OLLAMA_TIMEOUT_SECONDS,
)
from labdigest.exceptions import CompletionError
from labdigest.logging_config import debug_log, warning

from .completion_service import FailureKind, HTTPCompletionBackend, failure_kind_for_status


class OllamaCompletionService(HTTPCompletionBackend):
    """
    Completion backend backed by Ollama's /api/generate endpoint.

    Example:
        service = OllamaCompletionService(model_name="llama3.2:latest")
        result = await service.complete("Summarize: ...")
    """

    name = "ollama"

    def __init__(
        self,
        api_base: str = OLLAMA_API_BASE,
        model_name: str = OLLAMA_MODEL_NAME,
        timeout: float = OLLAMA_TIMEOUT_SECONDS,
        context_window: int = OLLAMA_CONTEXT_WINDOW,
        system_prompt: str | None = None,
        **retry_options,
    ):
        super().__init__(**retry_options)
        self.api_base = api_base.rstrip('/')
        self.model_name = model_name
        self.timeout = timeout
        self.context_window = context_window
        self.system_prompt = system_prompt

    def is_available(self) -> bool:
        """
        Check if Ollama is running and accessible.

        Returns:
            bool: True if the tags endpoint answers with 200
        """
        try:
            response = requests.get(f"{self.api_base}/api/tags", timeout=5)
        except requests.exceptions.RequestException as e:
            debug_log(f"[OLLAMA] Connection error: Cannot reach {self.api_base}: {e}")
            return False
        debug_log(f"[OLLAMA] Connection check: status {response.status_code}")
        return response.status_code == 200

    async def _generate(self, prompt: str) -> str:
        return await asyncio.to_thread(self._post_generate, prompt)

    def _post_generate(self, prompt: str) -> str:
        """Make one blocking /api/generate request."""
        # 1 token ~ 4 chars; leave room for the output
        estimated_tokens = len(prompt) // 4
        if estimated_tokens > self.context_window - 300:
            warning(
                f"[OLLAMA] Prompt ({estimated_tokens} estimated tokens) may be truncated. "
                f"Context window is {self.context_window} tokens."
            )

        payload = {
            "model": self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_ctx": self.context_window,
            },
        }
        if self.system_prompt:
            payload["system"] = self.system_prompt

        start_time = time.time()
        try:
            response = requests.post(
                f"{self.api_base}/api/generate",
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise CompletionError(
                FailureKind.TIMEOUT,
                f"Generation timeout after {self.timeout} seconds",
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise CompletionError(
                FailureKind.NETWORK,
                f"Cannot connect to Ollama at {self.api_base}. Is Ollama running?",
            ) from e
        except requests.exceptions.RequestException as e:
            raise CompletionError(FailureKind.NETWORK, f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            raise CompletionError(
                failure_kind_for_status(response.status_code),
                f"Ollama returned status {response.status_code}: {response.text[:200]}",
            )

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise CompletionError(
                FailureKind.MALFORMED_RESPONSE, "Ollama returned a non-JSON body"
            ) from e

        generated_text = result.get('response') if isinstance(result, dict) else None
        if not isinstance(generated_text, str):
            raise CompletionError(
                FailureKind.MALFORMED_RESPONSE, "Ollama response has no 'response' text"
            )

        debug_log(
            f"[OLLAMA] Generation complete: {result.get('eval_count', 0)} tokens "
            f"in {time.time() - start_time:.2f}s, {len(generated_text)} chars"
        )
        return generated_text.strip()

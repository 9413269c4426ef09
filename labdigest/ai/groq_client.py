"""
Groq Completion Backend for LabDigest
Calls Groq's OpenAI-compatible chat completions endpoint.

Every request carries the educational-summarizer system prompt; the pipeline
prompt is sent as the single user message.
"""

import asyncio
import json

import requests

from labdigest.config import (
    GROQ_API_BASE,
    GROQ_API_KEY,
    GROQ_MODEL_NAME,
    GROQ_TEMPERATURE,
    GROQ_TIMEOUT_SECONDS,
)
from labdigest.exceptions import CompletionError
from labdigest.logging_config import debug_log

from .completion_service import FailureKind, HTTPCompletionBackend, failure_kind_for_status

SUMMARIZER_SYSTEM_PROMPT = (
    "You are an expert educational summarizer. Read the following text and extract "
    "only the most important points, learning objectives, and relevant details, in a "
    "clear and concise way. Do not include any introductory or meta language; output "
    "only the requested content itself."
)


class GroqCompletionService(HTTPCompletionBackend):
    """Completion backend for Groq's hosted models."""

    name = "groq"

    def __init__(
        self,
        api_key: str = GROQ_API_KEY,
        api_base: str = GROQ_API_BASE,
        model_name: str = GROQ_MODEL_NAME,
        temperature: float = GROQ_TEMPERATURE,
        timeout: float = GROQ_TIMEOUT_SECONDS,
        system_prompt: str = SUMMARIZER_SYSTEM_PROMPT,
        **retry_options,
    ):
        super().__init__(**retry_options)
        self.api_key = api_key
        self.api_base = api_base.rstrip('/')
        self.model_name = model_name
        self.temperature = temperature
        self.timeout = timeout
        self.system_prompt = system_prompt

    async def _generate(self, prompt: str) -> str:
        return await asyncio.to_thread(self._post_chat, prompt)

    def _post_chat(self, prompt: str) -> str:
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = requests.post(
                f"{self.api_base}/chat/completions",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise CompletionError(
                FailureKind.TIMEOUT, f"Groq timeout after {self.timeout} seconds"
            ) from e
        except requests.exceptions.RequestException as e:
            raise CompletionError(FailureKind.NETWORK, f"Groq request failed: {e}") from e

        if response.status_code != 200:
            raise CompletionError(
                failure_kind_for_status(response.status_code),
                f"Groq returned status {response.status_code}: {response.text[:200]}",
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (json.JSONDecodeError, ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionError(
                FailureKind.MALFORMED_RESPONSE, "Groq response has no message content"
            ) from e
        if not isinstance(content, str):
            raise CompletionError(
                FailureKind.MALFORMED_RESPONSE, "Groq message content is not text"
            )

        debug_log(f"[GROQ] Generation complete: {len(content)} chars")
        return content.strip()

"""
Completion Service Boundary

The document pipelines depend on exactly one capability: turn a prompt into
text. This module defines that contract and the tagged result type that
crosses it, so pipeline code never inspects untyped response payloads.

    result = await service.complete(prompt)
    if isinstance(result, CompletionFailure):
        ...  # result.kind, result.message

Retry-with-backoff lives here, inside the boundary. Callers see one terminal
CompletionSuccess or CompletionFailure per request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import backoff

from labdigest.config import COMPLETION_BACKOFF_FACTOR, COMPLETION_MAX_TRIES
from labdigest.exceptions import CompletionError
from labdigest.logging_config import debug_log, error, warning


class FailureKind(str, Enum):
    """Why a completion request failed."""

    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# Transient failures worth another attempt (same backend or the next one)
RETRYABLE_KINDS = frozenset({
    FailureKind.TIMEOUT,
    FailureKind.RATE_LIMIT,
    FailureKind.NETWORK,
    FailureKind.SERVER_ERROR,
})


@dataclass(frozen=True)
class CompletionSuccess:
    """Generated text from a successful request."""

    text: str


@dataclass(frozen=True)
class CompletionFailure:
    """Terminal failure of a request after retries and fallbacks."""

    kind: FailureKind
    message: str
    backend: str = ""


CompletionResult = CompletionSuccess | CompletionFailure


def failure_kind_for_status(status_code: int) -> FailureKind:
    """Classify a non-200 HTTP status from a completion backend."""
    if status_code == 429:
        return FailureKind.RATE_LIMIT
    if status_code in (408, 504):
        return FailureKind.TIMEOUT
    if status_code >= 500:
        return FailureKind.SERVER_ERROR
    return FailureKind.UNKNOWN


class CompletionService(ABC):
    """Contract consumed by the pipelines: complete(prompt) -> CompletionResult."""

    name = "completion"

    @abstractmethod
    async def complete(self, prompt: str) -> CompletionResult:
        """Return generated text for prompt, or the reason it failed."""


class HTTPCompletionBackend(CompletionService):
    """
    Base class for backends reached over HTTP.

    Subclasses implement _generate(), raising CompletionError with a
    FailureKind on any failure. Retryable kinds are retried with exponential
    backoff up to max_tries attempts in total.
    """

    def __init__(
        self,
        max_tries: int = COMPLETION_MAX_TRIES,
        backoff_factor: float = COMPLETION_BACKOFF_FACTOR,
    ):
        self.max_tries = max(1, max_tries)
        self.backoff_factor = backoff_factor
        self._generate_with_retry = backoff.on_exception(
            backoff.expo,
            CompletionError,
            max_tries=self.max_tries,
            giveup=lambda e: e.kind not in RETRYABLE_KINDS,
            on_backoff=self._log_backoff,
            logger=None,
            factor=self.backoff_factor,
        )(self._generate)

    def _log_backoff(self, details: dict) -> None:
        exc = details.get("exception")
        warning(
            f"[{self.name.upper()}] Attempt {details.get('tries')} failed ({exc}); "
            f"retrying in {details.get('wait', 0):.1f}s"
        )

    async def complete(self, prompt: str) -> CompletionResult:
        debug_log(f"[{self.name.upper()}] Completion request: {len(prompt)} chars")
        try:
            text = await self._generate_with_retry(prompt)
        except CompletionError as e:
            error(f"[{self.name.upper()}] Completion failed ({e.kind}): {e.message}")
            return CompletionFailure(kind=e.kind, message=e.message, backend=self.name)
        return CompletionSuccess(text=text)

    @abstractmethod
    async def _generate(self, prompt: str) -> str:
        """Perform one request. Raise CompletionError on failure."""

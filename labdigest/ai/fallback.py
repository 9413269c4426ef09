"""
Backend fallback chain.

Groq is fast but rate limited; a local Ollama model is always there. The
chain asks each backend in turn and stops at the first success, or at the
first failure that another backend would not fix (a malformed response).
"""

from labdigest.config import GROQ_API_KEY
from labdigest.logging_config import debug_log, warning

from .completion_service import (
    RETRYABLE_KINDS,
    CompletionFailure,
    CompletionResult,
    CompletionService,
    CompletionSuccess,
    FailureKind,
)
from .groq_client import SUMMARIZER_SYSTEM_PROMPT, GroqCompletionService
from .ollama_client import OllamaCompletionService


class FallbackCompletionService(CompletionService):
    """Try backends in order until one succeeds."""

    name = "fallback"

    def __init__(self, backends: list[CompletionService]):
        if not backends:
            raise ValueError("FallbackCompletionService needs at least one backend")
        self.backends = list(backends)

    async def complete(self, prompt: str) -> CompletionResult:
        failure: CompletionFailure | None = None

        for position, backend in enumerate(self.backends):
            result = await backend.complete(prompt)
            if isinstance(result, CompletionSuccess):
                if position:
                    debug_log(f"[FALLBACK] Served by {backend.name}")
                return result

            failure = result
            if result.kind not in RETRYABLE_KINDS:
                break
            if position + 1 < len(self.backends):
                warning(
                    f"[FALLBACK] {backend.name} unavailable ({result.kind}); "
                    f"falling back to {self.backends[position + 1].name}"
                )

        return failure or CompletionFailure(FailureKind.UNKNOWN, "No backend produced a result")


def create_completion_service(api_key: str = GROQ_API_KEY) -> CompletionService:
    """
    Build the default completion service.

    Groq first with Ollama as fallback when an API key is configured,
    Ollama alone otherwise. Both backends receive the summarizer system prompt.
    """
    ollama = OllamaCompletionService(system_prompt=SUMMARIZER_SYSTEM_PROMPT)
    if not api_key:
        debug_log("[FALLBACK] No Groq API key; using Ollama only")
        return ollama
    return FallbackCompletionService([GroqCompletionService(api_key=api_key), ollama])

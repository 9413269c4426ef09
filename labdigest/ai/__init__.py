"""
LabDigest AI Module
The completion-service boundary and its HTTP backends.

Architecture:
=============
The pipelines only know CompletionService.complete(prompt), which returns a
CompletionSuccess or a CompletionFailure. Backends:

- GroqCompletionService: hosted, fast, rate limited (primary when keyed)
- OllamaCompletionService: local REST API (fallback, or sole backend)
- FallbackCompletionService: chains the two
"""

from .completion_service import (
    CompletionFailure,
    CompletionResult,
    CompletionService,
    CompletionSuccess,
    FailureKind,
    HTTPCompletionBackend,
)
from .fallback import FallbackCompletionService, create_completion_service
from .groq_client import GroqCompletionService
from .ollama_client import OllamaCompletionService

__all__ = [
    'CompletionFailure',
    'CompletionResult',
    'CompletionService',
    'CompletionSuccess',
    'FailureKind',
    'HTTPCompletionBackend',
    'FallbackCompletionService',
    'GroqCompletionService',
    'OllamaCompletionService',
    'create_completion_service',
]

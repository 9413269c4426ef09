"""
Exception hierarchy for LabDigest.

Every failure that can end a document run carries enough context for the
upload layer to decide between retrying the whole document and abandoning it.

Empty input is not exceptional: the pipelines return an empty result for it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from labdigest.ai.completion_service import FailureKind


class LabDigestError(Exception):
    """Base exception for all LabDigest errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(LabDigestError):
    """Raised when the processing configuration is invalid."""


class CompletionError(LabDigestError):
    """
    Raised by a completion backend when a single request fails.

    Never escapes the completion-service boundary: CompletionService.complete()
    turns it into a CompletionFailure value.
    """

    def __init__(self, kind: FailureKind, message: str) -> None:
        self.kind = kind
        super().__init__(message, {"kind": str(kind)})


class ChunkProcessingError(LabDigestError):
    """
    A completion call failed during a document run.

    Attributes:
        phase: "summarization", "key_concepts", "topic", "reduction" or "query"
        chunk_index: Zero-based chunk index, None for document-level phases
        kind: FailureKind reported by the completion service
    """

    def __init__(
        self,
        phase: str,
        chunk_index: int | None,
        kind: FailureKind,
        message: str,
    ) -> None:
        self.phase = phase
        self.chunk_index = chunk_index
        self.kind = kind
        location = f"chunk {chunk_index + 1}" if chunk_index is not None else "document"
        super().__init__(
            f"{phase} failed for {location}: {message}",
            {"phase": phase, "chunk_index": chunk_index, "kind": str(kind)},
        )


class DocumentTooLargeError(LabDigestError):
    """Raised before any completion call when a document exceeds max_chunks."""

    def __init__(self, chunk_count: int, max_chunks: int) -> None:
        self.chunk_count = chunk_count
        self.max_chunks = max_chunks
        super().__init__(
            f"Document produced {chunk_count} chunks, more than the limit of {max_chunks}",
            {"chunk_count": chunk_count, "max_chunks": max_chunks},
        )


class DocumentProcessingError(LabDigestError):
    """Single user-facing failure raised at the upload boundary."""

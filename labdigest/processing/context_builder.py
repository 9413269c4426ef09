"""
Context Builder

Builds the DocumentContext handed to the summarizer for each chunk: a short
digest of the chunks just before it, the document type, a position label and
the opening of the previous chunk's summary.

One builder serves one run. The document type is inferred from the first
chunk the first time build() is called and reused for the rest of the run.
"""

import re
from typing import Sequence

from labdigest.config import ProcessingConfig
from labdigest.logging_config import debug_log

from .models import Chunk, DocumentContext

_CLASS_TOKEN = re.compile(r"\bclass\b")
_FUNCTION_TOKEN = re.compile(r"\b(?:def|function)\b")
_ACADEMIC_MARKER = re.compile(r"\b(?:Introduction|Abstract)\b")
_TECHNICAL_MARKER = re.compile(r"\b(?:Requirements|Specification)\b")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def infer_document_type(content: str) -> str:
    """
    Classify a document from its opening text.

    Checks run in order: code, academic, technical, general.
    """
    if _CLASS_TOKEN.search(content) and _FUNCTION_TOKEN.search(content):
        return "code"
    if _ACADEMIC_MARKER.search(content):
        return "academic"
    if _TECHNICAL_MARKER.search(content):
        return "technical"
    return "general"


def first_sentences(text: str, count: int) -> str:
    """Return the first count sentences of text, space-joined."""
    if count <= 0 or not text:
        return ""
    pieces = [p.strip() for p in _SENTENCE_SPLIT.split(text.strip()) if p.strip()]
    return " ".join(pieces[:count])


class ContextBuilder:
    """
    Per-run builder of DocumentContext values.

    Example:
        builder = ContextBuilder(config)
        context = builder.build(chunks, index)
    """

    def __init__(self, config: ProcessingConfig | None = None):
        self.config = config or ProcessingConfig()
        self._document_type: str | None = None

    @property
    def document_type(self) -> str | None:
        """Cached classification, None until the first build()."""
        return self._document_type

    def build(self, chunks: Sequence[Chunk], index: int) -> DocumentContext:
        """
        Build the context for chunks[index].

        Args:
            chunks: Run's chunk list; entries before index are already processed
            index: Zero-based position of the chunk about to be summarized

        Returns:
            DocumentContext for that chunk
        """
        if self._document_type is None:
            opening = chunks[0].content if chunks else ""
            self._document_type = infer_document_type(opening)
            debug_log(f"[CONTEXT] Document type inferred as '{self._document_type}'")

        window = self.config.context_window
        preceding = list(chunks[max(0, index - window):index]) if window > 0 else []
        preview = self.config.context_preview_chars

        digest = "\n".join(f"{c.title}: {c.content[:preview]}..." for c in preceding)

        previous_summary = ""
        if index > 0:
            previous_summary = first_sentences(
                chunks[index - 1].summary, self.config.previous_summary_sentences
            )

        return DocumentContext(
            summary=digest,
            previous_titles=tuple(c.title for c in preceding),
            document_type=self._document_type,
            current_position=f"chunk {index + 1} of {len(chunks)}",
            previous_summary=previous_summary,
        )

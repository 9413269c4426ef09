"""
Chunk Summarizer

Wraps the completion service for the per-chunk calls of a document run:
context-aware summary, key-concept list and (semantic mode) topic label.

Every call is awaited before the next is issued. A CompletionFailure is
raised as ChunkProcessingError, which ends the run: the pipelines never
return a partially summarized document.
"""

import re

from labdigest.ai.completion_service import CompletionFailure, CompletionService
from labdigest.exceptions import ChunkProcessingError
from labdigest.logging_config import debug_log, error

from .models import DocumentContext
from .prompts import build_key_concepts_prompt, build_section_summary_prompt, build_topic_prompt

DEFAULT_TOPIC = "General Topic"

# "- item", "* item", "• item", "1. item", "2) item"
_LIST_MARKER = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")


def parse_concept_lines(text: str) -> list[str]:
    """Split a one-per-line response into concepts, dropping list markers and blanks."""
    concepts = []
    for line in text.splitlines():
        concept = _LIST_MARKER.sub("", line).strip()
        if concept:
            concepts.append(concept)
    return concepts


def parse_topic(text: str) -> str:
    """First non-blank line of the response, or DEFAULT_TOPIC."""
    for line in text.splitlines():
        topic = _LIST_MARKER.sub("", line).strip()
        if topic:
            return topic
    return DEFAULT_TOPIC


class ChunkSummarizer:
    """
    Per-chunk completion calls.

    Example:
        summarizer = ChunkSummarizer(service)
        summary = await summarizer.summarize(section.content, context, 0)
        concepts = await summarizer.extract_key_concepts(section.content, 0)
    """

    def __init__(self, completion_service: CompletionService):
        self.completion_service = completion_service

    async def summarize(self, content: str, context: DocumentContext, chunk_index: int) -> str:
        """Summarize one chunk, keeping it coherent with the preceding context."""
        prompt = build_section_summary_prompt(content, context)
        return await self._complete(prompt, "summarization", chunk_index)

    async def extract_key_concepts(self, content: str, chunk_index: int) -> list[str]:
        """Ask for 3-5 key concepts and parse them one per line."""
        response = await self._complete(
            build_key_concepts_prompt(content), "key_concepts", chunk_index
        )
        return parse_concept_lines(response)

    async def extract_topic(self, text: str, chunk_index: int) -> str:
        """Ask for the main topic of a chunk in 3-5 words."""
        response = await self._complete(build_topic_prompt(text), "topic", chunk_index)
        return parse_topic(response)

    async def _complete(self, prompt: str, phase: str, chunk_index: int) -> str:
        result = await self.completion_service.complete(prompt)
        if isinstance(result, CompletionFailure):
            error(f"[SUMMARIZER] {phase} failed for chunk {chunk_index + 1}: {result.message}")
            raise ChunkProcessingError(phase, chunk_index, result.kind, result.message)

        debug_log(f"[SUMMARIZER] {phase} for chunk {chunk_index + 1}: {len(result.text)} chars")
        return result.text

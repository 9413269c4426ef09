"""
Hierarchical Reducer

Folds the finalized chunk summaries into one document-level synthesis with a
single completion call. The raw response text is the final summary.
"""

from typing import Sequence

from labdigest.ai.completion_service import CompletionFailure, CompletionService
from labdigest.exceptions import ChunkProcessingError
from labdigest.logging_config import debug_log, error

from .models import DocumentMap, SemanticChunk, Section
from .prompts import build_hierarchical_summary_prompt, build_semantic_summary_prompt


class HierarchicalReducer:
    """
    Final reduction step of both pipelines.

    Example:
        reducer = HierarchicalReducer(service)
        final_summary = await reducer.reduce_sections(sections)
    """

    def __init__(self, completion_service: CompletionService):
        self.completion_service = completion_service

    async def reduce_sections(self, sections: Sequence[Section]) -> str:
        """Synthesize section summaries and key concepts, preserving structure."""
        debug_log(f"[REDUCER] Reducing {len(sections)} sections")
        return await self._complete(build_hierarchical_summary_prompt(list(sections)))

    async def reduce_semantic(self, chunks: Sequence[SemanticChunk], document_map: DocumentMap) -> str:
        """Synthesize chunk summaries along the document's topic flow."""
        debug_log(f"[REDUCER] Reducing {len(chunks)} semantic chunks")
        return await self._complete(build_semantic_summary_prompt(list(chunks), document_map))

    async def _complete(self, prompt: str) -> str:
        result = await self.completion_service.complete(prompt)
        if isinstance(result, CompletionFailure):
            error(f"[REDUCER] Final summary failed ({result.kind}): {result.message}")
            raise ChunkProcessingError("reduction", None, result.kind, result.message)
        return result.text

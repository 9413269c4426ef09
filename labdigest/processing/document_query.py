"""
Queries over a processed document.

Used by the upload layer after a run has finished:
- find_relevant_sections(): keyword relevance ranking of processed chunks
- build_lab_context(): the context block handed to lab-generation prompts
- generate_contextual_answer(): one completion call answering a question
  from the most relevant sections
"""

from dataclasses import dataclass, field

from labdigest.ai.completion_service import CompletionFailure, CompletionService
from labdigest.exceptions import ChunkProcessingError
from labdigest.logging_config import debug_log, error

from .models import Chunk, HierarchicalResult, SemanticResult
from .prompts import build_contextual_answer_prompt

MAX_KEY_INSIGHTS = 10

COMPLEXITY_INDICATORS = (
    'algorithm', 'implementation', 'advanced', 'complex', 'optimization',
    'theoretical', 'mathematical', 'statistical', 'neural', 'deep',
)

ProcessedDocument = HierarchicalResult | SemanticResult


@dataclass(frozen=True)
class RelevantSection:
    """A processed chunk and how well it matched a query."""

    chunk: Chunk
    relevance_score: int

    def to_dict(self) -> dict:
        return {
            "title": self.chunk.title,
            "summary": self.chunk.summary,
            "relevanceScore": self.relevance_score,
        }


@dataclass
class LabContext:
    """
    Document context for lab generation.

    Attributes:
        summary: Final summary of the document
        document_type: Classification from the structure report
        key_topics: Chunk titles (or topics) in document order
        key_insights: First MAX_KEY_INSIGHTS key concepts across sections
        requirements: Plain-text block combining all of the above
        estimated_complexity: "beginner", "intermediate" or "advanced"
    """

    summary: str
    document_type: str
    key_topics: list[str] = field(default_factory=list)
    key_insights: list[str] = field(default_factory=list)
    requirements: str = ""
    estimated_complexity: str = "beginner"

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "documentType": self.document_type,
            "keyTopics": list(self.key_topics),
            "keyInsights": list(self.key_insights),
            "requirements": self.requirements,
            "estimatedComplexity": self.estimated_complexity,
        }


def _chunks_of(result: ProcessedDocument) -> list[Chunk]:
    if isinstance(result, HierarchicalResult):
        return list(result.sections)
    return list(result.semantic_chunks)


def score_relevance(chunk: Chunk, query: str) -> int:
    """2 for a title match, +1 for a summary match, +1 for any key-concept match."""
    query_lower = query.lower()
    score = 0
    if query_lower in chunk.title.lower():
        score += 2
    if query_lower in chunk.summary.lower():
        score += 1
    if any(query_lower in concept.lower() for concept in chunk.key_concepts):
        score += 1
    return score


def find_relevant_sections(
    result: ProcessedDocument,
    query: str,
    context_window: int = 3,
) -> list[RelevantSection]:
    """
    Rank processed chunks by relevance to query.

    Ties keep document order. Returns at most context_window entries.
    """
    scored = [RelevantSection(chunk, score_relevance(chunk, query)) for chunk in _chunks_of(result)]
    scored.sort(key=lambda r: r.relevance_score, reverse=True)
    return scored[:max(0, context_window)]


def estimate_complexity(text: str) -> str:
    """Count complexity indicator words in text: > 3 advanced, > 1 intermediate."""
    text_lower = text.lower()
    score = sum(1 for indicator in COMPLEXITY_INDICATORS if indicator in text_lower)
    if score > 3:
        return "advanced"
    if score > 1:
        return "intermediate"
    return "beginner"


def build_lab_context(result: ProcessedDocument, focus_areas: list[str] | None = None) -> LabContext:
    """
    Build the lab-generation context block for a processed document.

    Args:
        result: Output of either pipeline
        focus_areas: Optional topics the lab should emphasize

    Returns:
        LabContext
    """
    focus_areas = focus_areas or []
    chunks = _chunks_of(result)

    if isinstance(result, HierarchicalResult):
        document_type = result.structure.document_type
    else:
        document_type = "general"

    key_topics = [c.title for c in chunks]
    key_insights = [concept for c in chunks for concept in c.key_concepts][:MAX_KEY_INSIGHTS]

    lines = [
        f"Document Type: {document_type}",
        f"Main Topics: {', '.join(key_topics)}",
        f"Key Concepts: {', '.join(key_insights)}",
        f"Document Summary: {result.final_summary}",
    ]
    if focus_areas:
        lines.append(f"Focus Areas: {', '.join(focus_areas)}")

    return LabContext(
        summary=result.final_summary,
        document_type=document_type,
        key_topics=key_topics,
        key_insights=key_insights,
        requirements="\n".join(lines),
        estimated_complexity=estimate_complexity(result.final_summary),
    )


async def generate_contextual_answer(
    completion_service: CompletionService,
    sections: list[Chunk],
    query: str,
) -> str:
    """
    Answer query from the given processed sections with one completion call.

    Raises:
        ChunkProcessingError: phase "query" when the completion fails
    """
    debug_log(f"[QUERY] Answering from {len(sections)} sections: {query[:80]}")
    result = await completion_service.complete(build_contextual_answer_prompt(sections, query))
    if isinstance(result, CompletionFailure):
        error(f"[QUERY] Contextual answer failed ({result.kind}): {result.message}")
        raise ChunkProcessingError("query", None, result.kind, result.message)
    return result.text

"""
Topic and Structure Analyzer

Pure functions over finalized chunks; no completion calls.

Hierarchical mode:
- analyze_document_structure(): totals, hierarchy flag, main topics, reading time
- collect_key_points(): document-level key concepts, first-seen order

Semantic mode:
- topic_similarity() / find_topic_relationships(): Jaccard word overlap
  between consecutive topics, classified continuation or transition
- calculate_importance() / create_flow_structure() / create_document_map()
"""

import math
from typing import Sequence

from .models import (
    DocumentMap,
    DocumentStructure,
    FlowNode,
    SemanticChunk,
    Section,
    TopicRelationship,
)

DEFAULT_CONTINUATION_THRESHOLD = 0.7
DEFAULT_READING_CHARS_PER_MINUTE = 1000


def topic_similarity(topic_a: str, topic_b: str) -> float:
    """
    Jaccard similarity of the lowercase word sets of two topics.

    Symmetric and in [0, 1]; 0.0 when both topics are empty.
    """
    words_a = set(topic_a.lower().split())
    words_b = set(topic_b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def find_topic_relationships(
    topics: Sequence[str],
    threshold: float = DEFAULT_CONTINUATION_THRESHOLD,
) -> list[TopicRelationship]:
    """One relationship per consecutive pair of topics."""
    relationships = []
    for current, following in zip(topics, topics[1:]):
        strength = topic_similarity(current, following)
        relationships.append(TopicRelationship(
            source=current,
            target=following,
            strength=strength,
            kind="continuation" if strength > threshold else "transition",
        ))
    return relationships


def estimate_reading_time(total_chars: int, chars_per_minute: int = DEFAULT_READING_CHARS_PER_MINUTE) -> int:
    """Minutes, rounded up."""
    return math.ceil(total_chars / chars_per_minute)


def analyze_document_structure(
    sections: Sequence[Section],
    document_type: str,
    chars_per_minute: int = DEFAULT_READING_CHARS_PER_MINUTE,
) -> DocumentStructure:
    """
    Summarize the shape of a segmented document.

    Args:
        sections: Finalized sections in document order
        document_type: Classification cached by the context builder
        chars_per_minute: Reading speed used for the time estimate

    Returns:
        DocumentStructure
    """
    return DocumentStructure(
        total_sections=len(sections),
        has_hierarchy=any(s.level > 1 for s in sections),
        main_topics=tuple(s.title for s in sections if s.level == 1),
        document_type=document_type,
        estimated_reading_time=estimate_reading_time(
            sum(len(s.content) for s in sections), chars_per_minute
        ),
    )


def collect_key_points(sections: Sequence[Section]) -> list[str]:
    """Key concepts of all sections, deduplicated, first occurrence wins."""
    # dict keeps insertion order
    return list(dict.fromkeys(concept for s in sections for concept in s.key_concepts))


def calculate_importance(chunk: SemanticChunk) -> float:
    """Heuristic in [0, 1]: more distinct long words and more text rank higher."""
    unique_words = {
        word
        for sentence in chunk.sentences
        for word in sentence.text.lower().split()
        if len(word) > 3
    }
    return min(1.0, len(unique_words) / 50 + chunk.length / 10000)


def create_flow_structure(chunks: Sequence[SemanticChunk]) -> list[FlowNode]:
    """Linear reading flow: each chunk connects to the one after it."""
    return [
        FlowNode(
            node_id=chunk.chunk_id,
            topic=chunk.topic,
            position=position,
            connections=(chunks[position + 1].chunk_id,) if position + 1 < len(chunks) else (),
            importance=calculate_importance(chunk),
        )
        for position, chunk in enumerate(chunks)
    ]


def create_document_map(
    chunks: Sequence[SemanticChunk],
    threshold: float = DEFAULT_CONTINUATION_THRESHOLD,
) -> DocumentMap:
    topics = tuple(c.topic for c in chunks)
    return DocumentMap(
        total_chunks=len(chunks),
        topics=topics,
        relationships=tuple(find_topic_relationships(topics, threshold)),
        flow_structure=tuple(create_flow_structure(chunks)),
    )

"""
Document Processing Package for LabDigest.

Turns the raw text of an uploaded document into context-preserving chunk
summaries and one document-level synthesis for lab generation.

Architecture:
- StructuralSegmenter / SentenceSegmenter: Header-driven or sentence-packed chunking
- ContextBuilder: Digest of preceding chunks, document type, position
- ChunkSummarizer: Per-chunk summary, key concepts, topic
- structure_analyzer: Topic relationships, structure report, document map
- HierarchicalReducer: Single-call synthesis of all chunk summaries
- HierarchicalDocumentProcessor / SemanticDocumentProcessor: The pipelines

The flow is sequential map then reduce:
1. SEGMENT: Split text into bounded chunks
2. MAP: Summarize each chunk in order, with context from the chunks before it
3. ANALYZE: Structure report or topic map
4. REDUCE: One synthesis over all chunk summaries

Usage:
    from labdigest.processing import process_uploaded_text

    result = await process_uploaded_text(text, processing_type="hierarchical")
    payload = result.to_dict()
"""

from .chunk_summarizer import ChunkSummarizer
from .context_builder import ContextBuilder, infer_document_type
from .debug_export import save_debug_dataframe
from .document_query import (
    LabContext,
    RelevantSection,
    build_lab_context,
    find_relevant_sections,
    generate_contextual_answer,
)
from .models import (
    DocumentContext,
    DocumentMap,
    DocumentStructure,
    FlowNode,
    HierarchicalResult,
    SemanticChunk,
    SemanticResult,
    Section,
    Sentence,
    TopicRelationship,
)
from .pipeline import (
    HierarchicalDocumentProcessor,
    ProgressCallback,
    SemanticDocumentProcessor,
    process_uploaded_text,
)
from .reducer import HierarchicalReducer
from .segmenter import HeaderMatch, SentenceSegmenter, StructuralSegmenter
from .structure_analyzer import (
    analyze_document_structure,
    calculate_importance,
    collect_key_points,
    create_document_map,
    create_flow_structure,
    find_topic_relationships,
    topic_similarity,
)

__all__ = [
    # Segmentation
    "StructuralSegmenter",
    "SentenceSegmenter",
    "HeaderMatch",
    # Per-chunk processing
    "ContextBuilder",
    "infer_document_type",
    "ChunkSummarizer",
    # Analysis and reduction
    "topic_similarity",
    "find_topic_relationships",
    "analyze_document_structure",
    "collect_key_points",
    "calculate_importance",
    "create_flow_structure",
    "create_document_map",
    "HierarchicalReducer",
    # Pipelines
    "HierarchicalDocumentProcessor",
    "SemanticDocumentProcessor",
    "ProgressCallback",
    "process_uploaded_text",
    # Queries and debugging
    "LabContext",
    "RelevantSection",
    "build_lab_context",
    "find_relevant_sections",
    "generate_contextual_answer",
    "save_debug_dataframe",
    # Data model
    "Sentence",
    "Section",
    "SemanticChunk",
    "DocumentContext",
    "TopicRelationship",
    "FlowNode",
    "DocumentStructure",
    "DocumentMap",
    "HierarchicalResult",
    "SemanticResult",
]

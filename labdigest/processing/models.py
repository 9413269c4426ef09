"""
Data types for document processing.

Segmentation creates Sentence, Section and SemanticChunk instances; they are
frozen, and chunk processing fills summary/topic/key concepts exactly once by
building a new instance with dataclasses.replace(). Everything else here is
derived after all chunks are processed and never mutated.

Each public type has to_dict(), producing the camelCase shape the upload
layer hands to the lab-generation prompts:

    hierarchical: {sections, finalSummary, keyPoints, structure}
    semantic:     {semanticChunks, documentMap, finalSummary}
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Sentence:
    """
    One sentence of the source document.

    Attributes:
        index: Global position in the document (0-based)
        paragraph_index: Blank-line delimited paragraph the sentence belongs to
        text: Sentence text, stripped
        length: Character count of text
    """

    index: int
    paragraph_index: int
    text: str
    length: int

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "index": self.index,
            "paragraphIndex": self.paragraph_index,
            "length": self.length,
        }


@dataclass(frozen=True)
class Section:
    """
    A structurally delimited part of the document (header-driven mode).

    Attributes:
        section_id: Sequence-stable identifier ("section_0", "section_1", ...)
        title: Header text, "Introduction" for leading content, or
            "<title> (continued)" after a forced split
        content: Section text, including any overlap prefix
        level: Header depth, 1 for top-level or unmarked content
        start_line: First source line index
        end_line: Line index where the section was closed
        overlap: Text seeded from the previous section by a forced split
        summary: Filled once by the chunk summarizer
        key_concepts: Filled once by the chunk summarizer
        context: Context digest the summary was generated with
    """

    section_id: str
    title: str
    content: str
    level: int = 1
    start_line: int = 0
    end_line: int = 0
    overlap: str = ""
    summary: str = ""
    key_concepts: tuple[str, ...] = ()
    context: str = ""

    @property
    def length(self) -> int:
        return len(self.content)

    def to_dict(self) -> dict:
        return {
            "id": self.section_id,
            "title": self.title,
            "content": self.content,
            "type": "content",
            "level": self.level,
            "startIndex": self.start_line,
            "endIndex": self.end_line,
            "summary": self.summary,
            "keyConcepts": list(self.key_concepts),
            "context": self.context,
        }


@dataclass(frozen=True)
class SemanticChunk:
    """
    A group of consecutive sentences bounded by a character budget.

    Attributes:
        chunk_id: Sequence-stable identifier ("chunk_0", "chunk_1", ...)
        sentences: Member sentences in document order
        length: Sum of member sentence lengths
        overlap_count: Leading sentences repeated from the previous chunk
        topic: Filled once by the chunk summarizer
        summary: Filled once by the chunk summarizer
        context: Context digest the summary was generated with
    """

    chunk_id: str
    sentences: tuple[Sentence, ...]
    length: int
    overlap_count: int = 0
    topic: str = ""
    summary: str = ""
    context: str = ""

    # Sentence-driven chunks have no header hierarchy
    level = 1

    @property
    def text(self) -> str:
        return " ".join(s.text for s in self.sentences)

    @property
    def content(self) -> str:
        return self.text

    @property
    def title(self) -> str:
        return self.topic or self.chunk_id

    @property
    def key_concepts(self) -> tuple[str, ...]:
        return ()

    def to_dict(self) -> dict:
        return {
            "id": self.chunk_id,
            "sentences": [s.to_dict() for s in self.sentences],
            "topic": self.topic,
            "summary": self.summary,
            "length": self.length,
            "overlapCount": self.overlap_count,
            "context": self.context,
        }


@dataclass(frozen=True)
class DocumentContext:
    """
    Per-chunk digest of the material that precedes it. Never persisted.

    Attributes:
        summary: "<title>: <first 200 chars>..." lines for the preceding chunks
        previous_titles: Titles of those chunks, in order
        document_type: "code", "academic", "technical" or "general"
        current_position: "chunk k of n"
        previous_summary: Opening sentences of the previous chunk's summary
    """

    summary: str
    previous_titles: tuple[str, ...]
    document_type: str
    current_position: str
    previous_summary: str = ""


@dataclass(frozen=True)
class TopicRelationship:
    """Edge between two consecutive chunk topics."""

    source: str
    target: str
    strength: float
    kind: str  # "continuation" or "transition"

    def to_dict(self) -> dict:
        return {
            "from": self.source,
            "to": self.target,
            "strength": self.strength,
            "type": self.kind,
        }


@dataclass(frozen=True)
class FlowNode:
    """Position of one chunk in the document's reading flow."""

    node_id: str
    topic: str
    position: int
    connections: tuple[str, ...]
    importance: float

    def to_dict(self) -> dict:
        return {
            "id": self.node_id,
            "topic": self.topic,
            "position": self.position,
            "connections": list(self.connections),
            "importance": self.importance,
        }


@dataclass(frozen=True)
class DocumentStructure:
    """Document-level statistics over the finalized section list."""

    total_sections: int
    has_hierarchy: bool
    main_topics: tuple[str, ...]
    document_type: str
    estimated_reading_time: int  # Minutes

    def to_dict(self) -> dict:
        return {
            "totalSections": self.total_sections,
            "hasHierarchy": self.has_hierarchy,
            "mainTopics": list(self.main_topics),
            "documentType": self.document_type,
            "estimatedReadingTime": self.estimated_reading_time,
        }


@dataclass(frozen=True)
class DocumentMap:
    """Topic flow over the finalized semantic chunks."""

    total_chunks: int
    topics: tuple[str, ...]
    relationships: tuple[TopicRelationship, ...]
    flow_structure: tuple[FlowNode, ...] = ()

    def to_dict(self) -> dict:
        return {
            "totalChunks": self.total_chunks,
            "topics": list(self.topics),
            "relationships": [r.to_dict() for r in self.relationships],
            "flowStructure": [n.to_dict() for n in self.flow_structure],
        }


EMPTY_STRUCTURE = DocumentStructure(
    total_sections=0,
    has_hierarchy=False,
    main_topics=(),
    document_type="general",
    estimated_reading_time=0,
)

EMPTY_DOCUMENT_MAP = DocumentMap(total_chunks=0, topics=(), relationships=())


@dataclass
class HierarchicalResult:
    """
    Output of the header-driven pipeline.

    Attributes:
        sections: Processed sections in document order
        final_summary: Raw text of the reduction call
        key_points: Document-level key concepts, deduplicated, first-seen order
        structure: Structural statistics
        timing: Milliseconds spent per phase
    """

    sections: list[Section] = field(default_factory=list)
    final_summary: str = ""
    key_points: list[str] = field(default_factory=list)
    structure: DocumentStructure = EMPTY_STRUCTURE
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.sections

    def to_dict(self) -> dict:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "finalSummary": self.final_summary,
            "keyPoints": list(self.key_points),
            "structure": self.structure.to_dict(),
        }


@dataclass
class SemanticResult:
    """
    Output of the sentence-driven pipeline.

    Attributes:
        semantic_chunks: Processed chunks in document order
        document_map: Topic flow and relationships
        final_summary: Raw text of the reduction call
        timing: Milliseconds spent per phase
    """

    semantic_chunks: list[SemanticChunk] = field(default_factory=list)
    document_map: DocumentMap = EMPTY_DOCUMENT_MAP
    final_summary: str = ""
    timing: dict[str, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.semantic_chunks

    def to_dict(self) -> dict:
        return {
            "semanticChunks": [c.to_dict() for c in self.semantic_chunks],
            "documentMap": self.document_map.to_dict(),
            "finalSummary": self.final_summary,
        }


# Either kind of summarizable unit; both expose title, content, summary and key_concepts
Chunk = Section | SemanticChunk

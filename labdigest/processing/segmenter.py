"""
Text Segmenter

Splits raw document text into ordered, bounded units for summarization.
Two strategies:

1. StructuralSegmenter (hierarchical mode)
   - Header detection via an ordered tuple of line predicates
     (Markdown headings, numbered headings, ALL-CAPS labels)
   - Sections close at a header once they hold more than min_section_chars
   - Oversized sections are force-split at a sentence boundary past 80% of
     the budget; the continuation is seeded with the closed section's tail

2. SentenceSegmenter (semantic mode)
   - Paragraphs on blank lines, sentences on terminal punctuation
   - Greedy packing up to max_chunk_chars, seeding each new chunk with the
     last sentences of the one just closed

Both preserve document order and never drop or truncate text.
"""

import re
from dataclasses import dataclass
from typing import Callable, NamedTuple

from labdigest.config import ProcessingConfig
from labdigest.logging_config import debug_log

from .models import SemanticChunk, Section, Sentence

DEFAULT_SECTION_TITLE = "Introduction"
CONTINUATION_SUFFIX = " (continued)"

_MARKDOWN_HEADER = re.compile(r"^(#{1,6})\s+(.+)$")
_NUMBERED_HEADER = re.compile(r"^(\d+)(\.?)\s+.+$")
_CAPS_LABEL = re.compile(r"^([A-Z][A-Z\s]+:)")

_SENTENCE_BOUNDARY = re.compile(r"[.!?]\s+")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


# =============================================================================
# Header Detection
# =============================================================================

@dataclass(frozen=True)
class HeaderMatch:
    """Title and hierarchy level of a detected header line."""

    title: str
    level: int


HeaderPredicate = Callable[[str], HeaderMatch | None]


def markdown_header(line: str) -> HeaderMatch | None:
    """'## Title' -> HeaderMatch('Title', 2)."""
    match = _MARKDOWN_HEADER.match(line)
    if not match:
        return None
    return HeaderMatch(title=match.group(2).strip(), level=len(match.group(1)))


def numbered_header(line: str) -> HeaderMatch | None:
    """
    '3. Methods' -> level 2, '12. Appendix' -> level 3.

    Two-digit-plus numbers sit one level deeper than single digits; a number
    without a trailing dot is treated as top level.
    """
    match = _NUMBERED_HEADER.match(line)
    if not match:
        return None
    if match.group(2):
        level = 3 if int(match.group(1)) > 9 else 2
    else:
        level = 1
    return HeaderMatch(title=line.strip(), level=level)


def caps_label_header(line: str) -> HeaderMatch | None:
    """'REQUIREMENTS:' -> HeaderMatch('REQUIREMENTS:', 1)."""
    match = _CAPS_LABEL.match(line)
    if not match:
        return None
    return HeaderMatch(title=match.group(1).strip(), level=1)


HEADER_PREDICATES: tuple[HeaderPredicate, ...] = (
    markdown_header,
    numbered_header,
    caps_label_header,
)


def detect_header(
    line: str,
    predicates: tuple[HeaderPredicate, ...] = HEADER_PREDICATES,
) -> HeaderMatch | None:
    """Return the first predicate match for line, or None."""
    for predicate in predicates:
        header = predicate(line)
        if header is not None:
            return header
    return None


def find_natural_split_point(content: str, max_chars: int, split_ratio: float) -> int:
    """
    Offset just past the first sentence boundary beyond split_ratio * max_chars.

    Returns 0 when no such boundary exists; the caller then leaves the
    section whole, accepting an oversized chunk.
    """
    threshold = max_chars * split_ratio
    for match in _SENTENCE_BOUNDARY.finditer(content):
        if match.end() > threshold:
            return match.end()
    return 0


def _normalize_newlines(text: str) -> str:
    return text.replace('\r\n', '\n').replace('\r', '\n')


# =============================================================================
# Structural Segmentation
# =============================================================================

class _SectionDraft(NamedTuple):
    """Fold state: the section currently being accumulated."""

    title: str
    level: int
    start_line: int
    content: str
    overlap: str = ""
    from_header: bool = False


class StructuralSegmenter:
    """
    Header-driven segmentation into Sections.

    Implemented as a fold over lines: each step takes the current draft and
    returns the next draft plus any sections it closed.

    Example:
        segmenter = StructuralSegmenter(ProcessingConfig())
        sections = segmenter.segment("# Intro\\n...\\n# Details\\n...")
    """

    def __init__(
        self,
        config: ProcessingConfig | None = None,
        header_predicates: tuple[HeaderPredicate, ...] = HEADER_PREDICATES,
    ):
        self.config = config or ProcessingConfig()
        self.header_predicates = header_predicates

    def segment(self, text: str) -> list[Section]:
        """
        Split text into ordered sections.

        Args:
            text: Raw document text

        Returns:
            List of Section objects; empty for blank input
        """
        if not text or not text.strip():
            return []

        lines = _normalize_newlines(text).split('\n')
        sections: list[Section] = []
        draft = _SectionDraft(title=DEFAULT_SECTION_TITLE, level=1, start_line=0, content="")

        for index, line in enumerate(lines):
            draft, closed = self._step(draft, index, line, len(sections))
            sections.extend(closed)

        if draft.content.strip():
            sections.append(self._close(draft, draft.content, len(lines), len(sections)))

        debug_log(
            f"[SEGMENTER] Structural: {len(lines)} lines -> {len(sections)} sections, "
            f"{sum(1 for s in sections if s.overlap)} forced splits"
        )
        return sections

    def _step(
        self,
        draft: _SectionDraft,
        index: int,
        line: str,
        emitted: int,
    ) -> tuple[_SectionDraft, list[Section]]:
        """Fold one line into the draft."""
        closed: list[Section] = []
        header = detect_header(line, self.header_predicates)

        if header and not draft.from_header and not draft.content.strip():
            # Leading header names the first section instead of opening a new one
            draft = draft._replace(
                title=header.title, level=header.level, start_line=index, from_header=True
            )
        elif header and len(draft.content) > self.config.min_section_chars:
            closed.append(self._close(draft, draft.content, index, emitted))
            draft = _SectionDraft(
                title=header.title,
                level=header.level,
                start_line=index,
                content="",
                from_header=True,
            )
        else:
            draft = draft._replace(content=draft.content + line + '\n')

        while len(draft.content) > self.config.max_section_chars:
            split_point = find_natural_split_point(
                draft.content, self.config.max_section_chars, self.config.split_ratio
            )
            if split_point <= 0:
                break

            closed.append(
                self._close(draft, draft.content[:split_point], index, emitted + len(closed))
            )
            overlap_start = max(0, split_point - self.config.section_overlap_chars)
            overlap = draft.content[overlap_start:split_point].lstrip()
            draft = _SectionDraft(
                title=draft.title.removesuffix(CONTINUATION_SUFFIX) + CONTINUATION_SUFFIX,
                level=draft.level,
                start_line=index,
                content=overlap + draft.content[split_point:],
                overlap=overlap,
                from_header=True,
            )

        return draft, closed

    @staticmethod
    def _close(draft: _SectionDraft, content: str, end_line: int, position: int) -> Section:
        return Section(
            section_id=f"section_{position}",
            title=draft.title,
            content=content.strip(),
            level=draft.level,
            start_line=draft.start_line,
            end_line=end_line,
            overlap=draft.overlap,
        )


# =============================================================================
# Sentence Segmentation
# =============================================================================

def split_into_sentences(text: str) -> list[Sentence]:
    """
    Split text into sentences with global and paragraph positions.

    A trailing fragment without terminal punctuation is kept as a sentence.
    """
    sentences: list[Sentence] = []
    paragraphs = _PARAGRAPH_BREAK.split(_normalize_newlines(text))

    for paragraph_index, paragraph in enumerate(paragraphs):
        for piece in _SENTENCE_SPLIT.split(paragraph.strip()):
            piece = piece.strip()
            if piece:
                sentences.append(Sentence(
                    index=len(sentences),
                    paragraph_index=paragraph_index,
                    text=piece,
                    length=len(piece),
                ))

    return sentences


def pack_sentences(
    sentences: list[Sentence],
    max_chars: int,
    overlap_sentences: int = 2,
) -> list[SemanticChunk]:
    """
    Greedily pack sentences into chunks of at most max_chars characters.

    When a sentence would overflow a non-empty chunk, the chunk is closed and
    the next one starts with the closed chunk's last overlap_sentences
    sentences. Seeded sentences are dropped from the front only when the
    seed plus the incoming sentence would itself exceed the budget.
    A single sentence longer than max_chars becomes its own chunk.
    """
    chunks: list[SemanticChunk] = []
    current: list[Sentence] = []
    current_length = 0
    overlap_count = 0

    for sentence in sentences:
        if current and current_length + sentence.length > max_chars:
            chunks.append(_make_chunk(len(chunks), current, current_length, overlap_count))

            seed = current[-overlap_sentences:] if overlap_sentences > 0 else []
            while seed and sum(s.length for s in seed) + sentence.length > max_chars:
                seed = seed[1:]

            current = list(seed)
            current_length = sum(s.length for s in seed)
            overlap_count = len(seed)

        current.append(sentence)
        current_length += sentence.length

    if current:
        chunks.append(_make_chunk(len(chunks), current, current_length, overlap_count))

    return chunks


def _make_chunk(position: int, sentences: list[Sentence], length: int, overlap_count: int) -> SemanticChunk:
    return SemanticChunk(
        chunk_id=f"chunk_{position}",
        sentences=tuple(sentences),
        length=length,
        overlap_count=overlap_count,
    )


class SentenceSegmenter:
    """Sentence-driven segmentation into SemanticChunks."""

    def __init__(self, config: ProcessingConfig | None = None):
        self.config = config or ProcessingConfig()

    def segment(self, text: str) -> list[SemanticChunk]:
        if not text or not text.strip():
            return []

        sentences = split_into_sentences(text)
        chunks = pack_sentences(
            sentences,
            max_chars=self.config.max_chunk_chars,
            overlap_sentences=self.config.overlap_sentences,
        )

        debug_log(f"[SEGMENTER] Semantic: {len(sentences)} sentences -> {len(chunks)} chunks")
        return chunks

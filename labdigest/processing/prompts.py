"""
Prompt templates for every completion call made during a document run.

Templates use str.format placeholders; the build_* helpers fill them so the
pipeline code never assembles prompt text inline.
"""

from .models import Chunk, DocumentContext, DocumentMap, SemanticChunk, Section

SECTION_SUMMARY_PROMPT = """Context: {context_summary}
Document Type: {document_type}
Position: {position}
Previous Summary: {previous_summary}

Summarize the following section while maintaining coherence with the context:
{content}

Focus on:
- Key concepts and definitions
- Important relationships to previous sections
- Main arguments or findings
- Actionable information
"""

KEY_CONCEPTS_PROMPT = """Extract 3-5 key concepts, terms, or topics from this text. Return only the concepts, one per line:

{content}"""

TOPIC_PROMPT = """Extract the main topic or theme from this text in 3-5 words:

{content}"""

HIERARCHICAL_SUMMARY_PROMPT = """Create a comprehensive summary of this document that maintains its logical structure:

{section_summaries}

Provide:
1. Executive summary (2-3 sentences)
2. Main sections and their key points
3. Important relationships between sections
4. Conclusion and implications
"""

SEMANTIC_SUMMARY_PROMPT = """Create a comprehensive summary of this document based on its semantic structure:

Document Topics: {topic_flow}
Total Sections: {total_chunks}

Section Summaries:
{chunk_summaries}

Provide:
1. Main theme and purpose
2. Key topics and their relationships
3. Important conclusions
4. Logical flow of the document
"""

CONTEXTUAL_ANSWER_PROMPT = """Based on the following document sections, answer this query: "{query}"

Context:
{context}

Provide a comprehensive answer that:
1. Directly addresses the query
2. References specific sections when relevant
3. Provides practical insights
4. Maintains accuracy to the source material
"""

TOPIC_FLOW_SEPARATOR = " → "


def build_section_summary_prompt(content: str, context: DocumentContext) -> str:
    return SECTION_SUMMARY_PROMPT.format(
        context_summary=context.summary or "(start of document)",
        document_type=context.document_type,
        position=context.current_position,
        previous_summary=context.previous_summary or "(none)",
        content=content,
    )


def build_key_concepts_prompt(content: str) -> str:
    return KEY_CONCEPTS_PROMPT.format(content=content)


def build_topic_prompt(content: str) -> str:
    return TOPIC_PROMPT.format(content=content)


def format_section_block(section: Section) -> str:
    """'## <title>\\n<summary>\\nKey concepts: <a, b>'"""
    return (
        f"## {section.title}\n{section.summary}\n"
        f"Key concepts: {', '.join(section.key_concepts)}"
    )


def build_hierarchical_summary_prompt(sections: list[Section]) -> str:
    blocks = "\n\n".join(format_section_block(s) for s in sections)
    return HIERARCHICAL_SUMMARY_PROMPT.format(section_summaries=blocks)


def build_semantic_summary_prompt(chunks: list[SemanticChunk], document_map: DocumentMap) -> str:
    blocks = "\n\n".join(f"**{c.topic}**: {c.summary}" for c in chunks)
    return SEMANTIC_SUMMARY_PROMPT.format(
        topic_flow=TOPIC_FLOW_SEPARATOR.join(document_map.topics),
        total_chunks=document_map.total_chunks,
        chunk_summaries=blocks,
    )


def build_contextual_answer_prompt(sections: list[Chunk], query: str) -> str:
    context = "\n\n".join(
        f"Section: {s.title}\nSummary: {s.summary}\nKey Concepts: {', '.join(s.key_concepts)}"
        for s in sections
    )
    return CONTEXTUAL_ANSWER_PROMPT.format(query=query, context=context)

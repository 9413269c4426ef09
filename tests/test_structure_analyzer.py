"""
Tests for topic relationships, structure reports and document maps.
"""

import pytest

from labdigest.processing.models import SemanticChunk, Section, Sentence
from labdigest.processing.structure_analyzer import (
    analyze_document_structure,
    calculate_importance,
    collect_key_points,
    create_document_map,
    create_flow_structure,
    estimate_reading_time,
    find_topic_relationships,
    topic_similarity,
)


def _section(n, level=1, length=100, key_concepts=()):
    return Section(
        section_id=f"section_{n}",
        title=f"Part {n}",
        content="x" * length,
        level=level,
        key_concepts=tuple(key_concepts),
    )


def _chunk(n, topic, text="Short sentence."):
    sentence = Sentence(index=0, paragraph_index=0, text=text, length=len(text))
    return SemanticChunk(chunk_id=f"chunk_{n}", sentences=(sentence,), length=len(text), topic=topic)


class TestTopicSimilarity:
    """Test Jaccard word-set similarity."""

    def test_identical_topics_continue(self):
        assert topic_similarity("Chemistry", "Chemistry") == 1.0

        relationships = find_topic_relationships(["Chemistry", "Chemistry"])

        assert len(relationships) == 1
        assert relationships[0].strength == 1.0
        assert relationships[0].kind == "continuation"

    def test_disjoint_topics_transition(self):
        assert topic_similarity("Chemistry", "History") == 0.0

        relationships = find_topic_relationships(["Chemistry", "History"])

        assert relationships[0].strength == 0.0
        assert relationships[0].kind == "transition"

    def test_case_insensitive(self):
        assert topic_similarity("Cell Biology", "cell biology") == 1.0

    def test_partial_overlap(self):
        assert topic_similarity("organic chemistry", "inorganic chemistry") == pytest.approx(1 / 3)

    def test_empty_topics(self):
        assert topic_similarity("", "") == 0.0
        assert topic_similarity("Chemistry", "") == 0.0

    @pytest.mark.parametrize("a, b", [
        ("plant cell structure", "animal cell structure"),
        ("Newton laws", "laws of motion"),
        ("", "anything"),
        ("a b c", "c d"),
    ])
    def test_symmetric_and_bounded(self, a, b):
        forward = topic_similarity(a, b)

        assert forward == topic_similarity(b, a)
        assert 0.0 <= forward <= 1.0


class TestTopicRelationships:

    def test_one_relationship_per_consecutive_pair(self):
        relationships = find_topic_relationships(["A", "B", "C", "D"])

        assert [(r.source, r.target) for r in relationships] == [("A", "B"), ("B", "C"), ("C", "D")]

    def test_single_or_no_topic(self):
        assert find_topic_relationships(["Only"]) == []
        assert find_topic_relationships([]) == []

    def test_strength_equal_to_threshold_is_transition(self):
        relationships = find_topic_relationships(["a b", "a c"], threshold=1 / 3)

        assert relationships[0].kind == "transition"

    def test_to_dict_shape(self):
        relationship = find_topic_relationships(["Chemistry", "Chemistry"])[0]

        assert relationship.to_dict() == {
            "from": "Chemistry", "to": "Chemistry", "strength": 1.0, "type": "continuation",
        }


class TestDocumentStructure:
    """Test the structure report over finalized sections."""

    def test_structure_report(self):
        sections = [_section(0, 1, 1500), _section(1, 2, 200), _section(2, 1, 301)]

        structure = analyze_document_structure(sections, "academic")

        assert structure.total_sections == 3
        assert structure.has_hierarchy is True
        assert structure.main_topics == ("Part 0", "Part 2")
        assert structure.document_type == "academic"
        assert structure.estimated_reading_time == 3

    def test_flat_document(self):
        structure = analyze_document_structure([_section(0), _section(1)], "general")

        assert structure.has_hierarchy is False
        assert structure.estimated_reading_time == 1

    def test_empty_document(self):
        structure = analyze_document_structure([], "general")

        assert structure.total_sections == 0
        assert structure.main_topics == ()
        assert structure.estimated_reading_time == 0

    def test_reading_time_rounds_up(self):
        assert estimate_reading_time(1000) == 1
        assert estimate_reading_time(1001) == 2
        assert estimate_reading_time(0) == 0

    def test_analysis_is_idempotent(self):
        sections = [_section(0, 1, 700, ["a"]), _section(1, 2, 900, ["b"])]

        assert analyze_document_structure(sections, "code") == analyze_document_structure(sections, "code")
        assert collect_key_points(sections) == collect_key_points(sections)


class TestKeyPoints:

    def test_first_seen_order_deduplication(self):
        sections = [
            _section(0, key_concepts=["Osmosis", "Diffusion"]),
            _section(1, key_concepts=["Diffusion", "Active transport"]),
            _section(2, key_concepts=["Osmosis"]),
        ]

        assert collect_key_points(sections) == ["Osmosis", "Diffusion", "Active transport"]

    def test_no_concepts(self):
        assert collect_key_points([_section(0)]) == []


class TestDocumentMap:
    """Test importance, flow structure and the full map."""

    def test_importance_formula(self):
        chunk = _chunk(0, "Foxes", text="The quick brown foxes jumped")

        # quick, brown, foxes, jumped -> 4 unique words longer than 3 chars
        assert calculate_importance(chunk) == pytest.approx(4 / 50 + 28 / 10000)

    def test_importance_capped_at_one(self):
        text = " ".join(f"word{i:03d}" for i in range(200))
        chunk = _chunk(0, "Many words", text=text)

        assert calculate_importance(chunk) == 1.0

    def test_flow_structure_links_chunks_in_order(self):
        chunks = [_chunk(0, "A"), _chunk(1, "B"), _chunk(2, "C")]

        flow = create_flow_structure(chunks)

        assert [n.position for n in flow] == [0, 1, 2]
        assert [n.connections for n in flow] == [("chunk_1",), ("chunk_2",), ()]
        assert [n.topic for n in flow] == ["A", "B", "C"]

    def test_document_map(self):
        chunks = [_chunk(0, "Chemistry"), _chunk(1, "Chemistry"), _chunk(2, "History")]

        document_map = create_document_map(chunks)

        assert document_map.total_chunks == 3
        assert document_map.topics == ("Chemistry", "Chemistry", "History")
        assert [r.kind for r in document_map.relationships] == ["continuation", "transition"]
        assert len(document_map.flow_structure) == 3

    def test_document_map_to_dict_keys(self):
        document_map = create_document_map([_chunk(0, "A")])

        assert set(document_map.to_dict()) == {"totalChunks", "topics", "relationships", "flowStructure"}

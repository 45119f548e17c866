"""
Unit tests for hybrid search (BM25 + embedding similarity)

Tests verify:
- Weighted blend over min-max normalized scores
- RRF fusion with missing documents charged a worst-case rank
- min_score applies to the fused score
- Embedding bookkeeping (set_embedding, replacement, removal)
"""

import pytest
from pydantic import ValidationError

from memory_search.config import HybridSearchConfig
from memory_search.hybrid import HybridSearchIndex, cosine_similarity, create_hybrid_search
from memory_search.models import HybridDocument


@pytest.fixture
def vector_only_index():
    """Three documents with embeddings at decreasing angles from [1, 0]"""
    index = HybridSearchIndex(vector_weight=1.0, bm25_weight=0.0, min_score=0.0)
    index.add(HybridDocument("d1", "first note", embedding=[1.0, 0.0]))
    index.add(HybridDocument("d2", "second note", embedding=[0.8, 0.6]))
    index.add(HybridDocument("d3", "third note", embedding=[0.6, 0.8]))
    return index


@pytest.fixture
def ops_index():
    index = HybridSearchIndex(min_score=0.0)
    index.add(HybridDocument("a", "kubernetes pods restart", embedding=[1.0, 0.0], metadata={"title": "Pods"}))
    index.add(HybridDocument("b", "postgres tuning notes", embedding=[0.6, 0.8]))
    index.add(HybridDocument("c", "gardening tips for spring"))
    return index


class TestCosineSimilarity:
    """Test dense vector similarity"""

    def test_identical(self):
        assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_mismatched_dimensions(self):
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0]) == 0.0

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


class TestWeightedBlend:
    """Default fusion mode"""

    def test_vector_only_follows_cosine_order(self, vector_only_index):
        """With weights 1/0 the order is the cosine order"""
        results = vector_only_index.search("unrelated words", query_embedding=[1.0, 0.0])

        assert [r.id for r in results] == ["d1", "d2", "d3"]
        assert [r.score for r in results] == pytest.approx([1.0, 0.5, 0.0])

    def test_bm25_only_without_embedding(self, ops_index):
        """No query embedding: pure keyword search, scaled by bm25_weight"""
        results = ops_index.search("kubernetes")

        assert [r.id for r in results] == ["a"]
        assert results[0].score == pytest.approx(0.3)
        assert results[0].bm25_score == pytest.approx(1.0)
        assert results[0].vector_score == 0.0
        assert results[0].metadata == {"title": "Pods"}

    def test_both_signals(self, ops_index):
        """A document strong in both lists tops the ranking"""
        results = ops_index.search("kubernetes", query_embedding=[1.0, 0.0])

        assert results[0].id == "a"
        assert results[0].score == pytest.approx(1.0)
        assert "c" not in {r.id for r in results}

    def test_min_score_on_fused_score(self, ops_index):
        ops_index.set_config(min_score=0.5)
        results = ops_index.search("kubernetes", query_embedding=[1.0, 0.0])

        assert [r.id for r in results] == ["a"]

    def test_limit(self, vector_only_index):
        results = vector_only_index.search("x", query_embedding=[1.0, 0.0], limit=2)
        assert len(results) == 2


class TestReciprocalRankFusion:
    """use_rrf=True"""

    def test_rrf_scores(self, ops_index):
        """Missing from a list = rank document_count + 1 in that list"""
        ops_index.set_config(use_rrf=True)
        results = ops_index.search("kubernetes", query_embedding=[1.0, 0.0])

        scores = {r.id: r.score for r in results}
        assert [r.id for r in results] == ["a", "b"]
        assert scores["a"] == pytest.approx(2 / 61)
        # b: absent from BM25 (rank 3 + 1), second by vector
        assert scores["b"] == pytest.approx(1 / 64 + 1 / 62)

    def test_rrf_reports_raw_component_scores(self, ops_index):
        ops_index.set_config(use_rrf=True)
        result = ops_index.search("kubernetes", query_embedding=[1.0, 0.0])[1]

        assert result.vector_score == pytest.approx(0.6)
        assert result.bm25_score == 0.0

    def test_blend_threshold_too_strict_for_rrf(self, ops_index):
        """RRF scores top out near 2/(k+1), far below blend thresholds"""
        ops_index.set_config(use_rrf=True, min_score=0.5)
        assert ops_index.search("kubernetes", query_embedding=[1.0, 0.0]) == []


class TestEdgeCases:
    """Empty inputs and degenerate data"""

    def test_empty_index(self):
        assert HybridSearchIndex().search("anything", query_embedding=[1.0]) == []

    def test_no_matches(self, ops_index):
        assert ops_index.search("zebra") == []

    def test_limit_zero(self, ops_index):
        assert ops_index.search("kubernetes", limit=0) == []

    def test_mismatched_query_embedding_ignored(self, ops_index):
        results = ops_index.search("kubernetes", query_embedding=[1.0, 0.0, 0.0])
        assert all(r.vector_score == 0.0 for r in results)


class TestDocumentManagement:
    """Embeddings and document lifecycle"""

    def test_set_embedding(self, ops_index):
        assert ops_index.set_embedding("missing", [1.0, 0.0]) is False
        assert ops_index.embedding_count == 2

        assert ops_index.set_embedding("c", [0.0, 1.0]) is True
        assert ops_index.embedding_count == 3

    def test_readd_without_embedding_drops_it(self, ops_index):
        ops_index.add(HybridDocument("a", "kubernetes pods restart"))

        assert ops_index.size == 3
        assert ops_index.embedding_count == 1

    def test_remove(self, ops_index):
        assert ops_index.remove("a") is True
        assert ops_index.remove("a") is False

        assert "a" not in ops_index
        assert ops_index.bm25.size == 2
        assert ops_index.search("kubernetes") == []

    def test_get(self, ops_index):
        assert ops_index.get("b").content == "postgres tuning notes"
        assert ops_index.get("zzz") is None

    def test_caller_edits_do_not_leak_in(self, ops_index):
        """The index stores its own copy of each document"""
        doc = HybridDocument("d", "kubernetes upgrade notes", embedding=[0.0, 1.0], metadata={"title": "Upgrade"})
        ops_index.add(doc)

        doc.content = "gardening"
        doc.metadata["title"] = "Changed"
        doc.embedding[0] = 5.0

        stored = ops_index.get("d")
        assert stored is not doc
        assert stored.content == "kubernetes upgrade notes"
        assert stored.metadata == {"title": "Upgrade"}
        assert stored.embedding == [0.0, 1.0]
        assert ops_index.search("upgrade")[0].content == "kubernetes upgrade notes"
        assert ops_index.search("upgrade", query_embedding=[0.0, 1.0])[0].id == "d"

    def test_set_embedding_updates_stored_document(self, ops_index):
        ops_index.set_embedding("c", [0.5, 0.5])
        assert ops_index.get("c").embedding == [0.5, 0.5]

    def test_clear(self, ops_index):
        ops_index.clear()
        assert len(ops_index) == 0
        assert ops_index.embedding_count == 0


class TestHybridConfig:
    """Validated configuration"""

    def test_defaults(self):
        config = create_hybrid_search().config

        assert config.vector_weight == 0.7
        assert config.bm25_weight == 0.3
        assert config.use_rrf is False
        assert config.rrf_k == 60

    def test_bm25_parameters_from_config(self):
        index = HybridSearchIndex(HybridSearchConfig(bm25_k1=1.8, bm25_b=0.6))

        assert index.bm25.k1 == 1.8
        assert index.bm25.b == 0.6

    def test_set_config_pushes_bm25_parameters(self, ops_index):
        ops_index.set_config(bm25_k1=2.0, bm25_b=0.5)

        assert ops_index.bm25.k1 == 2.0
        assert ops_index.bm25.b == 0.5

    def test_invalid_config(self, ops_index):
        with pytest.raises(ValidationError):
            ops_index.set_config(bm25_b=2.0)
        with pytest.raises(ValidationError):
            HybridSearchIndex(rrf_k=0)
        with pytest.raises(ValidationError):
            HybridSearchIndex(unknown_setting=1)

        assert ops_index.config.bm25_b == 0.75

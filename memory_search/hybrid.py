"""
Hybrid search: BM25 keyword ranking fused with vector similarity.

Vector scores come from caller-supplied embeddings (cosine similarity between
the query embedding and each document embedding); this module never computes
embeddings itself. Without a query embedding the search degrades to pure BM25.

Fusion modes (HybridSearchConfig.use_rrf):
- Weighted blend (default, 70% vector + 30% BM25): each score list is min-max
  normalized to [0, 1] independently, then blended with the configured weights.
- RRF: score = 1/(k + bm25_rank) + 1/(k + vector_rank); a document missing
  from one list is charged rank (document_count + 1) there instead of being
  dropped.

min_score always applies to the fused score (see HybridSearchConfig for how
differently the two modes scale).
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import numpy as np

from .bm25.fusion import (
    min_max_normalize,
    rank_by_score,
    reciprocal_rank_fusion,
    weighted_blend,
)
from .bm25.index import BM25Index
from .config import HybridSearchConfig, updated
from .models import HybridDocument, HybridSearchResult

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two dense vectors.

    Returns 0.0 for vectors of different dimensions or zero magnitude.
    """
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    if vec_a.shape != vec_b.shape or vec_a.size == 0:
        return 0.0

    magnitude = float(np.linalg.norm(vec_a) * np.linalg.norm(vec_b))
    if magnitude == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / magnitude)


class HybridSearchIndex:
    """
    Combines BM25 and vector similarity search with configurable fusion.

    Owns its BM25 index, document store and embeddings; none of them are
    shared with other instances.
    """

    def __init__(self, config: Optional[HybridSearchConfig] = None, **overrides):
        base = config or HybridSearchConfig()
        self._config: HybridSearchConfig = updated(base, overrides) if overrides else base
        self._bm25 = BM25Index(self._config.bm25_config())
        self._documents: Dict[str, HybridDocument] = {}
        self._embeddings: Dict[str, np.ndarray] = {}

    def add(self, doc: HybridDocument) -> None:
        """Add or replace a document (content, BM25 entry and embedding)."""
        embedding = None
        if doc.embedding is not None:
            embedding = np.array(doc.embedding, dtype=float)

        if doc.id in self._documents:
            self.remove(doc.id)

        self._bm25.add(doc.id, doc.content)
        # Stored as a copy owned by the index
        self._documents[doc.id] = replace(
            doc,
            embedding=None if embedding is None else embedding.tolist(),
            metadata=dict(doc.metadata),
        )
        if embedding is not None:
            self._embeddings[doc.id] = embedding

        logger.debug(f"Hybrid indexed {doc.id} (embedding={'yes' if embedding is not None else 'no'})")

    def set_embedding(self, doc_id: str, embedding: Sequence[float]) -> bool:
        """
        Attach or replace the embedding of an indexed document.

        Returns:
            False if the document is not indexed (nothing is stored)
        """
        if doc_id not in self._documents:
            return False
        self._embeddings[doc_id] = np.array(embedding, dtype=float)
        self._documents[doc_id].embedding = self._embeddings[doc_id].tolist()
        return True

    def remove(self, doc_id: str) -> bool:
        if self._documents.pop(doc_id, None) is None:
            return False
        self._bm25.remove(doc_id)
        self._embeddings.pop(doc_id, None)
        return True

    def get(self, doc_id: str) -> Optional[HybridDocument]:
        return self._documents.get(doc_id)

    def search(
        self,
        query: str,
        query_embedding: Optional[Sequence[float]] = None,
        limit: int = 10,
    ) -> List[HybridSearchResult]:
        """
        Hybrid search.

        Args:
            query: Keyword query for BM25
            query_embedding: Optional query vector, compared against every
                document that carries an embedding
            limit: Maximum number of results

        Returns:
            Results with fused score >= min_score, sorted by score (descending)
        """
        if limit <= 0 or not self._documents:
            return []

        bm25_hits = self._bm25.search(query, limit * 2)
        bm25_scores = {hit.id: hit.score for hit in bm25_hits}

        vector_scores: Dict[str, float] = {}
        if query_embedding is not None and self._embeddings:
            for doc_id, embedding in self._embeddings.items():
                score = cosine_similarity(query_embedding, embedding)
                if score > 0:
                    vector_scores[doc_id] = score

        if not bm25_scores and not vector_scores:
            return []

        if self._config.use_rrf:
            results = self._rrf_results(bm25_scores, [hit.id for hit in bm25_hits], vector_scores)
        else:
            results = self._blended_results(bm25_scores, vector_scores)

        results = [r for r in results if r.score >= self._config.min_score]
        results.sort(key=lambda r: (-r.score, r.id))

        logger.debug(
            f"Hybrid search: {len(bm25_scores)} BM25 hits, {len(vector_scores)} vector hits, "
            f"{len(results)} results (rrf={self._config.use_rrf})"
        )
        return results[:limit]

    def _blended_results(
        self,
        bm25_scores: Dict[str, float],
        vector_scores: Dict[str, float],
    ) -> List[HybridSearchResult]:
        norm_bm25 = min_max_normalize(bm25_scores)
        norm_vector = min_max_normalize(vector_scores)
        fused = weighted_blend(
            norm_vector,
            norm_bm25,
            self._config.vector_weight,
            self._config.bm25_weight,
        )

        return [
            HybridSearchResult(
                id=doc_id,
                score=score,
                vector_score=norm_vector.get(doc_id, 0.0),
                bm25_score=norm_bm25.get(doc_id, 0.0),
                content=self._documents[doc_id].content,
                metadata=self._documents[doc_id].metadata,
            )
            for doc_id, score in fused.items()
        ]

    def _rrf_results(
        self,
        bm25_scores: Dict[str, float],
        bm25_ranking: List[str],
        vector_scores: Dict[str, float],
    ) -> List[HybridSearchResult]:
        doc_ids = list({**bm25_scores, **vector_scores})
        fused = reciprocal_rank_fusion(
            [bm25_ranking, rank_by_score(vector_scores)],
            k=self._config.rrf_k,
            # Absent from a list = ranked after every document
            missing_rank=len(self._documents) + 1,
            item_ids=doc_ids,
        )

        return [
            HybridSearchResult(
                id=doc_id,
                score=fused[doc_id],
                vector_score=vector_scores.get(doc_id, 0.0),
                bm25_score=bm25_scores.get(doc_id, 0.0),
                content=self._documents[doc_id].content,
                metadata=self._documents[doc_id].metadata,
            )
            for doc_id in doc_ids
        ]

    @property
    def config(self) -> HybridSearchConfig:
        return self._config.model_copy()

    def set_config(self, **updates) -> None:
        """
        Update settings (validated). BM25 k1/b are pushed into the owned BM25
        index; indexed documents are rescored on the next search.
        """
        self._config = updated(self._config, updates)
        self._bm25.k1 = self._config.bm25_k1
        self._bm25.b = self._config.bm25_b
        logger.debug(
            f"Hybrid config updated: vector={self._config.vector_weight}, "
            f"bm25={self._config.bm25_weight}, rrf={self._config.use_rrf}"
        )

    @property
    def bm25(self) -> BM25Index:
        return self._bm25

    @property
    def size(self) -> int:
        return len(self._documents)

    @property
    def embedding_count(self) -> int:
        return len(self._embeddings)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def clear(self) -> None:
        self._documents.clear()
        self._embeddings.clear()
        self._bm25.clear()


def create_hybrid_search(config: Optional[HybridSearchConfig] = None, **overrides) -> HybridSearchIndex:
    """Create a hybrid search index, optionally overriding individual settings."""
    return HybridSearchIndex(config, **overrides)

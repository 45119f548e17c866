"""
In-memory BM25 keyword index.

Keeps raw token counts per document, a term -> document-id posting map and the
running average document length (recomputed after every add/remove). Scoring
is delegated to BM25Scorer, so k1/b can change without re-indexing.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Set

from ..config import BM25Config, updated
from ..models import SearchHit
from ..tokenizer import term_counts, tokenize
from .scorer import BM25Scorer

logger = logging.getLogger(__name__)


@dataclass
class BM25Document:
    id: str
    tokens: List[str]
    length: int
    term_frequencies: Dict[str, int]


class BM25Index:
    """Okapi BM25 keyword index"""

    def __init__(self, config: Optional[BM25Config] = None, **overrides):
        base = config or BM25Config()
        cfg = updated(base, overrides) if overrides else base
        self.scorer = BM25Scorer(k1=cfg.k1, b=cfg.b)
        self._documents: Dict[str, BM25Document] = {}
        self._postings: Dict[str, Set[str]] = {}
        self._avg_doc_length = 0.0

    @property
    def k1(self) -> float:
        return self.scorer.k1

    @k1.setter
    def k1(self, value: float) -> None:
        self.scorer.k1 = value

    @property
    def b(self) -> float:
        return self.scorer.b

    @b.setter
    def b(self, value: float) -> None:
        self.scorer.b = value

    def add(self, doc_id: str, text: str) -> None:
        """Add or replace a document."""
        tokens = tokenize(text)
        frequencies = term_counts(tokens)

        if doc_id in self._documents:
            self._unregister(doc_id)

        self._documents[doc_id] = BM25Document(doc_id, tokens, len(tokens), frequencies)
        for term in frequencies:
            self._postings.setdefault(term, set()).add(doc_id)

        self._update_avg_doc_length()
        logger.debug(f"BM25 indexed {doc_id}: {len(tokens)} tokens")

    def remove(self, doc_id: str) -> bool:
        """Remove a document; False if it was not indexed."""
        if doc_id not in self._documents:
            return False
        self._unregister(doc_id)
        self._update_avg_doc_length()
        return True

    def _unregister(self, doc_id: str) -> None:
        doc = self._documents.pop(doc_id)
        for term in doc.term_frequencies:
            postings = self._postings.get(term)
            if postings is None:
                continue
            postings.discard(doc_id)
            if not postings:
                del self._postings[term]

    def search(self, query: str, limit: int = 10) -> List[SearchHit]:
        """
        Rank documents by BM25 score.

        Args:
            query: Search query (tokenized with the shared tokenizer)
            limit: Maximum number of results

        Returns:
            Hits with score > 0, sorted by score (descending)
        """
        if not self._documents or limit <= 0:
            return []

        query_terms = tokenize(query)
        if not query_terms:
            return []

        # Documents without any query term would score exactly zero
        candidates: Set[str] = set()
        document_frequencies: Dict[str, int] = {}
        for term in set(query_terms):
            postings = self._postings.get(term)
            if postings:
                candidates.update(postings)
                document_frequencies[term] = len(postings)

        document_count = len(self._documents)
        results: List[SearchHit] = []
        for doc_id in candidates:
            doc = self._documents[doc_id]
            score = self.scorer.score(
                query_terms,
                doc.term_frequencies,
                doc.length,
                self._avg_doc_length,
                document_frequencies,
                document_count,
            )
            if score > 0:
                results.append(SearchHit(doc_id, score))

        results.sort(key=lambda hit: (-hit.score, hit.id))
        logger.debug(f"BM25 search: {len(results)} matching documents")
        return results[:limit]

    def _update_avg_doc_length(self) -> None:
        if not self._documents:
            self._avg_doc_length = 0.0
            return
        total = sum(doc.length for doc in self._documents.values())
        self._avg_doc_length = total / len(self._documents)

    @property
    def average_document_length(self) -> float:
        return self._avg_doc_length

    def posting_ids(self, term: str) -> FrozenSet[str]:
        return frozenset(self._postings.get(term, ()))

    @property
    def term_count(self) -> int:
        return len(self._postings)

    def clear(self) -> None:
        self._documents.clear()
        self._postings.clear()
        self._avg_doc_length = 0.0

    @property
    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

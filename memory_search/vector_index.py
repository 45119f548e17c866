"""
TF-IDF vector index with cosine similarity search.

Lightweight semantic-ish search without external dependencies:
- Sublinear term frequency: tf = 1 + ln(count)
- IDF computed on the fly from the live corpus: idf = ln(N / (1 + df))
- Inverted index restricts scoring to documents sharing a query term

Formula:
    cosine(q, d) = Σ (tf_q × idf) × (tf_d × idf) / (|q| × |d|)

Where:
    N  = number of live documents
    df = number of documents containing the term

Note: idf is zero or negative for terms present in more than ~N/e - 1
documents. This is standard TF-IDF behaviour and is deliberately left as is,
since clamping it would change the ranking.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Set

from .models import SearchHit
from .tokenizer import sublinear_term_frequencies, tokenize

logger = logging.getLogger(__name__)


@dataclass
class IndexedDocument:
    """Document as stored by the index"""
    id: str
    term_freqs: Dict[str, float]  # term -> 1 + ln(count)
    magnitude: float              # sqrt(Σ tf²), without IDF


class VectorIndex:
    """
    TF-IDF vector index.

    Keeps an inverted index (term -> document ids) in sync with the document
    store: a term key exists only while at least one document contains it.
    """

    def __init__(self):
        self._documents: Dict[str, IndexedDocument] = {}
        self._inverted_index: Dict[str, Set[str]] = {}

    def add(self, doc_id: str, text: str) -> None:
        """
        Add or replace a document.

        Args:
            doc_id: Unique document identifier
            text: Text content to index
        """
        # Tokenize before touching state so a failure leaves the index untouched
        term_freqs = sublinear_term_frequencies(tokenize(text))
        magnitude = math.sqrt(sum(tf * tf for tf in term_freqs.values()))

        if doc_id in self._documents:
            self.remove(doc_id)

        self._documents[doc_id] = IndexedDocument(doc_id, term_freqs, magnitude)
        for term in term_freqs:
            self._inverted_index.setdefault(term, set()).add(doc_id)

        logger.debug(f"Indexed {doc_id}: {len(term_freqs)} distinct terms")

    def remove(self, doc_id: str) -> bool:
        """
        Remove a document.

        Returns:
            True if the document was present
        """
        doc = self._documents.pop(doc_id, None)
        if doc is None:
            return False

        for term in doc.term_freqs:
            postings = self._inverted_index.get(term)
            if postings is None:
                continue
            postings.discard(doc_id)
            if not postings:
                del self._inverted_index[term]

        return True

    def search(self, query: str, limit: int = 10, min_score: float = 0.01) -> List[SearchHit]:
        """
        Find documents similar to the query by cosine similarity.

        Only documents sharing at least one term with the query are scored.

        Args:
            query: Search query
            limit: Maximum number of results
            min_score: Minimum cosine similarity to keep a result

        Returns:
            Hits sorted by score (descending)

        Example:
            >>> index = VectorIndex()
            >>> index.add("d1", "the cat sat")
            >>> index.add("d2", "the dog sat")
            >>> index.add("d3", "birds fly south")
            >>> [hit.id for hit in index.search("cat")]
            ['d1']
        """
        if not self._documents or limit <= 0:
            return []

        query_tfidf: Dict[str, float] = {}
        for term, tf in sublinear_term_frequencies(tokenize(query)).items():
            query_tfidf[term] = tf * self.idf(term)

        query_magnitude = math.sqrt(sum(w * w for w in query_tfidf.values()))
        if query_magnitude == 0:
            return []

        candidates: Set[str] = set()
        for term in query_tfidf:
            candidates.update(self._inverted_index.get(term, ()))

        results: List[SearchHit] = []
        for doc_id in candidates:
            doc = self._documents[doc_id]
            dot_product = 0.0
            doc_magnitude = 0.0

            # Document weights depend on the live corpus, so they are never cached
            for term, tf in doc.term_freqs.items():
                weight = tf * self.idf(term)
                doc_magnitude += weight * weight
                query_weight = query_tfidf.get(term)
                if query_weight:
                    dot_product += weight * query_weight

            doc_magnitude = math.sqrt(doc_magnitude)
            if doc_magnitude == 0:
                continue

            score = dot_product / (doc_magnitude * query_magnitude)
            if score >= min_score:
                results.append(SearchHit(doc_id, score))

        results.sort(key=lambda hit: (-hit.score, hit.id))
        logger.debug(f"Vector search: {len(candidates)} candidates, {len(results)} above {min_score}")
        return results[:limit]

    def idf(self, term: str) -> float:
        """ln(N / (1 + df)) for the current corpus."""
        if not self._documents:
            return 0.0
        df = len(self._inverted_index.get(term, ()))
        return math.log(len(self._documents) / (1 + df))

    def clear(self) -> None:
        self._documents.clear()
        self._inverted_index.clear()

    def document_ids(self) -> List[str]:
        return list(self._documents)

    def terms_for(self, doc_id: str) -> Dict[str, float]:
        """Copy of a document's sublinear term frequencies (empty if absent)."""
        doc = self._documents.get(doc_id)
        return dict(doc.term_freqs) if doc else {}

    def posting_ids(self, term: str) -> FrozenSet[str]:
        return frozenset(self._inverted_index.get(term, ()))

    @property
    def term_count(self) -> int:
        """Number of distinct terms in the inverted index"""
        return len(self._inverted_index)

    @property
    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

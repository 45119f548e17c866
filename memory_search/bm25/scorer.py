"""
Okapi BM25 scorer.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.

Formula:
    score(doc) = Σ idf(term) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))
    idf(term)  = ln((N - df + 0.5) / (df + 0.5) + 1)

Where:
    tf = term frequency in document
    k1 = term frequency saturation parameter (default: 1.2)
    b = length normalization parameter (default: 0.75)
    dl = document length (number of tokens)
    avgdl = average document length over the corpus
    N = number of documents, df = documents containing the term

The "+ 1" inside the logarithm keeps idf non-negative even for terms that
appear in every document.
"""

import math
from typing import Dict, Iterable


class BM25Scorer:
    """
    Stateless BM25 scoring function.

    Corpus statistics (N, df, avgdl) are passed in by the owning index, so the
    same scorer can be re-parameterized without touching any indexed data.
    """

    def __init__(self, k1: float = 1.2, b: float = 0.75):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to term frequency
                Range: 1.2 - 2.0
                Default: 1.2 (standard)

            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
                Default: 0.75 (standard)
        """
        self.k1 = k1
        self.b = b

    @staticmethod
    def idf(document_count: int, document_frequency: int) -> float:
        """ln((N - df + 0.5) / (df + 0.5) + 1), always >= 0 for 0 <= df <= N."""
        return math.log(
            (document_count - document_frequency + 0.5) / (document_frequency + 0.5) + 1
        )

    def score(
        self,
        query_terms: Iterable[str],
        doc_term_frequencies: Dict[str, int],
        token_count: int,
        avgdl: float,
        document_frequencies: Dict[str, int],
        document_count: int,
    ) -> float:
        """
        Compute the BM25 score of one document for a tokenized query.

        Args:
            query_terms: Tokenized query; a repeated term contributes once per occurrence
            doc_term_frequencies: Raw term counts of the document {term: count}
            token_count: Total number of tokens in the document
            avgdl: Average document length of the corpus
            document_frequencies: {term: number of documents containing it}
            document_count: Number of documents in the corpus

        Returns:
            BM25 score (0.0 when nothing matches or avgdl is zero)

        Example:
            >>> scorer = BM25Scorer()
            >>> scorer.score(
            ...     query_terms=["kubernetes"],
            ...     doc_term_frequencies={"kubernetes": 2, "pod": 1},
            ...     token_count=3,
            ...     avgdl=3.0,
            ...     document_frequencies={"kubernetes": 1},
            ...     document_count=2,
            ... )
            0.9530...
        """
        if not doc_term_frequencies or avgdl <= 0:
            return 0.0

        length_norm = 1 - self.b + self.b * (token_count / avgdl)
        score = 0.0

        for term in query_terms:
            tf = doc_term_frequencies.get(term, 0)
            if tf == 0:
                continue

            idf = self.idf(document_count, document_frequencies.get(term, 0))
            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * length_norm
            score += idf * (numerator / denominator)

        return score

"""
BM25 (Best Match 25) keyword ranking and score fusion for hybrid search.

Components:
- scorer: Okapi BM25 scoring with corpus IDF
- index: In-memory BM25 index over the shared tokenizer
- fusion: min-max blending and RRF (Reciprocal Rank Fusion)
"""

from .scorer import BM25Scorer
from .index import BM25Document, BM25Index
from .fusion import (
    min_max_normalize,
    rank_by_score,
    rank_positions,
    reciprocal_rank_fusion,
    weighted_blend,
)

__all__ = [
    "BM25Scorer",
    "BM25Document",
    "BM25Index",
    "min_max_normalize",
    "rank_by_score",
    "rank_positions",
    "reciprocal_rank_fusion",
    "weighted_blend",
]

"""
Score fusion helpers for hybrid search.

Two ways to combine a BM25 ranking with a vector ranking:

1. Weighted blend of min-max normalized scores:
       score = vector_weight × norm(vector) + bm25_weight × norm(bm25)

2. RRF (Reciprocal Rank Fusion), which only looks at ranks:
       RRF(item, k=60) = Σ 1/(k + rank_i(item))

   Where:
       k = constant (default: 60, from literature)
       rank_i = rank of item in i-th ranking (1-based)

   Items missing from a ranking can either be skipped for that ranking or
   charged a fixed worst-case rank (missing_rank).

Reference: https://plg.uwaterloo.ca/~gvcormac/cormacksigir09-rrf.pdf
"""

from typing import Dict, List, Optional, Sequence


def min_max_normalize(scores: Dict[str, float]) -> Dict[str, float]:
    """
    Scale scores to [0, 1].

    An empty mapping stays empty. When every score is equal (including a
    single score) there is no spread to normalize, and every item gets 1.0.

    Example:
        >>> min_max_normalize({"a": 2.0, "b": 4.0, "c": 3.0})
        {'a': 0.0, 'b': 1.0, 'c': 0.5}
    """
    if not scores:
        return {}

    low = min(scores.values())
    high = max(scores.values())
    if high > low:
        spread = high - low
        return {item_id: (score - low) / spread for item_id, score in scores.items()}
    return {item_id: 1.0 for item_id in scores}


def rank_positions(ranking: Sequence[str]) -> Dict[str, int]:
    """Map each id of a best-first ranking to its 1-based rank."""
    positions: Dict[str, int] = {}
    for rank, item_id in enumerate(ranking, start=1):
        positions.setdefault(item_id, rank)
    return positions


def rank_by_score(scores: Dict[str, float]) -> List[str]:
    """Ids ordered best-first (ties broken by id for stable ranks)."""
    return sorted(scores, key=lambda item_id: (-scores[item_id], item_id))


def reciprocal_rank_fusion(
    rankings: Sequence[Sequence[str]],
    k: float = 60,
    missing_rank: Optional[int] = None,
    item_ids: Optional[Sequence[str]] = None,
) -> Dict[str, float]:
    """
    Combine multiple rankings using Reciprocal Rank Fusion.

    Args:
        rankings: Best-first lists of ids

        k: RRF constant (default: 60)
            Standard value from literature
            Prevents divide-by-zero and controls fusion behavior

        missing_rank: Rank charged to an item absent from a ranking
            None (default): the ranking contributes nothing for that item

        item_ids: Items to score (default: every id seen in any ranking)

    Returns:
        {id: rrf_score}

    Example:
        >>> fused = reciprocal_rank_fusion([["a", "b"], ["b", "c"]], k=60)
        >>> max(fused, key=fused.get)
        'b'
    """
    if not rankings:
        return {}

    positions = [rank_positions(ranking) for ranking in rankings]

    if item_ids is None:
        seen: Dict[str, None] = {}
        for ranking in rankings:
            for item_id in ranking:
                seen.setdefault(item_id, None)
        item_ids = list(seen)

    fused: Dict[str, float] = {}
    for item_id in item_ids:
        score = 0.0
        for ranks in positions:
            rank = ranks.get(item_id, missing_rank)
            if rank is not None:
                score += 1.0 / (k + rank)
        fused[item_id] = score

    return fused


def weighted_blend(
    vector_scores: Dict[str, float],
    bm25_scores: Dict[str, float],
    vector_weight: float,
    bm25_weight: float,
) -> Dict[str, float]:
    """
    Blend two already-normalized score maps; a missing score counts as 0.

    Weights are used as given and need not sum to 1.
    """
    fused: Dict[str, float] = {}
    for item_id in {**bm25_scores, **vector_scores}:
        fused[item_id] = (
            vector_weight * vector_scores.get(item_id, 0.0)
            + bm25_weight * bm25_scores.get(item_id, 0.0)
        )
    return fused

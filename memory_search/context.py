"""
Relevant-context assembly for prompt injection.

Turns search results into a markdown block:

    ## Relevant Memories
    ### Deploy notes (relevance: 42%)
    First 300 characters of the best matching text...

The sections' total length is bounded by max_context_length; the section that
would overflow is truncated (when enough room is left) and the rest dropped.
"""

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

from .models import ChunkSearchResult, DocumentSearchResult, HybridSearchResult

CONTEXT_HEADER = "## Relevant Memories"
SNIPPET_LENGTH = 300
SOURCE_SNIPPET_LENGTH = 100
MIN_TRUNCATED_SECTION = 60

ContextHit = Union[DocumentSearchResult, ChunkSearchResult, HybridSearchResult]


@dataclass
class ContextSource:
    id: str
    type: str
    score: float
    snippet: str


@dataclass
class RelevantContext:
    content: str = ""
    sources: List[ContextSource] = field(default_factory=list)


def _describe(hit: ContextHit) -> Tuple[str, str, str, str]:
    """(id, title, type, text) of a search result."""
    if isinstance(hit, DocumentSearchResult):
        return hit.id, hit.title or hit.id, hit.type, hit.best_chunk.content
    if isinstance(hit, ChunkSearchResult):
        return hit.source_id, hit.source_title or hit.source_id, hit.source_type, hit.content
    if isinstance(hit, HybridSearchResult):
        title = hit.metadata.get("title") or hit.id
        doc_type = hit.metadata.get("type") or "memory"
        return hit.id, title, doc_type, hit.content
    raise TypeError(f"Unsupported search result: {type(hit).__name__}")


def build_relevant_context(hits: Sequence[ContextHit], max_context_length: int = 2000) -> RelevantContext:
    """
    Format search results as a "Relevant Memories" block.

    Args:
        hits: Search results, best first (their order is kept)
        max_context_length: Budget for the sections (header excluded)

    Returns:
        RelevantContext with the markdown content and one source per
        included section; empty content when there are no hits
    """
    if not hits:
        return RelevantContext()

    parts = [CONTEXT_HEADER]
    sources: List[ContextSource] = []
    total_length = 0

    for hit in hits:
        doc_id, title, doc_type, text = _describe(hit)
        snippet = text[:SNIPPET_LENGTH]
        pct = math.floor(hit.score * 100 + 0.5)
        section = f"### {title} (relevance: {pct}%)\n{snippet}"
        source = ContextSource(id=doc_id, type=doc_type, score=hit.score, snippet=snippet[:SOURCE_SNIPPET_LENGTH])

        if total_length + len(section) > max_context_length:
            remaining = max_context_length - total_length
            if remaining > MIN_TRUNCATED_SECTION:
                parts.append(section[:remaining] + "...")
                sources.append(source)
            break

        parts.append(section)
        total_length += len(section)
        sources.append(source)

    return RelevantContext(content="\n".join(parts), sources=sources)

"""
Records and search result types shared by the indices.

All result types are plain dataclasses: the indices build them, callers read
them. Scores are only comparable within a single search call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class SearchHit:
    """Single (id, score) hit from a raw index"""
    id: str
    score: float


@dataclass
class TextChunk:
    """A slice of a source document, addressed by half-open character offsets"""
    id: str              # "{source_id}:chunk-{index}"
    source_id: str
    index: int           # 0-based, contiguous per source
    content: str
    start_char: int      # Inclusive offset into the original text
    end_char: int        # Exclusive offset into the original text
    token_count: int     # Estimated, see TextChunker.estimate_tokens
    total_chunks: int = 0  # Set once every chunk of the source exists


@dataclass
class DocumentMeta:
    """Metadata of a document held by ChunkedVectorIndex"""
    id: str
    chunk_ids: List[str]
    total_chunks: int
    timestamp: int       # Epoch milliseconds at add time
    title: Optional[str] = None
    type: str = "memory"
    path: Optional[str] = None


@dataclass
class CharRange:
    start: int
    end: int


@dataclass
class ChunkSearchResult:
    """Chunk-level hit with its source document info"""
    chunk_id: str
    source_id: str
    chunk_index: int
    total_chunks: int
    content: str
    score: float
    char_range: CharRange
    source_title: Optional[str] = None
    source_type: str = "memory"


@dataclass
class DocumentSearchResult:
    """
    Document-level aggregation of chunk hits.

    score is the best chunk score, avg_score the mean over matching chunks.
    matching_chunks is sorted by score (descending), best_chunk is its head.
    """
    id: str
    best_chunk: ChunkSearchResult
    matching_chunks: List[ChunkSearchResult]
    score: float
    avg_score: float
    title: Optional[str] = None
    type: str = "memory"


@dataclass
class HybridDocument:
    """Document for HybridSearchIndex; embeddings are supplied, never computed"""
    id: str
    content: str
    embedding: Optional[Sequence[float]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HybridSearchResult:
    id: str
    score: float         # Fused score (blend or RRF)
    vector_score: float
    bm25_score: float
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IndexStats:
    document_count: int
    chunk_count: int
    avg_chunks_per_doc: float

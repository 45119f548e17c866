"""
In-process retrieval engine for agent memory.

Components:
- tokenizer: shared CJK-aware tokenizer
- vector_index: TF-IDF cosine similarity index
- bm25: BM25 keyword index and score fusion
- hybrid: BM25 + embedding similarity fusion
- chunking / chunked_index: chunk-level indexing with document aggregation
- service: thread-safe holder with atomic rebuilds over text sources
- context: "Relevant Memories" prompt block assembly
"""

from .chunked_index import ChunkedVectorIndex
from .chunking import TextChunker, chunk_text, create_chunker
from .config import (
    BM25Config,
    ChunkConfig,
    ChunkedIndexConfig,
    HybridSearchConfig,
    Settings,
    load_settings,
)
from .context import ContextSource, RelevantContext, build_relevant_context
from .hybrid import HybridSearchIndex, cosine_similarity, create_hybrid_search
from .models import (
    CharRange,
    ChunkSearchResult,
    DocumentMeta,
    DocumentSearchResult,
    HybridDocument,
    HybridSearchResult,
    IndexStats,
    SearchHit,
    TextChunk,
)
from .bm25 import BM25Index, BM25Scorer
from .service import SearchIndexHolder, SyncReport
from .sources import DirectoryTextSource, InMemoryTextSource, SourceDocument, TextSource
from .tokenizer import tokenize
from .vector_index import VectorIndex

__version__ = "0.1.0"

__all__ = [
    "BM25Config",
    "BM25Index",
    "BM25Scorer",
    "CharRange",
    "ChunkConfig",
    "ChunkSearchResult",
    "ChunkedIndexConfig",
    "ChunkedVectorIndex",
    "ContextSource",
    "DirectoryTextSource",
    "DocumentMeta",
    "DocumentSearchResult",
    "HybridDocument",
    "HybridSearchConfig",
    "HybridSearchIndex",
    "HybridSearchResult",
    "InMemoryTextSource",
    "IndexStats",
    "RelevantContext",
    "SearchHit",
    "SearchIndexHolder",
    "Settings",
    "SourceDocument",
    "SyncReport",
    "TextChunk",
    "TextChunker",
    "TextSource",
    "VectorIndex",
    "build_relevant_context",
    "chunk_text",
    "cosine_similarity",
    "create_chunker",
    "create_hybrid_search",
    "load_settings",
    "tokenize",
]

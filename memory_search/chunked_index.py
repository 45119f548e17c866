"""
Chunked vector index: chunk-level TF-IDF search with document aggregation.

Documents are split by TextChunker and every chunk is indexed on its own in a
VectorIndex (keyed by chunk id). Searches can return chunks, or documents
ranked by their best chunk. Each document owns its chunk ids: removing the
document removes every one of its chunks from the vector index.
"""

import logging
import time
from typing import Dict, List, Optional

from .chunking import TextChunker
from .config import ChunkedIndexConfig, updated
from .models import (
    CharRange,
    ChunkSearchResult,
    DocumentMeta,
    DocumentSearchResult,
    IndexStats,
    TextChunk,
)
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)


class ChunkedVectorIndex:
    """Indexes documents at chunk level for better retrieval precision"""

    def __init__(self, config: Optional[ChunkedIndexConfig] = None, **overrides):
        base = config or ChunkedIndexConfig()
        self._config: ChunkedIndexConfig = updated(base, overrides) if overrides else base

        self._index = VectorIndex()
        self._chunker = TextChunker(self._config.chunk_config())

        # Document metadata by document id, chunk data by chunk id
        self._documents: Dict[str, DocumentMeta] = {}
        self._chunks: Dict[str, TextChunk] = {}

    def add(
        self,
        doc_id: str,
        text: str,
        title: Optional[str] = None,
        type: str = "memory",
        path: Optional[str] = None,
    ) -> None:
        """
        Add or replace a document.

        Args:
            doc_id: Document id
            text: Document content
            title: Optional display title
            type: Document type (memory, daily-log, session-summary, file, ...)
            path: Optional origin path, informational only
        """
        chunks = self._chunker.chunk(text, doc_id)

        if doc_id in self._documents:
            self.remove(doc_id)

        self._documents[doc_id] = DocumentMeta(
            id=doc_id,
            chunk_ids=[chunk.id for chunk in chunks],
            total_chunks=len(chunks),
            timestamp=int(time.time() * 1000),
            title=title,
            type=type,
            path=path,
        )

        for chunk in chunks:
            self._chunks[chunk.id] = chunk
            self._index.add(chunk.id, chunk.content)

        logger.debug(f"Added document {doc_id} with {len(chunks)} chunks")

    def remove(self, doc_id: str) -> bool:
        """Remove a document and all of its chunks."""
        meta = self._documents.get(doc_id)
        if meta is None:
            return False

        for chunk_id in meta.chunk_ids:
            self._chunks.pop(chunk_id, None)
            self._index.remove(chunk_id)

        del self._documents[doc_id]
        logger.debug(f"Removed document {doc_id}")
        return True

    def search_chunks(
        self,
        query: str,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[ChunkSearchResult]:
        """
        Search for relevant chunks.

        Args:
            query: Search query
            limit: Maximum results (default: config.max_results)
            min_score: Minimum similarity (default: config.min_score)

        Returns:
            Chunk hits sorted by score (descending)
        """
        max_results = self._config.max_results if limit is None else limit
        threshold = self._config.min_score if min_score is None else min_score
        if max_results <= 0:
            return []

        # Over-fetch, some hits may be dropped below
        hits = self._index.search(query, max_results * 2, threshold)

        results: List[ChunkSearchResult] = []
        for hit in hits:
            chunk = self._chunks.get(hit.id)
            if chunk is None:
                continue
            meta = self._documents.get(chunk.source_id)
            if meta is None:
                continue

            results.append(ChunkSearchResult(
                chunk_id=chunk.id,
                source_id=chunk.source_id,
                chunk_index=chunk.index,
                total_chunks=chunk.total_chunks,
                content=chunk.content,
                score=hit.score,
                char_range=CharRange(chunk.start_char, chunk.end_char),
                source_title=meta.title,
                source_type=meta.type,
            ))

        return results[:max_results]

    def search_documents(
        self,
        query: str,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> List[DocumentSearchResult]:
        """
        Search and aggregate chunk hits by document.

        A document scores as its best chunk; avg_score is the mean over the
        chunks that cleared min_score.

        Args:
            query: Search query
            limit: Maximum documents (default: config.max_results)
            min_score: Minimum chunk similarity (default: config.min_score)
        """
        max_results = self._config.max_results if limit is None else limit
        if max_results <= 0:
            return []

        chunk_hits = self.search_chunks(query, max_results * 3, min_score)

        by_document: Dict[str, List[ChunkSearchResult]] = {}
        for hit in chunk_hits:
            by_document.setdefault(hit.source_id, []).append(hit)

        results: List[DocumentSearchResult] = []
        for doc_id, hits in by_document.items():
            meta = self._documents.get(doc_id)
            if meta is None:
                continue

            hits.sort(key=lambda h: (-h.score, h.chunk_index))
            scores = [h.score for h in hits]

            results.append(DocumentSearchResult(
                id=doc_id,
                best_chunk=hits[0],
                matching_chunks=hits,
                score=max(scores),
                avg_score=sum(scores) / len(scores),
                title=meta.title,
                type=meta.type,
            ))

        results.sort(key=lambda r: (-r.score, r.id))
        return results[:max_results]

    def get_chunk(self, chunk_id: str) -> Optional[TextChunk]:
        return self._chunks.get(chunk_id)

    def get_document_chunks(self, doc_id: str) -> List[TextChunk]:
        """All chunks of a document, ordered by index (empty if unknown)."""
        meta = self._documents.get(doc_id)
        if meta is None:
            return []
        chunks = [self._chunks[cid] for cid in meta.chunk_ids if cid in self._chunks]
        return sorted(chunks, key=lambda c: c.index)

    def get_document_content(self, doc_id: str) -> Optional[str]:
        """Reconstruct a document's text from its chunks; None if it has none."""
        chunks = self.get_document_chunks(doc_id)
        if not chunks:
            return None
        return self._chunker.merge_chunks(chunks)

    def get_document(self, doc_id: str) -> Optional[DocumentMeta]:
        return self._documents.get(doc_id)

    def has_document(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def document_ids(self) -> List[str]:
        return list(self._documents)

    def stats(self) -> IndexStats:
        document_count = len(self._documents)
        chunk_count = len(self._chunks)
        avg = chunk_count / document_count if document_count else 0.0
        return IndexStats(
            document_count=document_count,
            chunk_count=chunk_count,
            avg_chunks_per_doc=round(avg, 1),
        )

    @property
    def config(self) -> ChunkedIndexConfig:
        return self._config.model_copy()

    def set_config(self, **updates) -> None:
        """
        Update settings (validated).

        Search defaults apply immediately. Chunk settings only affect
        documents added afterwards; existing chunks are kept as they are.
        """
        self._config = updated(self._config, updates)
        self._chunker = TextChunker(self._config.chunk_config())

    @property
    def chunker(self) -> TextChunker:
        return self._chunker

    @property
    def vector_index(self) -> VectorIndex:
        return self._index

    @property
    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def clear(self) -> None:
        self._documents.clear()
        self._chunks.clear()
        self._index.clear()
        logger.debug("Cleared chunked index")

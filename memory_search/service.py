"""
Index holder: serialized writes and atomic rebuilds for a shared index.

The indices themselves are not thread-safe. When several threads share one,
wrap it in a SearchIndexHolder:

- Writers (add / remove / sync / rebuild) are serialized by one writer lock.
- rebuild() fills a brand-new index from a TextSource without touching the
  live one, then swaps it in with a single reference assignment. Readers see
  either the old index or the new one, never a half-built index.
- reading() yields the live index while blocking in-place mutations, so a
  search never observes a partially applied add/remove/sync.

Usage:
    holder = SearchIndexHolder(ChunkedVectorIndex)
    holder.rebuild(DirectoryTextSource("memory/"))

    with holder.reading() as index:
        results = index.search_documents("deployment notes")
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from .chunked_index import ChunkedVectorIndex
from .hybrid import HybridSearchIndex
from .models import HybridDocument
from .sources import SourceDocument, TextSource, content_hash

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    added: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)


def index_document(index: Any, doc: SourceDocument) -> None:
    """Add a source document to any of the index types."""
    if isinstance(index, ChunkedVectorIndex):
        index.add(doc.id, doc.text, title=doc.title, type=doc.type, path=doc.path)
    elif isinstance(index, HybridSearchIndex):
        metadata = {"title": doc.title, "type": doc.type, "path": doc.path}
        index.add(HybridDocument(id=doc.id, content=doc.text, metadata=metadata))
    else:
        index.add(doc.id, doc.text)


class SearchIndexHolder:
    """Owns the live index instance and every write to it"""

    def __init__(self, factory: Callable[[], Any] = ChunkedVectorIndex):
        """
        Args:
            factory: Zero-argument callable returning a fresh, empty index
                (ChunkedVectorIndex, VectorIndex, BM25Index or HybridSearchIndex)
        """
        self._factory = factory
        self._index = factory()
        self._hashes: Dict[str, str] = {}
        # Lock order is always _writer then _live
        self._writer = threading.Lock()
        self._live = threading.RLock()
        self._readers = threading.local()

    @property
    def current(self) -> Any:
        """The live index. Hold reading() instead if writes may run concurrently."""
        return self._index

    @contextmanager
    def reading(self) -> Iterator[Any]:
        """
        Yield the live index with in-place mutations blocked.

        Holding it would invert the lock order of the write methods, so they
        raise RuntimeError when called from inside reading() on the same thread.
        """
        with self._live:
            self._readers.depth = getattr(self._readers, "depth", 0) + 1
            try:
                yield self._index
            finally:
                self._readers.depth -= 1

    def _check_not_reading(self, operation: str) -> None:
        if getattr(self._readers, "depth", 0):
            raise RuntimeError(f"Cannot {operation} the index inside reading()")

    def rebuild(self, source: TextSource) -> int:
        """
        Build a new index from every document of source and swap it in.

        If the source raises, the previous index stays live.

        Returns:
            Number of documents indexed
        """
        self._check_not_reading("rebuild")
        with self._writer:
            fresh = self._factory()
            hashes: Dict[str, str] = {}
            for doc in source.iter_documents():
                index_document(fresh, doc)
                hashes[doc.id] = content_hash(doc.text)

            with self._live:
                self._index = fresh
                self._hashes = hashes

        logger.info(f"Index rebuilt with {len(hashes)} documents")
        return len(hashes)

    def sync(self, source: TextSource) -> SyncReport:
        """
        Bring the live index in line with source incrementally.

        New ids are added, ids whose content hash changed are re-added, ids
        the source no longer yields are removed.
        """
        self._check_not_reading("sync")
        report = SyncReport()
        with self._writer:
            # Read the whole source first so a failing source changes nothing
            documents = list(source.iter_documents())

            with self._live:
                seen = set()
                for doc in documents:
                    seen.add(doc.id)
                    digest = content_hash(doc.text)
                    previous = self._hashes.get(doc.id)
                    if previous == digest:
                        report.unchanged += 1
                        continue

                    index_document(self._index, doc)
                    self._hashes[doc.id] = digest
                    if previous is None:
                        report.added += 1
                    else:
                        report.updated += 1

                for doc_id in [d for d in self._hashes if d not in seen]:
                    self._index.remove(doc_id)
                    del self._hashes[doc_id]
                    report.removed += 1

        logger.info(
            f"Index sync: {report.added} added, {report.updated} updated, "
            f"{report.removed} removed, {report.unchanged} unchanged"
        )
        return report

    def add(self, doc_id: str, text: str, title: Optional[str] = None, type: str = "memory", path: Optional[str] = None) -> None:
        """Add or replace one document in the live index."""
        self._check_not_reading("add to")
        doc = SourceDocument(id=doc_id, text=text, title=title, type=type, path=path)
        with self._writer, self._live:
            index_document(self._index, doc)
            self._hashes[doc_id] = content_hash(text)

    def remove(self, doc_id: str) -> bool:
        self._check_not_reading("remove from")
        with self._writer, self._live:
            self._hashes.pop(doc_id, None)
            return self._index.remove(doc_id)

    def clear(self) -> None:
        """Swap in an empty index."""
        self._check_not_reading("clear")
        with self._writer:
            fresh = self._factory()
            with self._live:
                self._index = fresh
                self._hashes = {}

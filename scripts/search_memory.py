#!/usr/bin/env python3
"""
Index a directory of text/markdown files and run one query against it.
Settings come from MEMORY_SEARCH_* variables (.env.local / .env supported).
"""

import sys
from pathlib import Path

from memory_search.chunked_index import ChunkedVectorIndex
from memory_search.config import load_settings
from memory_search.hybrid import HybridSearchIndex
from memory_search.logging_config import setup_logging
from memory_search.service import SearchIndexHolder
from memory_search.sources import DirectoryTextSource

project_root = Path(__file__).parent.parent


def print_documents(index: ChunkedVectorIndex, query: str) -> None:
    results = index.search_documents(query)
    print(f"\nDocuments matching: {query}")
    print("=" * 80)
    if not results:
        print("No matches.")
    for rank, result in enumerate(results, start=1):
        best = result.best_chunk
        print(f"{rank:2}. {result.id}  score={result.score:.4f}  avg={result.avg_score:.4f}  "
              f"chunks={len(result.matching_chunks)}/{best.total_chunks}")
        preview = " ".join(best.content.split())[:120]
        print(f"    {preview}")
    print("=" * 80)


def print_chunks(index: ChunkedVectorIndex, query: str) -> None:
    results = index.search_chunks(query)
    print(f"\nChunks matching: {query}")
    print("=" * 80)
    if not results:
        print("No matches.")
    for rank, result in enumerate(results, start=1):
        span = f"{result.char_range.start}-{result.char_range.end}"
        print(f"{rank:2}. {result.chunk_id}  score={result.score:.4f}  chars={span}")
        preview = " ".join(result.content.split())[:120]
        print(f"    {preview}")
    print("=" * 80)


def print_hybrid(index: HybridSearchIndex, query: str) -> None:
    results = index.search(query)
    print(f"\nHybrid matches for: {query}")
    print("=" * 80)
    if not results:
        print("No matches.")
    for rank, result in enumerate(results, start=1):
        title = result.metadata.get("title") or result.id
        print(f"{rank:2}. {title}  score={result.score:.4f}  bm25={result.bm25_score:.4f}")
        preview = " ".join(result.content.split())[:120]
        print(f"    {preview}")
    print("=" * 80)


def main():
    """Main entry point."""
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
    flags = {arg for arg in sys.argv[1:] if arg.startswith("--")}

    if len(args) < 2 or not flags <= {"--documents", "--chunks", "--hybrid"}:
        print("Usage:")
        print('  python scripts/search_memory.py DIRECTORY "QUERY" [--documents|--chunks|--hybrid]')
        print("\nExamples:")
        print('  python scripts/search_memory.py memory/ "deployment checklist"')
        print('  python scripts/search_memory.py notes/ "token bucket" --chunks')
        print('  python scripts/search_memory.py memory/ "postgres vacuum" --hybrid')
        sys.exit(1)

    directory, query = args[0], " ".join(args[1:])

    settings = load_settings()
    setup_logging(
        log_file=str(project_root / "logs" / "memory-search.log"),
        console_level=settings.log_level,
    )

    if "--hybrid" in flags:
        # Keyword side of hybrid search only, no embeddings are computed here
        holder = SearchIndexHolder(lambda: HybridSearchIndex(settings.hybrid))
    else:
        holder = SearchIndexHolder(lambda: ChunkedVectorIndex(settings.chunked_index))
    try:
        holder.rebuild(DirectoryTextSource(directory))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    with holder.reading() as index:
        if "--hybrid" in flags:
            print(f"Indexed {index.size} documents")
            print_hybrid(index, query)
            return

        stats = index.stats()
        print(f"Indexed {stats.document_count} documents, {stats.chunk_count} chunks "
              f"({stats.avg_chunks_per_doc} per document)")
        if "--chunks" in flags:
            print_chunks(index, query)
        else:
            print_documents(index, query)


if __name__ == "__main__":
    main()

"""
Text chunker: overlapping, boundary-aligned chunks with lossless merge.

Defaults: 400 token chunks, 80 token overlap, ~4 characters per token
(window 1600 chars, step 1280 chars).

Chunk ends are moved back to a natural break inside the last 100 characters
of the window, in order of preference:
    paragraph ("\\n\\n") > sentence (". " + capital) > clause ("\\n", "; ", ": ", ", ")
    > word (" ") > no adjustment

Chunk content is never stripped, so merge_chunks(chunk(text)) == text.
"""

import logging
import math
import re
from typing import List, Optional, Sequence

from .config import ChunkConfig, updated
from .models import TextChunk

logger = logging.getLogger(__name__)

# Break points are searched in this many trailing characters of a window
BREAK_SEARCH_WINDOW = 100

_SENTENCE_BREAK = re.compile(r"[.!?]\s+(?=[A-Z])")
_CLAUSE_BREAKS = ("\n", "; ", ": ", ", ")


class TextChunker:
    """Split text into overlapping chunks for chunk-level indexing"""

    def __init__(self, config: Optional[ChunkConfig] = None, **overrides):
        """
        Args:
            config: Chunk settings (defaults: 400 / 80 / 4 / 50)
            **overrides: Individual ChunkConfig fields, applied on top of config
        """
        base = config or ChunkConfig()
        self._config: ChunkConfig = updated(base, overrides) if overrides else base

    @property
    def config(self) -> ChunkConfig:
        return self._config.model_copy()

    def set_config(self, **updates) -> None:
        """Replace individual settings (validated); applies to the next chunk() call."""
        self._config = updated(self._config, updates)

    def estimate_tokens(self, text: str) -> int:
        """Rough token estimate: ceil(characters / chars_per_token)."""
        return math.ceil(len(text) / self._config.chars_per_token)

    def chunk(self, text: str, source_id: str) -> List[TextChunk]:
        """
        Split text into overlapping chunks.

        Args:
            text: Text to chunk (may be empty)
            source_id: Id of the source document, used to build chunk ids

        Returns:
            Chunks ordered by index; a text that fits in one chunk (including
            empty or whitespace-only text) yields exactly one chunk
        """
        cfg = self._config
        estimated = self.estimate_tokens(text)

        if estimated <= cfg.chunk_size:
            return [TextChunk(
                id=_chunk_id(source_id, 0),
                source_id=source_id,
                index=0,
                content=text,
                start_char=0,
                end_char=len(text),
                token_count=estimated,
                total_chunks=1,
            )]

        text_len = len(text)
        chunk_chars = max(1, int(cfg.chunk_size * cfg.chars_per_token))
        step_chars = max(1, int((cfg.chunk_size - cfg.overlap) * cfg.chars_per_token))
        min_chars = cfg.min_chunk_size * cfg.chars_per_token

        logger.debug(
            f"Chunking {source_id}: {text_len} chars, window={chunk_chars}, step={step_chars}"
        )

        chunks: List[TextChunk] = []
        start = 0

        while start < text_len:
            end = min(start + chunk_chars, text_len)
            if end < text_len:
                end = self._find_break_point(text, start, end)

            content = text[start:end]
            token_count = self.estimate_tokens(content)

            # The first chunk is always kept, later ones only if big enough
            if token_count >= cfg.min_chunk_size or start == 0:
                chunks.append(TextChunk(
                    id=_chunk_id(source_id, len(chunks)),
                    source_id=source_id,
                    index=len(chunks),
                    content=content,
                    start_char=start,
                    end_char=end,
                    token_count=token_count,
                ))
            elif start >= chunks[-1].end_char:
                # A small window right after the last chunk is folded into it
                last = chunks[-1]
                last.content = text[last.start_char:end]
                last.end_char = end
                last.token_count = self.estimate_tokens(last.content)

            if end >= text_len:
                break

            next_start = start + step_chars
            # A break point may shorten a window by more than the overlap;
            # never start past the last kept chunk, or text would be lost
            last_end = chunks[-1].end_char
            if start < last_end < next_start:
                next_start = last_end
            start = next_start

            # Don't create tiny trailing chunks, the last chunk absorbs the tail
            if text_len - start < min_chars:
                break

        last = chunks[-1]
        if last.end_char < text_len:
            last.content = text[last.start_char:]
            last.end_char = text_len
            last.token_count = self.estimate_tokens(last.content)

        for chunk in chunks:
            chunk.total_chunks = len(chunks)

        logger.debug(f"Split {source_id} into {len(chunks)} chunks")
        return chunks

    def _find_break_point(self, text: str, start: int, target_end: int) -> int:
        """
        Move a chunk end back to the best natural break near target_end.

        Prefers: paragraph > sentence > clause > word. Returns target_end
        unchanged when the trailing window holds no break at all.
        """
        window = min(BREAK_SEARCH_WINDOW, target_end - start)
        search_start = target_end - window
        region = text[search_start:target_end]

        paragraph = region.rfind("\n\n")
        if paragraph != -1:
            return search_start + paragraph + 2

        sentence_end = None
        for match in _SENTENCE_BREAK.finditer(region):
            sentence_end = match.end()
        if sentence_end is not None:
            return search_start + sentence_end

        for separator in _CLAUSE_BREAKS:
            position = region.rfind(separator)
            if position != -1:
                return search_start + position + len(separator)

        space = region.rfind(" ")
        if space != -1:
            return search_start + space + 1

        return target_end

    def merge_chunks(self, chunks: Sequence[TextChunk]) -> str:
        """
        Rebuild the original text from chunks (inverse of chunk()).

        Overlapping prefixes are dropped using the chunks' character ranges.
        """
        if not chunks:
            return ""

        ordered = sorted(chunks, key=lambda c: c.index)
        parts = [ordered[0].content]
        # End of the text rebuilt so far; with heavy overlap a chunk can end
        # before its predecessor does
        covered = ordered[0].end_char

        for current in ordered[1:]:
            if current.start_char >= covered:
                parts.append(current.content)
            else:
                parts.append(current.content[covered - current.start_char:])
            covered = max(covered, current.end_char)

        return "".join(parts)


def _chunk_id(source_id: str, index: int) -> str:
    return f"{source_id}:chunk-{index}"


def create_chunker(config: Optional[ChunkConfig] = None, **overrides) -> TextChunker:
    """Create a chunker, optionally overriding individual settings."""
    return TextChunker(config, **overrides)


def chunk_text(text: str, source_id: str) -> List[TextChunk]:
    """Chunk text with default settings."""
    return TextChunker().chunk(text, source_id)

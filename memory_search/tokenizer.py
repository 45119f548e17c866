"""
Shared tokenizer for the TF-IDF and BM25 indices.

Tokenization pipeline:
1. Lowercase conversion
2. Collapse whitespace runs, trim
3. Split into CJK and non-CJK runs
4. CJK runs: character unigrams + adjacent character bigrams
5. Non-CJK runs: alphanumeric words (single characters dropped unless numeric)
   + adjacent word bigrams joined with "_"

Both indices MUST use this function so hybrid fusion compares scores that were
computed over the same term space.

No stemming and no stopword removal: every language gets the same treatment,
and frequent terms are handled by IDF instead.
"""

import math
import re
from typing import Dict, Iterable, List

# CJK Unified Ideographs (common), Extension A, Compatibility Ideographs
CJK_RANGES = "\u4e00-\u9fff\u3400-\u4dbf\uf900-\ufaff"

_CJK_SPLIT = re.compile(f"([{CJK_RANGES}]+)")
_CJK_RUN = re.compile(f"[{CJK_RANGES}]+")
_WHITESPACE = re.compile(r"\s+")
# Letters and digits only; "_" is excluded so it can never collide with a bigram joint
_WORD = re.compile(r"[^\W_]+")
_NUMERIC = re.compile(r"\d+")

BIGRAM_SEPARATOR = "_"


def normalize(text: str) -> str:
    """Lowercase, collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text.lower()).strip()


def tokenize(text: str) -> List[str]:
    """
    Tokenize text into index terms.

    Args:
        text: Arbitrary text (mixed CJK / Latin allowed)

    Returns:
        Ordered list of terms, duplicates kept (frequencies matter downstream)

    Examples:
        >>> tokenize("The cat sat")
        ['the', 'the_cat', 'cat', 'cat_sat', 'sat']

        >>> tokenize("记忆系统")
        ['记', '记忆', '忆', '忆系', '系', '系统', '统']

        >>> tokenize("   ")
        []
    """
    if not text:
        return []

    normalized = normalize(text)
    tokens: List[str] = []

    for segment in _CJK_SPLIT.split(normalized):
        if not segment.strip():
            continue

        if _CJK_RUN.fullmatch(segment):
            # CJK: every character, plus every adjacent pair
            for i, char in enumerate(segment):
                tokens.append(char)
                if i < len(segment) - 1:
                    tokens.append(char + segment[i + 1])
        else:
            words = _WORD.findall(segment)
            for i, word in enumerate(words):
                # Skip one-letter words ("a", "i") but keep digits
                if len(word) > 1 or _NUMERIC.fullmatch(word):
                    tokens.append(word)
                # Bigrams span dropped short words too
                if i < len(words) - 1:
                    tokens.append(word + BIGRAM_SEPARATOR + words[i + 1])

    return tokens


def term_counts(tokens: Iterable[str]) -> Dict[str, int]:
    """Raw occurrence count per term."""
    counts: Dict[str, int] = {}
    for token in tokens:
        counts[token] = counts.get(token, 0) + 1
    return counts


def sublinear_term_frequencies(tokens: Iterable[str]) -> Dict[str, float]:
    """
    Sublinear term frequency: 1 + ln(count).

    Dampens terms repeated many times in one document, e.g. a term seen
    10 times weighs ~3.3 instead of 10.
    """
    return {term: 1.0 + math.log(count) for term, count in term_counts(tokens).items()}

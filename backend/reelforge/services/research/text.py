"""
Text helpers for research aggregation: tokenizing, similarity and chunking.
"""

import re
from typing import FrozenSet, Iterable, List

# Anything that is not a word character, whitespace or Arabic
_NON_WORD_RE = re.compile(r"[^\w\s\u0600-\u06FF]")

MIN_TOKEN_LENGTH = 3


def tokenize(text: str, min_length: int = MIN_TOKEN_LENGTH) -> FrozenSet[str]:
    """Lowercased word tokens of at least `min_length` characters (three by default)."""
    cleaned = _NON_WORD_RE.sub(" ", (text or "").lower())
    return frozenset(token for token in cleaned.split() if len(token) >= min_length)


def jaccard_similarity(a: Iterable[str], b: Iterable[str]) -> float:
    """|a ∩ b| / |a ∪ b|; two empty sets are identical."""
    a, b = set(a), set(b)
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    intersection = len(a & b)
    return intersection / (len(a) + len(b) - intersection)


def chunk_content(content: str, chunk_size: int) -> List[str]:
    """
    Split content into chunks of at most `chunk_size` characters.

    A chunk that would cut a word ends at the last space inside the window
    instead. Empty chunks are dropped.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    chunks: List[str] = []
    start = 0
    length = len(content)
    while start < length:
        end = min(start + chunk_size, length)
        if end < length:
            last_space = content.rfind(" ", start, end + 1)
            if last_space > start:
                end = last_space
        chunk = content[start:end].strip()
        if chunk:
            chunks.append(chunk)
        start = end + 1 if end < length and content[end:end + 1].isspace() else end
    return chunks

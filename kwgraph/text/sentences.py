"""Sentence splitting for page text."""
from __future__ import annotations

import re
from typing import List

_REPEATED_SPACES = re.compile(r" +")


def split_sentences(text: str) -> List[str]:
    """Split page text into sentences on periods.

    Pieces are trimmed, empty pieces are dropped, runs of spaces collapse to a
    single space and every sentence is terminated with a period.

    Args:
        text: Raw page text.

    Returns:
        List[str]: Sentences in document order.
    """

    sentences: List[str] = []
    for piece in text.split("."):
        stripped = piece.strip()
        if not stripped or stripped == ".":
            continue
        sentences.append(_REPEATED_SPACES.sub(" ", stripped) + ".")
    return sentences


def summarize(text: str, limit: int = 30) -> str:
    """Shorten ``text`` to ``limit`` characters for use as a root label."""

    stripped = " ".join(text.split())
    if len(stripped) <= limit:
        return stripped
    return stripped[:limit].rstrip() + "..."

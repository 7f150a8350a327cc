"""Sentence and keyword co-occurrence helpers."""

from .index import KeywordIndex
from .sentences import split_sentences, summarize

__all__ = ["KeywordIndex", "split_sentences", "summarize"]

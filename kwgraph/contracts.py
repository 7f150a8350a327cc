"""Immutable data contracts exchanged with the NLP collaborator."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _FrozenBaseModel(BaseModel):
    """Base model enforcing immutability after creation."""

    model_config = ConfigDict(frozen=True)


def normalize_keyword(value: str) -> str:
    """Return the case-insensitive lookup key for a keyword.

    Args:
        value: Keyword text as reported by the collaborator.

    Returns:
        str: Trimmed, case-folded key.
    """

    return value.strip().casefold()


class KeywordRelevance(_FrozenBaseModel):
    """Keyword reported by the NLP service with its global relevance."""

    keyword: str = Field(..., min_length=1)
    relevance: float = Field(..., ge=0.0, le=1.0)

    @field_validator("keyword")
    @classmethod
    def _strip_keyword(cls, value: str) -> str:
        """Trim surrounding whitespace from the keyword.

        Args:
            value: Raw keyword text.

        Returns:
            str: The stripped keyword.

        Raises:
            ValueError: If nothing remains after stripping.
        """
        stripped = value.strip()
        if not stripped:
            raise ValueError("keyword must not be blank")
        return stripped

    @property
    def key(self) -> str:
        return normalize_keyword(self.keyword)


class KeywordOccurrence(_FrozenBaseModel):
    """A keyword found in a specific sentence."""

    keyword: str = Field(..., min_length=1)
    sentence_index: int = Field(..., ge=0)
    relevance: float = Field(0.0, ge=0.0, le=1.0)

    @property
    def key(self) -> str:
        return normalize_keyword(self.keyword)


class ExtractionPayload(_FrozenBaseModel):
    """Page text and keyword relevance returned by a keyword source."""

    text: str
    keywords: List[KeywordRelevance] = Field(default_factory=list)


__all__ = [
    "ExtractionPayload",
    "KeywordOccurrence",
    "KeywordRelevance",
    "normalize_keyword",
]

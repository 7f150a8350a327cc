from __future__ import annotations

import pytest
from pydantic import ValidationError

from kwgraph.contracts import ExtractionPayload, KeywordOccurrence, KeywordRelevance, normalize_keyword


def test_normalize_keyword_is_case_insensitive() -> None:
    assert normalize_keyword("  Quick Fox ") == "quick fox"
    assert normalize_keyword("STRASSE") == normalize_keyword("strasse")


def test_keyword_relevance_strips_and_exposes_key() -> None:
    record = KeywordRelevance(keyword="  Fox ", relevance=0.9)
    assert record.keyword == "Fox"
    assert record.key == "fox"


def test_keyword_relevance_rejects_blank_keyword() -> None:
    with pytest.raises(ValidationError):
        KeywordRelevance(keyword="   ", relevance=0.5)


def test_keyword_relevance_rejects_out_of_range_score() -> None:
    with pytest.raises(ValidationError):
        KeywordRelevance(keyword="fox", relevance=1.5)


def test_occurrence_is_immutable_and_validated() -> None:
    occurrence = KeywordOccurrence(keyword="Fox", sentence_index=5, relevance=0.9)
    assert occurrence.key == "fox"
    with pytest.raises(ValidationError):
        occurrence.sentence_index = 6  # type: ignore[misc]
    with pytest.raises(ValidationError):
        KeywordOccurrence(keyword="fox", sentence_index=-1)


def test_extraction_payload_parses_keyword_records() -> None:
    payload = ExtractionPayload.model_validate(
        {"text": "The fox.", "keywords": [{"keyword": "fox", "relevance": 0.4}]}
    )
    assert payload.keywords[0].keyword == "fox"
    assert payload.keywords[0].relevance == pytest.approx(0.4)

"""Sentence/keyword co-occurrence maps derived from collaborator output."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Set, Tuple

from kwgraph.contracts import KeywordOccurrence, KeywordRelevance, normalize_keyword
from kwgraph.render.surface import RelevanceScale

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordIndex:
    """Immutable snapshot of which keywords occur in which sentences.

    ``keyword_sentences`` is keyed by the case-insensitive keyword key; the
    display spelling is kept in ``labels``.
    """

    sentences: Tuple[str, ...]
    sentence_keywords: Mapping[int, Tuple[str, ...]]
    keyword_sentences: Mapping[str, Tuple[int, ...]]
    labels: Mapping[str, str] = field(default_factory=dict)
    relevance: RelevanceScale = field(default_factory=RelevanceScale)

    @classmethod
    def build(cls, sentences: Sequence[str], keywords: Sequence[KeywordRelevance]) -> "KeywordIndex":
        """Locate every keyword in every sentence.

        Matching is a case-insensitive substring search. Keywords within a
        sentence are ordered by their first position, ties broken by the order
        of ``keywords``.

        Args:
            sentences: Sentences in document order.
            keywords: Keywords reported by the NLP collaborator.

        Returns:
            KeywordIndex: The co-occurrence snapshot.
        """

        labels: Dict[str, str] = {}
        for record in keywords:
            labels.setdefault(record.key, record.keyword)
        ordered_keys = list(labels)

        sentence_keywords: Dict[int, Tuple[str, ...]] = {}
        keyword_sentences: Dict[str, List[int]] = {key: [] for key in ordered_keys}
        for sentence_index, sentence in enumerate(sentences):
            folded = sentence.casefold()
            hits: List[Tuple[int, int, str]] = []
            for rank, key in enumerate(ordered_keys):
                position = folded.find(key)
                if position >= 0:
                    hits.append((position, rank, key))
            if not hits:
                continue
            hits.sort()
            sentence_keywords[sentence_index] = tuple(labels[key] for _, _, key in hits)
            for _, _, key in hits:
                keyword_sentences[key].append(sentence_index)

        unmatched = [labels[key] for key, indices in keyword_sentences.items() if not indices]
        if unmatched:
            LOGGER.debug("Keywords without a matching sentence: %s", ", ".join(unmatched))
        return cls(
            sentences=tuple(sentences),
            sentence_keywords=sentence_keywords,
            keyword_sentences={key: tuple(indices) for key, indices in keyword_sentences.items()},
            labels=labels,
            relevance=RelevanceScale.from_keywords(keywords),
        )

    def __len__(self) -> int:
        return len(self.sentences)

    def knows(self, keyword: str) -> bool:
        return normalize_keyword(keyword) in self.labels

    def label_for(self, keyword: str) -> str:
        return self.labels.get(normalize_keyword(keyword), keyword.strip())

    def sentences_with(self, keyword: str) -> Tuple[int, ...]:
        """Indices of sentences containing ``keyword``; empty when unknown."""

        return self.keyword_sentences.get(normalize_keyword(keyword), ())

    def keywords_in(self, sentence_index: int) -> Tuple[str, ...]:
        return self.sentence_keywords.get(sentence_index, ())

    def occurrences_for(self, sentence_indices: Iterable[int]) -> List[KeywordOccurrence]:
        """Keyword occurrences in the given sentences, first occurrence per keyword.

        Args:
            sentence_indices: Sentences currently on display, in display order.

        Returns:
            List[KeywordOccurrence]: Occurrences deduplicated case-insensitively.
        """

        seen: Set[str] = set()
        occurrences: List[KeywordOccurrence] = []
        for sentence_index in sentence_indices:
            for keyword in self.keywords_in(sentence_index):
                key = normalize_keyword(keyword)
                if key in seen:
                    continue
                seen.add(key)
                occurrences.append(
                    KeywordOccurrence(
                        keyword=keyword,
                        sentence_index=sentence_index,
                        relevance=self.relevance.lookup(keyword) or 0.0,
                    )
                )
        return occurrences

"""Bounded relationship-graph construction from keyword co-occurrence data."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from kwgraph.config import BuilderConfig, RenderingConfig
from kwgraph.contracts import KeywordOccurrence, normalize_keyword
from kwgraph.graph.diagram import Diagram
from kwgraph.graph.node import Node, NodeStyle

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    """Keyword waiting to become a node."""

    keyword: str
    key: str


@dataclass
class _BuildStats:
    nodes_created: int = 0
    dropped_keywords: int = 0
    missing_lookups: int = 0
    max_depth: int = 0


@dataclass(frozen=True)
class BuildResult:
    """Summary of a relationship graph build."""

    root: Node
    nodes_created: int
    dropped_keywords: int
    max_depth: int
    node_labels: Tuple[str, ...] = field(default_factory=tuple)


class RelationshipGraphBuilder:
    """Expand keyword co-occurrences into a depth- and fan-out-bounded tree.

    Every keyword is placed at most once across the whole tree. Keywords are
    claimed depth-first, so when two branches share a sentence the branch
    expanded first keeps the keywords discovered there.
    """

    def __init__(
        self,
        diagram: Diagram,
        config: Optional[BuilderConfig] = None,
        rendering: Optional[RenderingConfig] = None,
    ) -> None:
        self._diagram = diagram
        self._config = config or BuilderConfig()
        self._rendering = rendering or diagram.rendering_config

    @property
    def diagram(self) -> Diagram:
        return self._diagram

    def build(
        self,
        root_label: str,
        keywords: Sequence[KeywordOccurrence],
        sentence_keywords: Mapping[int, Sequence[str]],
        keyword_sentences: Mapping[str, Iterable[int]],
        *,
        reserved: Iterable[str] = (),
    ) -> BuildResult:
        """Replace the diagram content with a tree rooted at ``root_label``.

        Args:
            root_label: Text shown on the root node.
            keywords: Starting occurrences, expanded in order.
            sentence_keywords: Sentence index to the keywords found in it, in sentence order.
            keyword_sentences: Keyword to the indices of sentences containing it.
            reserved: Keywords that must never become nodes (e.g. the root keyword).

        Returns:
            BuildResult: Root node and build statistics.
        """
        self._diagram.clear()
        root = self._make_node(root_label)
        self._diagram.add_node(root)

        sentence_lookup = _normalise_sentence_lookup(sentence_keywords)
        keyword_lookup = _normalise_keyword_lookup(keyword_sentences)
        seeds = _dedupe_seeds(keywords)
        placed: Set[str] = {normalize_keyword(value) for value in reserved if value and value.strip()}
        candidates: List[_Candidate] = []
        for seed in seeds:
            if seed.key in placed:
                continue
            placed.add(seed.key)
            candidates.append(_Candidate(seed.keyword.strip(), seed.key))

        stats = _BuildStats()
        claimed: List[str] = []
        self._expand(root, candidates, 1, placed, claimed, sentence_lookup, keyword_lookup, stats)
        self._diagram.arrange()

        LOGGER.debug(
            "Built relationship graph root=%r nodes=%d dropped=%d missing_lookups=%d depth=%d",
            root_label,
            stats.nodes_created + 1,
            stats.dropped_keywords,
            stats.missing_lookups,
            stats.max_depth,
        )
        return BuildResult(
            root=root,
            nodes_created=stats.nodes_created + 1,
            dropped_keywords=stats.dropped_keywords,
            max_depth=stats.max_depth,
            node_labels=tuple(claimed),
        )

    def _expand(
        self,
        parent: Node,
        candidates: Sequence[_Candidate],
        depth: int,
        placed: Set[str],
        claimed: List[str],
        sentence_lookup: Mapping[int, Tuple[str, ...]],
        keyword_lookup: Mapping[str, Tuple[int, ...]],
        stats: _BuildStats,
    ) -> None:
        limit = self._config.fan_out_limit
        if len(candidates) > limit:
            stats.dropped_keywords += len(candidates) - limit
        for candidate in candidates[:limit]:
            child = self._make_node(candidate.keyword)
            parent.add_child(child)
            claimed.append(candidate.keyword)
            stats.nodes_created += 1
            stats.max_depth = max(stats.max_depth, depth)
            # Nodes at the depth limit still claim their neighbours; they just never grow children.
            discovered = self._discover(candidate, placed, sentence_lookup, keyword_lookup, stats)
            if discovered and depth < self._config.depth_limit:
                self._expand(
                    child,
                    discovered,
                    depth + 1,
                    placed,
                    claimed,
                    sentence_lookup,
                    keyword_lookup,
                    stats,
                )

    @staticmethod
    def _discover(
        candidate: _Candidate,
        placed: Set[str],
        sentence_lookup: Mapping[int, Tuple[str, ...]],
        keyword_lookup: Mapping[str, Tuple[int, ...]],
        stats: _BuildStats,
    ) -> List[_Candidate]:
        """Claim the unplaced keywords sharing a sentence with ``candidate``."""

        known = keyword_lookup.get(candidate.key)
        if known is None:
            stats.missing_lookups += 1
            LOGGER.debug("No sentence lookup for keyword %r", candidate.keyword)
            known = ()
        discovered: List[_Candidate] = []
        for sentence_index in known:
            for keyword in sentence_lookup.get(sentence_index, ()):
                key = normalize_keyword(keyword)
                if not key or key in placed:
                    continue
                placed.add(key)
                discovered.append(_Candidate(keyword.strip(), key))
        return discovered

    def _make_node(self, label: str) -> Node:
        size = self._rendering.node_size
        style = NodeStyle(fill=self._rendering.node_fill, stroke=self._rendering.node_stroke)
        return Node.labeled(label, style=style, size=(size, size))


def _dedupe_seeds(keywords: Sequence[KeywordOccurrence]) -> List[KeywordOccurrence]:
    seen: Set[str] = set()
    unique: List[KeywordOccurrence] = []
    for occurrence in keywords:
        if not occurrence.key or occurrence.key in seen:
            continue
        seen.add(occurrence.key)
        unique.append(occurrence)
    return unique


def _normalise_sentence_lookup(sentence_keywords: Mapping[int, Sequence[str]]) -> Dict[int, Tuple[str, ...]]:
    return {int(index): tuple(values) for index, values in sentence_keywords.items()}


def _normalise_keyword_lookup(keyword_sentences: Mapping[str, Iterable[int]]) -> Dict[str, Tuple[int, ...]]:
    merged: Dict[str, Set[int]] = {}
    for keyword, indices in keyword_sentences.items():
        merged.setdefault(normalize_keyword(keyword), set()).update(int(index) for index in indices)
    return {key: tuple(sorted(values)) for key, values in merged.items()}


__all__ = ["BuildResult", "RelationshipGraphBuilder"]

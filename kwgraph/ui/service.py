"""Visualizer state driving keyword selection, sentence navigation and rendering."""
from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from threading import RLock
from typing import List, Optional, Protocol, Tuple

from kwgraph.config import AppConfig
from kwgraph.contracts import ExtractionPayload
from kwgraph.graph.builder import BuildResult, RelationshipGraphBuilder
from kwgraph.graph.diagram import Diagram
from kwgraph.render.surface import Point, RenderedLabel
from kwgraph.render.svg import SvgSurface
from kwgraph.text.index import KeywordIndex
from kwgraph.text.sentences import split_sentences, summarize

LOGGER = logging.getLogger(__name__)

# Displayed sentences are separated by a blank line.
SENTENCE_SEPARATOR = "\n\n"


class KeywordSource(Protocol):
    """NLP collaborator returning page text and keyword relevance for a URL."""

    def load(self, url: str) -> ExtractionPayload:
        ...


class ProcessingBusyError(RuntimeError):
    """Raised when keyword acquisition is requested while one is in flight."""


class NoIndexLoadedError(RuntimeError):
    """Raised when a selection is made before any page has been processed."""


class VisualizerService:
    """Coordinate the keyword index, relationship graph and diagram rendering.

    Acquisition runs on a worker thread and at most one may be in flight.
    Graph building, arrangement and drawing run synchronously on the caller's
    thread. They share one lock with index installation, so a page finishing
    in the background never swaps the index out from under a rebuild.
    """

    def __init__(
        self,
        source: Optional[KeywordSource] = None,
        *,
        config: Optional[AppConfig] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._config = config or AppConfig()
        self._source = source
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = RLock()
        self._busy = False
        self._diagram = Diagram(layout=self._config.layout, rendering=self._config.rendering)
        self._builder = RelationshipGraphBuilder(
            self._diagram,
            self._config.builder,
            self._config.rendering,
        )
        self._index: Optional[KeywordIndex] = None
        self._keyword: Optional[str] = None
        self._displayed: List[int] = []
        self._current_sentence = -1
        self._offset: Point = (0.0, 0.0)
        self._labels: List[RenderedLabel] = []
        self._last_build: Optional[BuildResult] = None

    @property
    def diagram(self) -> Diagram:
        return self._diagram

    @property
    def index(self) -> Optional[KeywordIndex]:
        return self._index

    @property
    def keyword(self) -> Optional[str]:
        return self._keyword

    @property
    def displayed_sentences(self) -> Tuple[int, ...]:
        return tuple(self._displayed)

    @property
    def current_sentence(self) -> int:
        return self._current_sentence

    @property
    def last_build(self) -> Optional[BuildResult]:
        return self._last_build

    @property
    def rendered_labels(self) -> Tuple[RenderedLabel, ...]:
        return tuple(self._labels)

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def can_process(self) -> bool:
        return self._source is not None and not self.is_processing

    @property
    def can_go_previous(self) -> bool:
        return self._index is not None and self._current_sentence > 0

    @property
    def can_go_next(self) -> bool:
        return self._index is not None and 0 <= self._current_sentence < len(self._index) - 1

    def process(self, url: str) -> "Future[KeywordIndex]":
        """Acquire text and keywords for ``url`` on a worker thread.

        Args:
            url: Page to analyse.

        Returns:
            Future[KeywordIndex]: Resolves to the installed index, or raises the
            collaborator's error.

        Raises:
            ProcessingBusyError: If an acquisition is already running.
            RuntimeError: If the service was created without a keyword source.
        """
        if self._source is None:
            raise RuntimeError("No keyword source configured")
        with self._lock:
            if self._busy:
                raise ProcessingBusyError("Keyword acquisition already in progress")
            self._busy = True
        LOGGER.info("Starting keyword acquisition for %s", url)
        try:
            return self._get_executor().submit(self._acquire, url)
        except Exception:
            with self._lock:
                self._busy = False
            LOGGER.exception("Failed to submit keyword acquisition for %s", url)
            raise

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._config.processing.worker_count,
                thread_name_prefix="keyword-worker",
            )
        return self._executor

    def _acquire(self, url: str) -> KeywordIndex:
        source = self._source
        try:
            if source is None:
                raise RuntimeError("No keyword source configured")
            payload = source.load(url)
            index = KeywordIndex.build(split_sentences(payload.text), payload.keywords)
            self.load_index(index)
        except Exception:
            LOGGER.exception("Keyword acquisition failed for %s", url)
            raise
        finally:
            with self._lock:
                self._busy = False
        LOGGER.info(
            "Keyword acquisition finished for %s (sentences=%d, keywords=%d)",
            url,
            len(index),
            len(index.labels),
        )
        return index

    def load_index(self, index: KeywordIndex) -> None:
        """Install ``index`` and reset selection, navigation and the diagram."""

        with self._lock:
            self._index = index
            self._keyword = None
            self._displayed = []
            self._current_sentence = -1
            self._labels = []
            self._last_build = None
            self._offset = (0.0, 0.0)
            self._diagram.clear()

    def _require_index(self) -> KeywordIndex:
        if self._index is None:
            raise NoIndexLoadedError("No page has been processed yet")
        return self._index

    def select_keyword(self, keyword: str) -> str:
        """Display every sentence containing ``keyword`` and graph its neighbourhood.

        The keyword becomes the root; keywords sharing the displayed sentences
        seed the first level.

        Returns:
            str: The displayed text, sentences separated by a blank line.
        """
        with self._lock:
            index = self._require_index()
            label = index.label_for(keyword)
            indices = list(index.sentences_with(keyword))
            self._keyword = label
            self._displayed = indices
            self._current_sentence = indices[0] if indices else -1
            self._offset = (0.0, 0.0)
            self._last_build = self._builder.build(
                label,
                index.occurrences_for(indices),
                index.sentence_keywords,
                index.keyword_sentences,
                reserved=(label,),
            )
            LOGGER.debug("Selected keyword %r across %d sentences", label, len(indices))
            return self.displayed_text

    def show_sentence(self, sentence_index: int) -> str:
        """Display a single sentence and graph the keywords it contains.

        Raises:
            IndexError: If ``sentence_index`` is outside the loaded sentences.
        """
        with self._lock:
            index = self._require_index()
            if not 0 <= sentence_index < len(index):
                raise IndexError(f"sentence index {sentence_index} out of range")
            sentence = index.sentences[sentence_index]
            self._current_sentence = sentence_index
            self._displayed = [sentence_index]
            self._last_build = self._builder.build(
                summarize(sentence),
                index.occurrences_for([sentence_index]),
                index.sentence_keywords,
                index.keyword_sentences,
            )
            return sentence

    def previous_sentence(self) -> str:
        with self._lock:
            return self.show_sentence(self._current_sentence - 1)

    def next_sentence(self) -> str:
        with self._lock:
            return self.show_sentence(self._current_sentence + 1)

    @property
    def displayed_text(self) -> str:
        if self._index is None:
            return ""
        return SENTENCE_SEPARATOR.join(self._index.sentences[idx] for idx in self._displayed)

    def sentence_at(self, char_offset: int) -> int:
        """Map a character offset in the displayed text to a sentence index.

        Returns:
            int: The sentence index, or ``-1`` past the end of the text.
        """
        if self._index is None:
            return -1
        total = 0
        for sentence_index in self._displayed:
            length = len(self._index.sentences[sentence_index])
            if total + length > char_offset:
                return sentence_index
            total += length + len(SENTENCE_SEPARATOR)
        return -1

    def move_cursor(self, char_offset: int) -> int:
        """Make the sentence under ``char_offset`` current for navigation."""

        with self._lock:
            self._current_sentence = self.sentence_at(char_offset)
            return self._current_sentence

    def pan(self, dx: float, dy: float) -> Point:
        with self._lock:
            self._offset = (self._offset[0] + dx, self._offset[1] + dy)
            return self._offset

    def reset_pan(self) -> None:
        with self._lock:
            self._offset = (0.0, 0.0)

    def render(self, width: int, height: int, scale_factor: Optional[float] = None) -> SvgSurface:
        """Draw the current diagram onto a fresh SVG surface.

        The label boxes from this render back ``keyword_at``.
        """
        surface = SvgSurface(width, height, self._config.rendering)
        with self._lock:
            surface.set_offset(self._offset)
            relevance = self._index.relevance if self._index is not None else None
            self._labels = self._diagram.draw(surface, surface.bounds, scale_factor, relevance)
        return surface

    def keyword_at(self, point: Point) -> Optional[str]:
        """Return the label under ``point`` from the last render, topmost first."""

        for label in reversed(self._labels):
            if label.bounds.contains(point):
                return label.text
        return None

    def shutdown(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

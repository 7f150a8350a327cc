"""Tests for keyword selection, sentence navigation and background acquisition."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator

import pytest

from kwgraph.contracts import ExtractionPayload, KeywordRelevance
from kwgraph.text import KeywordIndex
from kwgraph.ui import NoIndexLoadedError, ProcessingBusyError, VisualizerService

PAGE_TEXT = "The quick brown fox. The lazy dog. A fox and a dog. Nothing here."
KEYWORDS = [
    KeywordRelevance(keyword="fox", relevance=0.9),
    KeywordRelevance(keyword="quick", relevance=0.5),
    KeywordRelevance(keyword="dog", relevance=0.2),
]


class _StaticSource:
    def __init__(self, payload: ExtractionPayload) -> None:
        self.payload = payload
        self.urls = []

    def load(self, url: str) -> ExtractionPayload:
        self.urls.append(url)
        return self.payload


class _BlockingSource(_StaticSource):
    def __init__(self, payload: ExtractionPayload) -> None:
        super().__init__(payload)
        self.started = threading.Event()
        self.release = threading.Event()

    def load(self, url: str) -> ExtractionPayload:
        self.started.set()
        self.release.wait(timeout=5)
        return super().load(url)


class _FailingSource:
    def load(self, url: str) -> ExtractionPayload:
        raise ValueError(f"cannot fetch {url}")


@pytest.fixture()
def payload() -> ExtractionPayload:
    return ExtractionPayload(text=PAGE_TEXT, keywords=KEYWORDS)


@pytest.fixture()
def service(payload: ExtractionPayload) -> Iterator[VisualizerService]:
    instance = VisualizerService(_StaticSource(payload))
    instance.process("https://example.com/page").result(timeout=5)
    yield instance
    instance.shutdown()


def test_process_installs_index(service: VisualizerService) -> None:
    assert service.index is not None
    assert service.index.sentences == (
        "The quick brown fox.",
        "The lazy dog.",
        "A fox and a dog.",
        "Nothing here.",
    )
    assert not service.is_processing
    assert service.can_process
    assert service.current_sentence == -1


def test_select_keyword_displays_every_matching_sentence(service: VisualizerService) -> None:
    text = service.select_keyword("FOX")

    assert text == "The quick brown fox.\n\nA fox and a dog."
    assert service.keyword == "fox"
    assert service.displayed_sentences == (0, 2)
    assert service.current_sentence == 0

    build = service.last_build
    assert build is not None
    assert build.root.label == "fox"
    assert [child.label for child in build.root.connections] == ["quick", "dog"]
    assert build.nodes_created == 3
    assert all(node.is_placed for node in service.diagram)


def test_show_sentence_graphs_its_keywords(service: VisualizerService) -> None:
    assert service.show_sentence(2) == "A fox and a dog."

    build = service.last_build
    assert build is not None
    assert build.root.label == "A fox and a dog."
    fox, dog = build.root.connections
    assert (fox.label, dog.label) == ("fox", "dog")
    assert [child.label for child in fox.connections] == ["quick"]
    assert service.displayed_sentences == (2,)


def test_show_sentence_rejects_out_of_range(service: VisualizerService) -> None:
    with pytest.raises(IndexError):
        service.show_sentence(4)
    with pytest.raises(IndexError):
        service.show_sentence(-1)


def test_sentence_navigation(service: VisualizerService) -> None:
    service.show_sentence(2)
    assert service.can_go_previous
    assert service.can_go_next

    assert service.next_sentence() == "Nothing here."
    assert service.current_sentence == 3
    assert not service.can_go_next
    assert service.last_build is not None
    assert service.last_build.nodes_created == 1

    assert service.previous_sentence() == "A fox and a dog."
    service.show_sentence(0)
    assert not service.can_go_previous


def test_sentence_at_maps_offsets_in_displayed_text(service: VisualizerService) -> None:
    service.select_keyword("fox")

    assert service.sentence_at(0) == 0
    assert service.sentence_at(19) == 0
    assert service.sentence_at(22) == 2
    assert service.sentence_at(100) == -1
    assert service.move_cursor(25) == 2
    assert service.current_sentence == 2


def test_selection_requires_an_index() -> None:
    service = VisualizerService()
    assert service.sentence_at(0) == -1
    assert service.displayed_text == ""
    assert not service.can_process
    with pytest.raises(NoIndexLoadedError):
        service.select_keyword("fox")
    with pytest.raises(RuntimeError):
        service.process("https://example.com")


def test_render_and_keyword_hit_testing(service: VisualizerService) -> None:
    service.select_keyword("fox")
    surface = service.render(800, 600)

    labels = service.rendered_labels
    assert {label.text for label in labels} == {"fox", "quick", "dog"}
    assert any("<text" in element for element in surface.elements)

    topmost = labels[-1]
    assert service.keyword_at(topmost.bounds.center) == topmost.text
    assert service.keyword_at((-1000.0, -1000.0)) is None


def test_pan_offsets_the_next_render(service: VisualizerService) -> None:
    service.select_keyword("fox")
    assert service.pan(10.0, -4.0) == (10.0, -4.0)
    assert service.render(400, 300).offset == (10.0, -4.0)

    service.select_keyword("dog")
    assert service.render(400, 300).offset == (0.0, 0.0)


def test_load_index_resets_selection(service: VisualizerService) -> None:
    service.select_keyword("fox")
    service.render(400, 300)

    service.load_index(KeywordIndex.build(["Only one."], []))

    assert service.keyword is None
    assert service.displayed_sentences == ()
    assert service.last_build is None
    assert service.rendered_labels == ()
    assert len(service.diagram) == 0


def test_process_rejects_concurrent_requests(payload: ExtractionPayload) -> None:
    source = _BlockingSource(payload)
    executor = ThreadPoolExecutor(max_workers=2)
    service = VisualizerService(source, executor=executor)
    try:
        future = service.process("https://example.com/a")
        assert source.started.wait(timeout=5)
        assert service.is_processing
        assert not service.can_process
        with pytest.raises(ProcessingBusyError):
            service.process("https://example.com/b")

        source.release.set()
        index = future.result(timeout=5)
        assert len(index) == 4
        assert not service.is_processing
        assert source.urls == ["https://example.com/a"]
    finally:
        source.release.set()
        executor.shutdown(wait=True)


def test_failed_acquisition_clears_busy_flag() -> None:
    service = VisualizerService(_FailingSource())
    try:
        future = service.process("https://example.com/broken")
        with pytest.raises(ValueError):
            future.result(timeout=5)
        assert not service.is_processing
        assert service.index is None
    finally:
        service.shutdown()


def test_selection_waits_for_index_installation(service: VisualizerService) -> None:
    results = []
    worker = threading.Thread(target=lambda: results.append(service.select_keyword("fox")))

    with service._lock:
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert results == []
        assert service.keyword is None

    worker.join(timeout=5)
    assert not worker.is_alive()
    assert results == ["The quick brown fox.\n\nA fox and a dog."]
    assert service.keyword == "fox"

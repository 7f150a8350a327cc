"""Visualizer state for keyword selection, navigation and rendering."""

from .service import (
    KeywordSource,
    NoIndexLoadedError,
    ProcessingBusyError,
    VisualizerService,
)

__all__ = [
    "KeywordSource",
    "NoIndexLoadedError",
    "ProcessingBusyError",
    "VisualizerService",
]

"""Keyword co-occurrence graphs rendered with a force-directed diagram layout."""

__version__ = "1.0.0"

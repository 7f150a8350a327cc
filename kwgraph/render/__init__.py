"""Drawing surface contract and concrete surfaces."""

from .surface import DrawingSurface, Rect, RelevanceScale, RenderedLabel
from .svg import SvgSurface

__all__ = ["DrawingSurface", "Rect", "RelevanceScale", "RenderedLabel", "SvgSurface"]

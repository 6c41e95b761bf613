"""Viewer side: hit testing, highlight state and render styles."""

from .hit_testing import (
    HitTestResult,
    SpatialHitTester,
    hit_test,
    rank_by_recency,
    tolerance_for_zoom,
)
from .session import RenderLayer, ViewerSession
from .styles import HighlightState, TrackStyle, style_for

__all__ = [
    "HitTestResult",
    "SpatialHitTester",
    "hit_test",
    "rank_by_recency",
    "tolerance_for_zoom",
    "RenderLayer",
    "ViewerSession",
    "HighlightState",
    "TrackStyle",
    "style_for",
]

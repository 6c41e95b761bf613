"""Line styles handed to the map rendering collaborator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from ..activity_types import ActivityType


class HighlightState(str, Enum):
    """Interaction state of a rendered track."""

    NORMAL = "normal"
    HOVERED = "hovered"
    SELECTED = "selected"
    DIMMED = "dimmed"


@dataclass(frozen=True, slots=True)
class TrackStyle:
    color: str
    weight: float
    opacity: float
    dash_array: Optional[str] = None

    def path_options(self) -> Dict[str, Any]:
        """Return Leaflet ``pathOptions`` keys."""

        options: Dict[str, Any] = {
            "color": self.color,
            "weight": self.weight,
            "opacity": self.opacity,
        }
        if self.dash_array:
            options["dashArray"] = self.dash_array
        return options


ACTIVITY_COLORS: Dict[ActivityType, str] = {
    ActivityType.HIKE: "#e65100",
    ActivityType.BIKE_RIDE: "#1565c0",
    ActivityType.BACKPACKING: "#2e7d32",
    ActivityType.WALK: "#6a1b9a",
}

# Import preview layers: the raw trace as a dashed ghost under the simplified line.
RAW_GHOST_STYLE = TrackStyle(color="#DD33DD", weight=3, opacity=0.4, dash_array="5, 10")
SIMPLIFIED_STYLE = TrackStyle(color="#2196f3", weight=4, opacity=1.0)

_BASE_STYLE = TrackStyle(color="#555555", weight=3, opacity=0.7)


def style_for(activity_type: ActivityType, state: HighlightState) -> TrackStyle:
    """Return the line style for a track of ``activity_type`` in ``state``."""

    base = replace(_BASE_STYLE, color=ACTIVITY_COLORS.get(activity_type, _BASE_STYLE.color))
    if state is HighlightState.HOVERED:
        return replace(base, weight=5, opacity=0.9)
    if state is HighlightState.SELECTED:
        return replace(base, weight=6, opacity=1.0)
    if state is HighlightState.DIMMED:
        return replace(base, opacity=0.25)
    return base


__all__ = [
    "HighlightState",
    "TrackStyle",
    "ACTIVITY_COLORS",
    "RAW_GHOST_STYLE",
    "SIMPLIFIED_STYLE",
    "style_for",
]

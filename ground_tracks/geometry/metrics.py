"""Great-circle distance metrics used as a data-quality signal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..config import DISTANCE_LOSS_WARNING_FEET, EARTH_RADIUS_MILES, FEET_PER_MILE
from .planar import as_coordinate_array
from .simplification import reduction_percent


@dataclass(slots=True)
class SimplificationStats:
    """Distance and point-count comparison between a raw and simplified trace."""

    raw_distance: float
    simplified_distance: float
    raw_points: int
    simplified_points: int

    @property
    def distance_loss(self) -> float:
        return self.raw_distance - self.simplified_distance

    @property
    def distance_loss_feet(self) -> float:
        return self.distance_loss * FEET_PER_MILE

    @property
    def reduction_percent(self) -> int:
        return reduction_percent(self.raw_points, self.simplified_points)

    @property
    def loss_exceeds_warning(self) -> bool:
        return self.distance_loss_feet > DISTANCE_LOSS_WARNING_FEET


def total_distance(
    points: Sequence[Sequence[float]], radius: float = EARTH_RADIUS_MILES
) -> float:
    """Sum great-circle distances between consecutive ``(lat, lng)`` points.

    Uses the spherical law of cosines; the result is in the unit of ``radius``
    (miles by default). Fewer than two points yields ``0.0``.
    """

    if len(points) < 2:
        return 0.0
    radians = np.radians(as_coordinate_array(points))
    lat1, lng1 = radians[:-1, 0], radians[:-1, 1]
    lat2, lng2 = radians[1:, 0], radians[1:, 1]
    cosines = np.sin(lat1) * np.sin(lat2) + np.cos(lat1) * np.cos(lat2) * np.cos(
        lng2 - lng1
    )
    # Rounding can push identical points slightly past 1.0.
    angles = np.arccos(np.clip(cosines, -1.0, 1.0))
    return float(radius * np.sum(angles))


def summarize_simplification(
    raw: Sequence[Sequence[float]],
    simplified: Sequence[Sequence[float]],
    radius: float = EARTH_RADIUS_MILES,
) -> SimplificationStats:
    """Compare raw and simplified traces for the operator."""

    return SimplificationStats(
        raw_distance=total_distance(raw, radius),
        simplified_distance=total_distance(simplified, radius),
        raw_points=len(raw),
        simplified_points=len(simplified),
    )


__all__ = ["SimplificationStats", "total_distance", "summarize_simplification"]

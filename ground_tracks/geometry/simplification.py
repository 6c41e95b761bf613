"""Douglas-Peucker simplification of recorded traces."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from ..config import METERS_PER_DEGREE_LAT
from ..models import GeoPoint, PointSequence
from .planar import as_coordinate_array, distances_to_chord


def simplify_path(
    points: Sequence[Sequence[float]],
    epsilon: float,
    preserve_endpoints: bool = True,
) -> PointSequence:
    """Simplify ``points`` so no dropped point lies farther than ``epsilon``.

    ``epsilon`` is in the same unit as the coordinates (decimal degrees). The
    result is a subsequence of the input that always keeps the first and last
    point; raising ``epsilon`` never increases the number of points kept.

    Raises:
        ValueError: If ``epsilon`` is negative, or ``preserve_endpoints`` is
            false (endpoints are always kept).
    """

    if epsilon < 0:
        raise ValueError("epsilon must be >= 0")
    if not preserve_endpoints:
        raise ValueError("simplify_path always preserves the endpoints")
    source = [GeoPoint(float(p[0]), float(p[1])) for p in points]
    if len(source) < 3:
        return source
    keep = _douglas_peucker_mask(as_coordinate_array(source), epsilon)
    return [source[index] for index in np.flatnonzero(keep)]


def _douglas_peucker_mask(array: np.ndarray, epsilon: float) -> np.ndarray:
    """Return a boolean mask of the vertices retained at ``epsilon``."""

    count = array.shape[0]
    keep = np.zeros(count, dtype=bool)
    keep[0] = keep[-1] = True
    # Explicit stack instead of recursion; long traces exceed the recursion limit.
    stack: List[Tuple[int, int]] = [(0, count - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        distances = distances_to_chord(array[first + 1 : last], array[first], array[last])
        offset = int(np.argmax(distances))
        if distances[offset] > epsilon:
            index = first + 1 + offset
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))
    return keep


def epsilon_to_meters(epsilon: float) -> float:
    """Approximate an epsilon in degrees as meters of latitude (display only)."""

    return epsilon * METERS_PER_DEGREE_LAT


def reduction_percent(raw_count: int, simplified_count: int) -> int:
    """Return the rounded share of points removed by simplification."""

    if raw_count <= 0:
        return 0
    return round((1 - simplified_count / raw_count) * 100)


__all__ = ["simplify_path", "epsilon_to_meters", "reduction_percent"]

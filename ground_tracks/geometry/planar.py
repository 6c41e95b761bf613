"""Planar distance helpers operating directly on (lat, lng) degrees."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

CoordinateArray = NDArray[np.float64]


def as_coordinate_array(points: Iterable[Sequence[float]]) -> CoordinateArray:
    """Convert an iterable of 2D coordinates into an ``(n, 2)`` float64 array."""

    array = np.asarray(list(points), dtype=float)
    if array.size == 0:
        return np.empty((0, 2), dtype=float)
    if array.ndim != 2 or array.shape[1] != 2:
        raise ValueError("Expected a sequence of 2D coordinates")
    return array


def distances_to_chord(
    points: CoordinateArray, start: CoordinateArray, end: CoordinateArray
) -> NDArray[np.float64]:
    """Return each point's distance to the segment ``start``-``end``.

    The projection is clamped to the segment, so a degenerate chord (closed
    loops, out-and-back traces) measures plain point-to-point distance.
    """

    chord = end - start
    denom = float(chord @ chord)
    offsets = points - start
    if denom == 0.0:
        return np.linalg.norm(offsets, axis=1)
    t = np.clip((offsets @ chord) / denom, 0.0, 1.0)
    nearest = start + t[:, None] * chord
    return np.linalg.norm(points - nearest, axis=1)


def point_to_segments(
    point: CoordinateArray, starts: CoordinateArray, ends: CoordinateArray
) -> NDArray[np.float64]:
    """Return the distance from ``point`` to each ``starts[i]``-``ends[i]`` segment.

    Degenerate (zero-length) segments yield ``inf`` so they never match.
    Distances to the segment vertices are computed exactly so a point lying
    on a vertex always measures zero.
    """

    chords = ends - starts
    denom = np.einsum("ij,ij->i", chords, chords)
    offsets = point - starts
    degenerate = denom == 0.0
    safe_denom = np.where(degenerate, 1.0, denom)
    t = np.einsum("ij,ij->i", offsets, chords) / safe_denom
    interior = (t > 0.0) & (t < 1.0)
    nearest = starts + np.clip(t, 0.0, 1.0)[:, None] * chords
    projected = np.linalg.norm(point - nearest, axis=1)
    to_start = np.linalg.norm(offsets, axis=1)
    to_end = np.linalg.norm(point - ends, axis=1)
    result = np.minimum(to_start, to_end)
    result = np.where(interior, np.minimum(result, projected), result)
    return np.where(degenerate, np.inf, result)


__all__ = [
    "CoordinateArray",
    "as_coordinate_array",
    "distances_to_chord",
    "point_to_segments",
]

"""Identify which catalog tracks lie under a map click.

The search runs in three stages:

1. every entry is pruned in O(1) against a padded envelope,
2. survivors are tested segment by segment (padded segment boxes first, then
   the clamped point-to-segment distance) against the best sequence available
   for the track: the high-resolution cache entry if loaded, else the preview,
3. hits are ranked by activity date, newest first.

The manifest ``bounds`` field holds the endpoints of the simplified track, not
its bounding box, so the pruning envelope is taken over ``bounds`` together
with the sequence actually being tested. Pruning therefore never rejects a
track that the precise test would accept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import math
import threading
from typing import List, Optional, Sequence, Tuple

from cachetools import LRUCache
import numpy as np

from ..catalog import CatalogIndex
from ..config import ENVELOPE_CACHE_SIZE, HIT_TOLERANCE_K
from ..geometry.planar import CoordinateArray, as_coordinate_array, point_to_segments
from ..models import GeoPoint, ManifestEntry
from ..resolution_cache import ResolutionCache

LOGGER = logging.getLogger(__name__)

Envelope = Tuple[float, float, float, float]
_EnvelopeKey = Tuple[str, str]

PREVIEW = "preview"
FULL = "full"


@dataclass(slots=True)
class _PreparedTrack:
    envelope: Envelope
    starts: CoordinateArray
    ends: CoordinateArray
    source: Sequence[GeoPoint]
    bounds: Sequence[GeoPoint]


@dataclass(slots=True)
class HitTestResult:
    """Ranked candidates for one click."""

    click: GeoPoint
    zoom_level: int
    tolerance: float
    candidates: List[ManifestEntry] = field(default_factory=list)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.candidates) > 1

    @property
    def default(self) -> Optional[ManifestEntry]:
        """Most recent candidate, offered first when disambiguating."""

        return self.candidates[0] if self.candidates else None


def tolerance_for_zoom(zoom_level: int, k: float = HIT_TOLERANCE_K) -> float:
    """Return the click tolerance in degrees, ``k / 2**zoom_level``.

    Raises:
        ValueError: If ``zoom_level`` is negative.
    """

    if zoom_level < 0:
        raise ValueError("zoom_level must be >= 0")
    # ldexp underflows to 0.0 for absurd zooms instead of overflowing.
    return math.ldexp(k, -int(zoom_level))


def rank_by_recency(entries: Sequence[ManifestEntry]) -> List[ManifestEntry]:
    """Order entries newest first; undated entries last, ties keep input order."""

    return sorted(entries, key=_recency_key, reverse=True)


def _recency_key(entry: ManifestEntry) -> Tuple[bool, datetime]:
    moment = entry.activity_datetime
    if moment is not None and moment.tzinfo is not None:
        moment = moment.replace(tzinfo=None)
    return moment is not None, moment or datetime.min


class SpatialHitTester:
    """Click-to-track resolver with memoised per-track geometry."""

    def __init__(
        self,
        tolerance_k: float = HIT_TOLERANCE_K,
        cache_size: int = ENVELOPE_CACHE_SIZE,
    ) -> None:
        self.tolerance_k = tolerance_k
        self._prepared: LRUCache[_EnvelopeKey, _PreparedTrack] = LRUCache(
            maxsize=max(1, cache_size)
        )
        self._prepared_lock = threading.RLock()

    def tolerance(self, zoom_level: int) -> float:
        return tolerance_for_zoom(zoom_level, self.tolerance_k)

    def hit_test(
        self,
        click: Sequence[float],
        zoom_level: int,
        catalog: CatalogIndex,
        cache: Optional[ResolutionCache] = None,
    ) -> List[ManifestEntry]:
        """Return the tracks under ``click``, newest first (possibly empty)."""

        return self.resolve(click, zoom_level, catalog, cache).candidates

    def resolve(
        self,
        click: Sequence[float],
        zoom_level: int,
        catalog: CatalogIndex,
        cache: Optional[ResolutionCache] = None,
    ) -> HitTestResult:
        point = GeoPoint(float(click[0]), float(click[1]))
        tolerance = self.tolerance(zoom_level)
        result = HitTestResult(click=point, zoom_level=zoom_level, tolerance=tolerance)
        if tolerance <= 0:
            LOGGER.debug("Zero tolerance at zoom %s; nothing can match", zoom_level)
            return result

        target = np.asarray(point, dtype=float)
        hits: List[ManifestEntry] = []
        pruned = 0
        self._reserve(len(catalog))
        for entry in catalog:
            prepared = self._prepare(entry, cache)
            if prepared is None or not _envelope_contains(prepared.envelope, point, tolerance):
                pruned += 1
                continue
            if _segments_within(prepared, target, tolerance):
                hits.append(entry)

        result.candidates = rank_by_recency(hits)
        LOGGER.debug(
            "Hit test at (%.6f, %.6f) z=%s tol=%.3g: %d pruned, %d hit",
            point.lat,
            point.lng,
            zoom_level,
            tolerance,
            pruned,
            len(hits),
        )
        return result

    def clear(self) -> None:
        with self._prepared_lock:
            self._prepared.clear()

    def _reserve(self, entry_count: int) -> None:
        # A full scan walks the catalog in the same order every click, which
        # evicts every LRU entry once the memo is smaller than both resolutions.
        needed = 2 * entry_count
        with self._prepared_lock:
            if self._prepared.maxsize >= needed:
                return
            grown: LRUCache[_EnvelopeKey, _PreparedTrack] = LRUCache(maxsize=needed)
            grown.update(self._prepared)
            self._prepared = grown
        LOGGER.debug("Grew hit-test envelope memo to %d entries", needed)

    def _prepare(
        self, entry: ManifestEntry, cache: Optional[ResolutionCache]
    ) -> Optional[_PreparedTrack]:
        full = cache.get(entry.id) if cache is not None else None
        points: Sequence[GeoPoint] = full if full is not None else entry.preview
        resolution = FULL if full is not None else PREVIEW
        key = (entry.id, resolution)
        with self._prepared_lock:
            prepared = self._prepared.get(key)
        # Reuse only geometry built from these very sequences.
        if (
            prepared is not None
            and prepared.source is points
            and prepared.bounds is entry.bounds
        ):
            return prepared
        prepared = _prepare_track(entry.bounds, points)
        if prepared is not None:
            with self._prepared_lock:
                self._prepared[key] = prepared
        return prepared


def _prepare_track(
    bounds: Sequence[GeoPoint], points: Sequence[GeoPoint]
) -> Optional[_PreparedTrack]:
    array = as_coordinate_array(points)
    if array.shape[0] < 2:
        # Nothing to hit: single points form no segment.
        return None
    corners = np.vstack([array, as_coordinate_array(bounds)]) if bounds else array
    lows = corners.min(axis=0)
    highs = corners.max(axis=0)
    envelope = (float(lows[0]), float(lows[1]), float(highs[0]), float(highs[1]))
    return _PreparedTrack(
        envelope=envelope,
        starts=array[:-1],
        ends=array[1:],
        source=points,
        bounds=bounds,
    )


def _envelope_contains(envelope: Envelope, point: GeoPoint, padding: float) -> bool:
    min_lat, min_lng, max_lat, max_lng = envelope
    return (
        min_lat - padding <= point.lat <= max_lat + padding
        and min_lng - padding <= point.lng <= max_lng + padding
    )


def _segments_within(
    prepared: _PreparedTrack, target: CoordinateArray, tolerance: float
) -> bool:
    starts, ends = prepared.starts, prepared.ends
    lows = np.minimum(starts, ends) - tolerance
    highs = np.maximum(starts, ends) + tolerance
    near = np.all((target >= lows) & (target <= highs), axis=1)
    if not near.any():
        return False
    distances = point_to_segments(target, starts[near], ends[near])
    return bool(np.any(distances < tolerance))


_DEFAULT_TESTER = SpatialHitTester()


def hit_test(
    click: Sequence[float],
    zoom_level: int,
    catalog: CatalogIndex,
    cache: Optional[ResolutionCache] = None,
) -> List[ManifestEntry]:
    """Module-level convenience wrapper around a shared :class:`SpatialHitTester`."""

    return _DEFAULT_TESTER.hit_test(click, zoom_level, catalog, cache)


__all__ = [
    "HitTestResult",
    "SpatialHitTester",
    "hit_test",
    "rank_by_recency",
    "tolerance_for_zoom",
]

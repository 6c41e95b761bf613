"""Lazily fetched high-resolution tracks, keyed by catalog id.

Until a track's full-resolution file has been fetched, consumers fall back to
the manifest preview. Fetches run on a small worker pool; at most one fetch
per id is outstanding at any time and concurrent callers share its future.
Once stored, a sequence is never evicted or replaced for the life of the
cache.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
import logging
from pathlib import Path
import threading
from typing import Callable, Dict, Optional, Sequence, Tuple
from urllib.parse import urljoin

import requests
from requests import Session

from .catalog import CatalogIndex
from .config import RESOLUTION_FETCH_WORKERS, STATIC_ROOT, TRACK_BASE_URL
from .errors import TrackLoadError
from .http_session import fetch_json, is_remote
from .models import GeoPoint, ManifestEntry, to_point_sequence

LOGGER = logging.getLogger(__name__)

TrackPoints = Tuple[GeoPoint, ...]
TrackFetcher = Callable[[str], Sequence[GeoPoint]]


def resolve_track_location(
    track_url: str,
    *,
    base_url: str = TRACK_BASE_URL,
    static_root: str = STATIC_ROOT,
) -> str:
    """Turn a manifest ``trackUrl`` into a fetchable URL or filesystem path."""

    if is_remote(track_url) or track_url.startswith("file://"):
        return track_url
    if base_url:
        return urljoin(base_url, track_url)
    return str(Path(static_root) / track_url.lstrip("/"))


def fetch_track_points(location: str, *, session: Session | None = None) -> TrackPoints:
    """Fetch a per-track JSON array of ``[lat, lng]`` pairs.

    Raises:
        TrackLoadError: If the file cannot be fetched or is not a point array.
    """

    try:
        payload = fetch_json(location, session=session)
    except (requests.RequestException, OSError, ValueError) as exc:
        raise TrackLoadError(f"Unable to fetch track {location}: {exc}") from exc
    try:
        points = tuple(to_point_sequence(payload))
    except ValueError as exc:
        raise TrackLoadError(f"Malformed track file {location}: {exc}") from exc
    if not points:
        raise TrackLoadError(f"Track file {location} contains no points")
    return points


class ResolutionCache:
    """Monotonic cache of high-resolution point sequences."""

    def __init__(
        self,
        catalog: CatalogIndex,
        *,
        fetcher: Optional[TrackFetcher] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = RESOLUTION_FETCH_WORKERS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog
        self._fetcher: TrackFetcher = fetcher or fetch_track_points
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max(1, max_workers)
        self._lock = threading.Lock()
        self._points: Dict[str, TrackPoints] = {}
        self._in_flight: Dict[str, Future[TrackPoints]] = {}
        self._log = logger or LOGGER

    def ensure_loaded(self, track_id: str) -> Future[TrackPoints]:
        """Return a future for the high-resolution track of ``track_id``.

        A cached track comes back as an already-completed future without any
        I/O. Otherwise a fetch is scheduled unless one is already in flight,
        in which case its future is shared.

        Raises:
            KeyError: If ``track_id`` is not in the catalog.
        """

        entry = self._catalog.by_id(track_id)
        if entry is None:
            raise KeyError(track_id)
        with self._lock:
            cached = self._points.get(track_id)
            if cached is not None:
                done: Future[TrackPoints] = Future()
                done.set_result(cached)
                return done
            pending = self._in_flight.get(track_id)
            if pending is not None:
                return pending
            future = self._get_executor().submit(self._fetch, entry)
            self._in_flight[track_id] = future
        self._log.debug("Scheduled high-resolution fetch for %s", track_id)
        return future

    def load(self, track_id: str, timeout: float | None = None) -> TrackPoints:
        """Blocking variant of :meth:`ensure_loaded`."""

        return self.ensure_loaded(track_id).result(timeout=timeout)

    def get(self, track_id: str) -> Optional[TrackPoints]:
        with self._lock:
            return self._points.get(track_id)

    def points_for(self, entry: ManifestEntry) -> Sequence[GeoPoint]:
        """Return the best available sequence: high resolution, else the preview."""

        cached = self.get(entry.id)
        return cached if cached is not None else entry.preview

    def is_loaded(self, track_id: str) -> bool:
        with self._lock:
            return track_id in self._points

    def is_pending(self, track_id: str) -> bool:
        with self._lock:
            return track_id in self._in_flight

    def close(self) -> None:
        """Stop the worker pool if this cache created it."""

        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "ResolutionCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __contains__(self, track_id: object) -> bool:
        with self._lock:
            return track_id in self._points

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="track-fetch"
            )
            self._owns_executor = True
        return self._executor

    def _fetch(self, entry: ManifestEntry) -> TrackPoints:
        location = resolve_track_location(entry.track_url)
        try:
            points = tuple(self._fetcher(location))
        except Exception as exc:
            with self._lock:
                self._in_flight.pop(entry.id, None)
            self._log.warning(
                "Track %s stays at preview resolution: %s", entry.id, exc
            )
            if isinstance(exc, TrackLoadError):
                raise
            raise TrackLoadError(f"Unable to load track {entry.id}: {exc}") from exc
        with self._lock:
            # First completed fetch wins; stored sequences are never replaced.
            stored = self._points.setdefault(entry.id, points)
            self._in_flight.pop(entry.id, None)
        self._log.info("Loaded %d high-resolution points for %s", len(stored), entry.id)
        return stored


__all__ = [
    "ResolutionCache",
    "resolve_track_location",
    "fetch_track_points",
]

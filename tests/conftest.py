"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable factories for traces,
manifest entries and fake HTTP objects so the test modules stay short.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from ground_tracks.activity_types import ActivityType
from ground_tracks.catalog import CatalogIndex
from ground_tracks.models import GeoPoint, ManifestEntry, RawTrace, SourceFormat


# --- Factory helpers -------------------------------------------------
def make_entry(
    track_id: str,
    points: Sequence[Tuple[float, float]],
    *,
    date: str = "2024-01-01T09:00",
    name: Optional[str] = None,
    activity_type: ActivityType = ActivityType.HIKE,
    bounds: Optional[Sequence[Tuple[float, float]]] = None,
) -> ManifestEntry:
    preview = tuple(GeoPoint(*p) for p in points)
    if bounds is None:
        bounds = (preview[0], preview[-1]) if preview else ()
    return ManifestEntry(
        id=track_id,
        name=name or track_id.title(),
        date_local=date,
        activity_type=activity_type,
        has_blog=False,
        bounds=tuple(GeoPoint(*p) for p in bounds),
        preview=preview,
        track_url=f"/data/tracks/{track_id}.json",
    )


def make_trace(
    points: Sequence[Tuple[float, float]],
    *,
    name: str = "Blue Ridge Loop",
    date_local: str = "2023-05-01T12:00",
    timezone_id: str = "America/New_York",
) -> RawTrace:
    return RawTrace(
        points=[GeoPoint(*p) for p in points],
        name=name,
        timestamp_iso="2023-05-01T16:00:00+00:00",
        timezone_id=timezone_id,
        source_format=SourceFormat.POINT_ARRAY,
        date_local=date_local,
    )


def noisy_trace(count: int = 400, seed: int = 7) -> List[Tuple[float, float]]:
    """Random-walk trace near Asheville with ~100m steps."""

    rng = np.random.default_rng(seed)
    steps = rng.normal(0.0, 0.0008, size=(count, 2))
    steps[:, 1] += 0.0006  # drift east so the walk goes somewhere
    coords = np.cumsum(steps, axis=0) + np.array([35.5951, -82.5515])
    return [(float(lat), float(lng)) for lat, lng in coords]


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code: int = 200, data: Any = None):
        self.status_code = status_code
        self._data = data if data is not None else []

    def json(self) -> Any:
        if isinstance(self._data, str):
            return json.loads(self._data)
        return self._data

    def raise_for_status(self) -> None:
        if 400 <= self.status_code:
            import requests

            raise requests.exceptions.HTTPError(response=self)


class FakeSession:
    """Serves canned responses keyed by URL and records requests."""

    def __init__(self, responses: Dict[str, FakeResp]):
        self.responses = responses
        self.calls: List[str] = []

    def get(self, url: str, timeout: Any = None) -> FakeResp:
        self.calls.append(url)
        return self.responses.get(url, FakeResp(404, {"error": "not found"}))


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def crossing_catalog() -> CatalogIndex:
    """Two tracks crossing at (35.0, -82.0); the vertical one is newer."""

    older = make_entry(
        "older-east-west",
        [(35.0, -82.02), (35.0, -82.0), (35.0, -81.98)],
        date="2022-06-01T08:00",
    )
    newer = make_entry(
        "newer-north-south",
        [(34.98, -82.0), (35.0, -82.0), (35.02, -82.0)],
        date="2024-03-15T10:30",
    )
    return CatalogIndex.load([older, newer])


@pytest.fixture
def new_york_timezone():
    return lambda lat, lng: "America/New_York"

"""Tests for lazily fetched full-resolution tracks."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import threading
from pathlib import Path

import pytest

from conftest import FakeResp, FakeSession, make_entry
from ground_tracks.catalog import CatalogIndex
from ground_tracks.errors import TrackLoadError
from ground_tracks.models import GeoPoint
from ground_tracks.resolution_cache import (
    ResolutionCache,
    fetch_track_points,
    resolve_track_location,
)

PREVIEW = [(35.0, -82.0), (35.02, -82.0)]
FULL = [GeoPoint(35.0, -82.0), GeoPoint(35.01, -81.99), GeoPoint(35.02, -82.0)]


@pytest.fixture
def catalog():
    return CatalogIndex.load([make_entry("ridge", PREVIEW), make_entry("valley", PREVIEW)])


class BlockingFetcher:
    """Fetcher that waits for the test to release it and counts calls."""

    def __init__(self, result=FULL):
        self.release = threading.Event()
        self.calls = []
        self.result = result

    def __call__(self, location):
        self.calls.append(location)
        assert self.release.wait(timeout=5)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_resolve_track_location_variants():
    url = "/data/tracks/ridge.json"
    assert resolve_track_location(url, base_url="https://maps.example.com/") == (
        "https://maps.example.com/data/tracks/ridge.json"
    )
    assert resolve_track_location(url, base_url="", static_root="public") == str(
        Path("public") / "data" / "tracks" / "ridge.json"
    )
    assert resolve_track_location("https://cdn.example.com/t.json", base_url="x") == (
        "https://cdn.example.com/t.json"
    )


def test_fetch_track_points_over_http():
    url = "https://maps.example.com/data/tracks/ridge.json"
    session = FakeSession({url: FakeResp(200, [[35.0, -82.0], [35.1, -82.1]])})
    assert fetch_track_points(url, session=session) == (
        GeoPoint(35.0, -82.0),
        GeoPoint(35.1, -82.1),
    )


@pytest.mark.parametrize(
    "body,match",
    [
        (FakeResp(500, {}), "Unable to fetch"),
        (FakeResp(200, {"points": []}), "Malformed track file"),
        (FakeResp(200, []), "contains no points"),
    ],
)
def test_fetch_track_points_failures(body, match):
    url = "https://maps.example.com/t.json"
    with pytest.raises(TrackLoadError, match=match):
        fetch_track_points(url, session=FakeSession({url: body}))


def test_preview_until_loaded_then_full_resolution(catalog):
    fetcher = BlockingFetcher()
    with ResolutionCache(catalog, fetcher=fetcher) as cache:
        entry = catalog.by_id("ridge")
        future = cache.ensure_loaded("ridge")
        assert cache.points_for(entry) == entry.preview
        assert cache.is_pending("ridge")
        fetcher.release.set()
        assert future.result(timeout=5) == tuple(FULL)
        assert cache.points_for(entry) == tuple(FULL)
        assert cache.is_loaded("ridge") and "ridge" in cache
        assert not cache.is_pending("ridge")
        assert len(cache) == 1


def test_concurrent_requests_share_one_fetch(catalog):
    fetcher = BlockingFetcher()
    with ResolutionCache(catalog, fetcher=fetcher) as cache:
        first = cache.ensure_loaded("ridge")
        second = cache.ensure_loaded("ridge")
        assert first is second
        fetcher.release.set()
        first.result(timeout=5)
    assert len(fetcher.calls) == 1
    assert fetcher.calls[0].endswith("ridge.json")


def test_loaded_track_returns_completed_future_without_io(catalog):
    fetcher = BlockingFetcher()
    fetcher.release.set()
    with ResolutionCache(catalog, fetcher=fetcher) as cache:
        stored = cache.load("ridge", timeout=5)
        again = cache.ensure_loaded("ridge")
        assert again.done()
        assert again.result() is stored
    assert len(fetcher.calls) == 1


def test_failure_keeps_preview_and_allows_retry(catalog, caplog):
    fetcher = BlockingFetcher(result=TrackLoadError("boom"))
    fetcher.release.set()
    with caplog.at_level(logging.WARNING, logger="ground_tracks.resolution_cache"):
        with ResolutionCache(catalog, fetcher=fetcher) as cache:
            with pytest.raises(TrackLoadError, match="boom"):
                cache.load("valley", timeout=5)
            entry = catalog.by_id("valley")
            assert cache.points_for(entry) == entry.preview
            assert not cache.is_pending("valley")

            fetcher.result = FULL
            assert cache.load("valley", timeout=5) == tuple(FULL)
    assert "valley stays at preview resolution" in caplog.text
    assert len(fetcher.calls) == 2


def test_unexpected_fetcher_errors_are_wrapped(catalog):
    def broken(location):
        raise RuntimeError("socket closed")

    with ResolutionCache(catalog, fetcher=broken) as cache:
        with pytest.raises(TrackLoadError, match="socket closed"):
            cache.load("ridge", timeout=5)


def test_unknown_id_raises_key_error(catalog):
    with ResolutionCache(catalog, fetcher=BlockingFetcher()) as cache:
        with pytest.raises(KeyError):
            cache.ensure_loaded("nope")


def test_external_executor_is_not_shut_down(catalog):
    fetcher = BlockingFetcher()
    fetcher.release.set()
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        with ResolutionCache(catalog, fetcher=fetcher, executor=executor) as cache:
            cache.load("ridge", timeout=5)
        # Still usable after the cache closed.
        assert executor.submit(lambda: 42).result(timeout=5) == 42
    finally:
        executor.shutdown(wait=True)

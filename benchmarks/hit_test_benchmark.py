"""Benchmark simplification and click hit testing over a synthetic catalog."""

from __future__ import annotations

import argparse
import random
import statistics
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Late imports rely on the adjusted sys.path above.
from ground_tracks.activity_types import ActivityType  # noqa: E402
from ground_tracks.catalog import CatalogIndex  # noqa: E402
from ground_tracks.config import DEFAULT_WORKING_EPSILON, PREVIEW_EPSILON  # noqa: E402
from ground_tracks.geometry import simplify_path  # noqa: E402
from ground_tracks.models import GeoPoint, ManifestEntry  # noqa: E402
from ground_tracks.viewer import SpatialHitTester  # noqa: E402


@dataclass(slots=True)
class BenchmarkSummary:
    """Aggregated timings for one benchmark run."""

    track_count: int
    points_per_track: int
    clicks: int
    mean_simplify_ms: float
    cold_hit_test_ms: float
    mean_warm_hit_test_ms: float
    worst_warm_hit_test_ms: float


def _random_walk(rng: random.Random, point_count: int) -> List[GeoPoint]:
    """Generate a wandering trace somewhere around western North Carolina."""

    lat = 35.0 + rng.uniform(0.0, 1.0)
    lng = -83.0 + rng.uniform(0.0, 1.5)
    points = []
    for _ in range(point_count):
        lat += rng.gauss(0.0, 1.5e-4)
        lng += rng.gauss(1e-4, 1.5e-4)
        points.append(GeoPoint(lat, lng))
    return points


def _build_catalog(
    track_count: int, point_count: int, seed: int
) -> Tuple[CatalogIndex, List[float]]:
    rng = random.Random(seed)
    entries = []
    simplify_durations = []
    for index in range(track_count):
        raw = _random_walk(rng, point_count)
        start = time.perf_counter()
        track = simplify_path(raw, DEFAULT_WORKING_EPSILON)
        simplify_durations.append(time.perf_counter() - start)
        preview = simplify_path(raw, PREVIEW_EPSILON)
        entries.append(
            ManifestEntry(
                id=f"bench-{index:04d}",
                name=f"Bench {index}",
                date_local=f"2023-{1 + index % 12:02d}-01T09:00",
                activity_type=ActivityType.HIKE,
                has_blog=False,
                bounds=(track[0], track[-1]),
                preview=tuple(preview),
                track_url=f"/data/tracks/bench-{index:04d}.json",
            )
        )
    return CatalogIndex.load(entries), simplify_durations


def run_benchmark(
    track_count: int, point_count: int, clicks: int, zoom: int, seed: int = 7
) -> BenchmarkSummary:
    """Build a catalog, then time a cold and many warm hit tests."""

    if track_count <= 0 or point_count < 2 or clicks <= 0:
        raise ValueError("track_count, point_count and clicks must be positive")

    catalog, simplify_durations = _build_catalog(track_count, point_count, seed)
    rng = random.Random(seed + 1)
    targets = [rng.choice(catalog.all()).preview for _ in range(clicks)]
    tester = SpatialHitTester()

    start = time.perf_counter()
    tester.hit_test(targets[0][0], zoom, catalog)
    cold = time.perf_counter() - start

    warm: List[float] = []
    for preview in targets:
        click = rng.choice(preview)
        start = time.perf_counter()
        hits = tester.hit_test(click, zoom, catalog)
        warm.append(time.perf_counter() - start)
        if not hits:
            raise RuntimeError("A click on a preview vertex must hit its track")

    return BenchmarkSummary(
        track_count=track_count,
        points_per_track=point_count,
        clicks=clicks,
        mean_simplify_ms=statistics.fmean(simplify_durations) * 1000.0,
        cold_hit_test_ms=cold * 1000.0,
        mean_warm_hit_test_ms=statistics.fmean(warm) * 1000.0,
        worst_warm_hit_test_ms=max(warm) * 1000.0,
    )


def _format_summary(summary: BenchmarkSummary) -> Dict[str, float]:
    return {
        "track_count": summary.track_count,
        "points_per_track": summary.points_per_track,
        "clicks": summary.clicks,
        "mean_simplify_ms": summary.mean_simplify_ms,
        "cold_hit_test_ms": summary.cold_hit_test_ms,
        "mean_warm_hit_test_ms": summary.mean_warm_hit_test_ms,
        "worst_warm_hit_test_ms": summary.worst_warm_hit_test_ms,
    }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark simplification and hit testing over a synthetic catalog",
    )
    parser.add_argument("--tracks", type=int, default=500, help="Catalog size")
    parser.add_argument("--points", type=int, default=5000, help="Raw points per track")
    parser.add_argument("--clicks", type=int, default=200, help="Hit tests to time")
    parser.add_argument("--zoom", type=int, default=13, help="Map zoom level")
    return parser.parse_args()


def main() -> None:
    """Entry point when running the module as a script."""

    args = _parse_args()
    summary = run_benchmark(args.tracks, args.points, args.clicks, args.zoom)
    for key, value in _format_summary(summary).items():
        if key in {"track_count", "points_per_track", "clicks"}:
            print(f"{key}: {value}")
        else:
            print(f"{key}: {value:.3f}")


if __name__ == "__main__":
    main()

"""Command line entry point for authoring and querying the track catalog.

Usage examples:

    # Import a recording, review the simplification and export it
    python -m ground_tracks import hike.gpx --type "Bike ride" --epsilon 0.00003

    # Review only; write an HTML overlay of raw vs simplified
    python -m ground_tracks import hike.gpx --dry-run --preview-html preview.html

    # Which tracks are under a click?
    python -m ground_tracks hit-test 35.59 -82.55 --zoom 13 --manifest data/manifest.json

    # Render the whole catalog
    python -m ground_tracks map --output catalog.html
"""

from __future__ import annotations

import argparse
from concurrent.futures import wait
import logging
from pathlib import Path
from typing import List, Optional, Sequence
import webbrowser

from .activity_types import ActivityType
from .catalog import load_catalog
from .config import (
    DEFAULT_ACTIVITY_TYPE,
    DEFAULT_WORKING_EPSILON,
    EXPORT_DIR,
    MANIFEST_URL,
    MAP_OPEN_BROWSER,
    EPSILON_STEP,
    MAX_WORKING_EPSILON,
)
from .errors import ExportBlockedError, TrackImportError
from .export import export_track
from .geometry import epsilon_to_meters
from .importer import import_file
from .manifest_builder import build_manifest_entry, manifest_entry_text, simplify_for_export
from .models import SourceFormat
from .resolution_cache import ResolutionCache
from .utils import format_miles
from .viewer import SpatialHitTester, ViewerSession
from .visualization import create_catalog_map, create_import_preview_map

LOGGER = logging.getLogger("ground_tracks")


def _setup_logging(level: str = "INFO") -> None:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(
            level=getattr(logging, level),
            format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().setLevel(getattr(logging, level))


def _run_import(args: argparse.Namespace) -> int:
    if args.epsilon < 0:
        LOGGER.error("Epsilon must be >= 0")
        return 2
    if args.epsilon > MAX_WORKING_EPSILON:
        LOGGER.warning(
            "Epsilon %.6f exceeds the usual working range (max %.6f)",
            args.epsilon,
            MAX_WORKING_EPSILON,
        )
    try:
        trace = import_file(
            args.path,
            source_format=SourceFormat(args.format) if args.format else None,
        )
    except TrackImportError as exc:
        LOGGER.error("Import Failed: %s", exc)
        return 1

    simplified, stats = simplify_for_export(trace, args.epsilon)
    print(f"Track:      {trace.name or '(unnamed)'}")
    print(f"Date:       {trace.date_local} ({trace.timezone_id})")
    print(
        f"Precision:  ~{epsilon_to_meters(args.epsilon):.1f}m "
        f"(Epsilon: {args.epsilon:.6f})"
    )
    print(f"Distance:   {format_miles(stats.simplified_distance)} (simplified)")
    print(f"Loss:       -{stats.distance_loss_feet:.0f} ft")
    print(
        f"Points:     {stats.raw_points} -> {stats.simplified_points} "
        f"({stats.reduction_percent}% reduction)"
    )
    if stats.loss_exceeds_warning:
        LOGGER.warning(
            "Simplification loses %.0f ft; consider a smaller epsilon",
            stats.distance_loss_feet,
        )
    if args.preview_html:
        create_import_preview_map(
            trace.points, simplified, output_html_path=args.preview_html
        )
        LOGGER.info("Preview map written to %s", args.preview_html)

    try:
        build = build_manifest_entry(
            trace,
            epsilon=args.epsilon,
            activity_type=args.type,
            has_blog=args.blog,
            name=args.name,
            date_local=args.date,
        )
    except ExportBlockedError as exc:
        LOGGER.error("Export blocked: %s", exc)
        return 1

    if args.dry_run:
        print(manifest_entry_text(build.entry))
        return 0
    result = export_track(build, args.export_dir)
    print(f"Exported: {result.track_path}")
    print("Manifest entry (paste into the manifest array):")
    print(result.manifest_text)
    return 0


def _run_hit_test(args: argparse.Namespace) -> int:
    if args.zoom < 0:
        LOGGER.error("Zoom level must be >= 0")
        return 2
    catalog = load_catalog(args.manifest)
    tester = SpatialHitTester()
    with ResolutionCache(catalog) as cache:
        session = ViewerSession(catalog, cache, tester)
        click = (args.lat, args.lng)
        result = session.click(click, args.zoom)
        if args.refine and result.candidates:
            # Fetch full resolution for the preview hits and test again.
            wait([cache.ensure_loaded(entry.id) for entry in result.candidates])
            result = session.click(click, args.zoom)
    if not result.candidates:
        print("No track under the cursor.")
        return 0
    label = "Candidates (newest first):" if result.is_ambiguous else "Hit:"
    print(label)
    for entry in result.candidates:
        print(f"  {entry.id}  {entry.name}  [{entry.activity_type.value}, {entry.date_local}]")
    return 0


def _run_map(args: argparse.Namespace) -> int:
    catalog = load_catalog(args.manifest)
    with ResolutionCache(catalog) as cache:
        session = ViewerSession(catalog, cache)
        if args.select:
            try:
                session.select(args.select)
            except KeyError:
                LOGGER.error("Unknown track id %s", args.select)
                return 1
            wait([cache.ensure_loaded(args.select)])
        create_catalog_map(session.layers(), output_html_path=args.output)
    LOGGER.info("Catalog map (%d tracks) written to %s", len(catalog), args.output)
    if args.open:
        webbrowser.open(Path(args.output).resolve().as_uri())
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ground-tracks",
        description="Import, simplify and query catalogued GPS tracks",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Python logging level",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a GPX/GeoJSON/JSON file and export it")
    imp.add_argument("path", help="Raw GPS file")
    imp.add_argument(
        "--format",
        choices=[fmt.value for fmt in SourceFormat],
        help="Source format (sniffed when omitted)",
    )
    imp.add_argument(
        "--epsilon",
        type=float,
        default=DEFAULT_WORKING_EPSILON,
        help=(
            f"Working simplification epsilon in degrees (default {DEFAULT_WORKING_EPSILON}; "
            f"tune in steps of {EPSILON_STEP} up to {MAX_WORKING_EPSILON})"
        ),
    )
    imp.add_argument("--name", help="Override the track name")
    imp.add_argument("--date", help="Override the local start, YYYY-MM-DDThh:mm")
    imp.add_argument(
        "--type",
        default=DEFAULT_ACTIVITY_TYPE,
        choices=[kind.value for kind in ActivityType],
        help="Activity type",
    )
    imp.add_argument("--blog", action="store_true", help="Has an associated blog post")
    imp.add_argument("--export-dir", default=EXPORT_DIR, help="Export directory")
    imp.add_argument("--preview-html", help="Write a raw vs simplified HTML map")
    imp.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the manifest entry without writing files",
    )
    imp.set_defaults(handler=_run_import)

    hit = sub.add_parser("hit-test", help="List catalog tracks under a map click")
    hit.add_argument("lat", type=float)
    hit.add_argument("lng", type=float)
    hit.add_argument("--zoom", type=int, required=True, help="Map zoom level")
    hit.add_argument("--manifest", default=MANIFEST_URL, help="Manifest URL or path")
    hit.add_argument(
        "--refine",
        action="store_true",
        help="Load full-resolution tracks for preview hits and re-test",
    )
    hit.set_defaults(handler=_run_hit_test)

    map_cmd = sub.add_parser("map", help="Render the catalog to an HTML map")
    map_cmd.add_argument("--manifest", default=MANIFEST_URL, help="Manifest URL or path")
    map_cmd.add_argument("--output", default="catalog.html", help="Output HTML path")
    map_cmd.add_argument("--select", help="Track id to highlight")
    map_cmd.add_argument(
        "--open",
        action=argparse.BooleanOptionalAction,
        default=MAP_OPEN_BROWSER,
        help="Open the rendered map in a browser",
    )
    map_cmd.set_defaults(handler=_run_map)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the ``ground-tracks`` command."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _setup_logging(args.log_level)
    return args.handler(args)


__all__: List[str] = ["main"]

"""Assemble manifest entries and exportable tracks from imported traces."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Tuple

from .activity_types import ActivityType, parse_activity_type
from .config import (
    DEFAULT_ACTIVITY_TYPE,
    DEFAULT_WORKING_EPSILON,
    PREVIEW_EPSILON,
    TRACK_URL_TEMPLATE,
)
from .errors import ExportBlockedError
from .geometry import SimplificationStats, simplify_path, summarize_simplification
from .importer import to_local_datetime_string
from .models import ManifestEntry, PointSequence, RawTrace
from .utils import json_dumps_pretty, slugify

LOGGER = logging.getLogger(__name__)

# Returned by generate_track_id when the name or date is missing.
PENDING_ID = "pending"


@dataclass(slots=True)
class ManifestBuild:
    """A manifest entry plus the high-resolution track it points at."""

    entry: ManifestEntry
    track_points: PointSequence
    stats: SimplificationStats


def generate_track_id(date_local: Optional[str], name: Optional[str]) -> str:
    """Derive the catalog id ``<date>-<slug>`` from a local date-time and name.

    ``("2023-05-01T12:00", "Blue Ridge Loop!")`` yields
    ``"2023-05-01T1200-blue-ridge-loop"``. Returns :data:`PENDING_ID` when
    either input is missing or the name has no id-safe characters.
    """

    if not date_local or not name:
        return PENDING_ID
    slug = slugify(name)
    if not slug:
        return PENDING_ID
    date_part = date_local.replace(":", "", 1)
    return f"{date_part}-{slug}"


def track_url_for(track_id: str) -> str:
    """Return the published location of the high-resolution track file."""

    return TRACK_URL_TEMPLATE.format(id=track_id)


def simplify_for_export(
    trace: RawTrace, epsilon: float = DEFAULT_WORKING_EPSILON
) -> Tuple[PointSequence, SimplificationStats]:
    """Simplify at the working epsilon and report the distance trade-off."""

    track = simplify_path(trace.points, epsilon)
    return track, summarize_simplification(trace.points, track)


def build_preview(trace: RawTrace) -> PointSequence:
    """Simplify at the fixed preview epsilon, always returning two or more points."""

    preview = simplify_path(trace.points, PREVIEW_EPSILON)
    if len(preview) == 1:
        preview = [preview[0], preview[0]]
    return preview


def build_manifest_entry(
    trace: RawTrace,
    *,
    epsilon: float = DEFAULT_WORKING_EPSILON,
    activity_type: ActivityType | str = DEFAULT_ACTIVITY_TYPE,
    has_blog: bool = False,
    name: Optional[str] = None,
    date_local: Optional[str] = None,
) -> ManifestBuild:
    """Build the manifest entry and exportable track for ``trace``.

    Args:
        trace: Imported trace.
        epsilon: Working simplification epsilon in decimal degrees.
        activity_type: Activity label or :class:`ActivityType`.
        has_blog: Whether a blog post accompanies the activity.
        name: Operator-edited name; defaults to the trace name.
        date_local: Operator-edited local date-time; defaults to the trace's.

    Raises:
        ExportBlockedError: If the name or date is missing.
        ValueError: If ``activity_type`` is unknown or ``epsilon`` negative.
    """

    kind = parse_activity_type(activity_type)
    final_name = (trace.name if name is None else name).strip()
    final_date = (
        trace.date_local
        if date_local is None
        else to_local_datetime_string(date_local, trace.timezone_id)
    )
    track_id = generate_track_id(final_date, final_name)
    if track_id == PENDING_ID:
        raise ExportBlockedError("Please ensure Name and Date are set.")

    track, stats = simplify_for_export(trace, epsilon)
    preview = build_preview(trace)
    bounds = (track[0], track[-1]) if track else ()
    entry = ManifestEntry(
        id=track_id,
        name=final_name,
        date_local=final_date,
        activity_type=kind,
        has_blog=bool(has_blog),
        bounds=bounds,
        preview=tuple(preview),
        track_url=track_url_for(track_id),
    )
    LOGGER.info(
        "Built manifest entry %s: %d -> %d points (preview %d), loss %.0f ft",
        track_id,
        stats.raw_points,
        stats.simplified_points,
        len(preview),
        stats.distance_loss_feet,
    )
    return ManifestBuild(entry=entry, track_points=track, stats=stats)


def manifest_entry_text(entry: ManifestEntry) -> str:
    """Return the entry as indented JSON with a trailing comma for splicing."""

    return json_dumps_pretty(entry.to_dict()) + ","


__all__ = [
    "PENDING_ID",
    "ManifestBuild",
    "generate_track_id",
    "track_url_for",
    "simplify_for_export",
    "build_preview",
    "build_manifest_entry",
    "manifest_entry_text",
]

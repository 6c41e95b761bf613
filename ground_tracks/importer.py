"""Parse raw GPS files into normalised traces ready for cataloguing.

Three recorder formats are supported plus encoded polylines:

* GPX XML (first track, all of its segments in file order),
* GeoJSON-like JSON exported by hiking apps (``features[0].geometry``), with
  an optional top-level ``outAndBack`` flag that mirrors the path,
* a bare JSON array of ``[lat, lng]`` pairs,
* Google/Strava encoded polyline text.

The caller may declare the format; otherwise it is sniffed from the file
suffix and contents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import gpxpy
import gpxpy.gpx
from polyline import decode as polyline_decode
from shapely.errors import ShapelyError
from shapely.geometry import shape
from timezonefinder import TimezoneFinder

from .config import DEFAULT_TIMEZONE
from .errors import TrackImportError
from .models import GeoPoint, PointSequence, RawTrace, SourceFormat, to_geopoint

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
TimezoneLookup = Callable[[float, float], Optional[str]]
StartTime = Union[datetime, str, None]

LOCAL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

_SUFFIX_FORMATS = {
    ".gpx": SourceFormat.GPX,
    ".geojson": SourceFormat.GEOJSON,
    ".polyline": SourceFormat.ENCODED_POLYLINE,
}


@dataclass(slots=True)
class ParsedTrace:
    """Format-specific parse result before timezone and naming are resolved."""

    source_format: SourceFormat
    points: PointSequence
    name: Optional[str] = None
    started: StartTime = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def sniff_format(text: str, filename: Optional[str] = None) -> SourceFormat:
    """Guess the source format from the filename suffix, then the contents."""

    if filename:
        by_suffix = _SUFFIX_FORMATS.get(Path(filename).suffix.lower())
        if by_suffix is not None:
            return by_suffix
    if "<gpx" in text:
        return SourceFormat.GPX
    payload = _load_json(text)
    if isinstance(payload, list):
        return SourceFormat.POINT_ARRAY
    if isinstance(payload, dict):
        return SourceFormat.GEOJSON
    raise TrackImportError("Unsupported file: expected GPX, GeoJSON or a JSON array")


def parse_gpx(text: str) -> ParsedTrace:
    """Extract the first track of a GPX document."""

    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXException as exc:
        raise TrackImportError(f"Invalid GPX: {exc}") from exc
    if not gpx.tracks:
        raise TrackImportError("GPX file contains no tracks.")
    track = gpx.tracks[0]
    raw_points = [point for segment in track.segments for point in segment.points]
    points = _convert_pairs([(p.latitude, p.longitude) for p in raw_points])
    started: StartTime = next((p.time for p in raw_points if p.time), None)
    if started is None:
        started = gpx.time
    return ParsedTrace(
        source_format=SourceFormat.GPX,
        points=points,
        name=track.name or gpx.name,
        started=started,
        metadata={"segments": len(track.segments), "tracks": len(gpx.tracks)},
    )


def parse_geojson(text: str) -> ParsedTrace:
    """Extract the first feature's line from GeoJSON-like JSON."""

    payload = _load_json(text)
    if not isinstance(payload, dict):
        raise TrackImportError("GeoJSON input must be a JSON object")
    features = payload.get("features")
    if not isinstance(features, list) or not features:
        raise TrackImportError("No coordinate data found.")
    first = features[0]
    geometry = first.get("geometry") if isinstance(first, dict) else None
    if not isinstance(geometry, dict) or not geometry.get("coordinates"):
        raise TrackImportError("No coordinate data found.")
    coords = _geometry_coordinates(geometry)
    out_and_back = bool(payload.get("outAndBack"))
    if out_and_back:
        # Mirror the path, skipping the shared turnaround point.
        coords = coords + coords[::-1][1:]
    points = _convert_pairs([(c[1], c[0]) for c in coords])
    return ParsedTrace(
        source_format=SourceFormat.GEOJSON,
        points=points,
        name=payload.get("hikeName"),
        started=payload.get("timestamp") or payload.get("hikeDate"),
        metadata={"out_and_back": out_and_back},
    )


def parse_point_array(text: str) -> ParsedTrace:
    """Interpret a bare JSON array of ``[x, y]`` pairs as ``(lat, lng)``."""

    payload = _load_json(text)
    if not isinstance(payload, list):
        raise TrackImportError("Expected a JSON array of [lat, lng] pairs")
    return ParsedTrace(
        source_format=SourceFormat.POINT_ARRAY, points=_convert_pairs(payload)
    )


def parse_encoded_polyline(text: str) -> ParsedTrace:
    """Decode an encoded polyline string."""

    encoded = text.strip()
    try:
        decoded = polyline_decode(encoded) if encoded else []
    except (ValueError, TypeError, IndexError) as exc:
        raise TrackImportError("Unable to decode polyline") from exc
    return ParsedTrace(
        source_format=SourceFormat.ENCODED_POLYLINE, points=_convert_pairs(decoded)
    )


_PARSERS: Dict[SourceFormat, Callable[[str], ParsedTrace]] = {
    SourceFormat.GPX: parse_gpx,
    SourceFormat.GEOJSON: parse_geojson,
    SourceFormat.POINT_ARRAY: parse_point_array,
    SourceFormat.ENCODED_POLYLINE: parse_encoded_polyline,
}


def import_track(
    text: str,
    *,
    source_format: Optional[SourceFormat] = None,
    filename: Optional[str] = None,
    now: Optional[datetime] = None,
    timezone_lookup: Optional[TimezoneLookup] = None,
) -> RawTrace:
    """Parse raw file text into a :class:`RawTrace`.

    Args:
        text: Raw file contents.
        source_format: Declared format. Sniffed when omitted.
        filename: Original file name; supplies the fallback track name and a
            format hint.
        now: Start time used when the file carries none (defaults to the
            current UTC time).
        timezone_lookup: Callable mapping ``(lat, lng)`` to an IANA zone name.
            Defaults to a ``timezonefinder`` lookup.

    Returns:
        The normalised trace with its timezone and local start time attached.

    Raises:
        TrackImportError: If no coordinate data can be extracted.
    """

    fmt = SourceFormat(source_format) if source_format else sniff_format(text, filename)
    parsed = _PARSERS[fmt](text)
    if not parsed.points:
        raise TrackImportError("No coordinate data found.")

    first = parsed.points[0]
    tz_name = resolve_timezone(first.lat, first.lng, timezone_lookup)
    started = parsed.started
    if started is None or started == "":
        started = now or datetime.now(timezone.utc)
    name = (parsed.name or "").strip() or _name_from_filename(filename)
    trace = RawTrace(
        points=parsed.points,
        name=name,
        timestamp_iso=started.isoformat() if isinstance(started, datetime) else str(started),
        timezone_id=tz_name,
        source_format=fmt,
        date_local=to_local_datetime_string(started, tz_name),
        metadata=dict(parsed.metadata),
    )
    LOGGER.info(
        "Imported %s trace %r: %d points, starting %s (%s)",
        fmt.value,
        trace.name,
        len(trace.points),
        trace.date_local,
        trace.timezone_id,
    )
    return trace


def import_file(
    path: PathLike,
    *,
    source_format: Optional[SourceFormat] = None,
    now: Optional[datetime] = None,
    timezone_lookup: Optional[TimezoneLookup] = None,
) -> RawTrace:
    """Read ``path`` and import it. See :func:`import_track`."""

    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise TrackImportError(f"Unable to read {file_path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise TrackImportError(f"{file_path} is not valid UTF-8 text: {exc}") from exc
    return import_track(
        text,
        source_format=source_format,
        filename=file_path.name,
        now=now,
        timezone_lookup=timezone_lookup,
    )


def resolve_timezone(
    lat: float, lng: float, lookup: Optional[TimezoneLookup] = None
) -> str:
    """Return the IANA zone containing ``(lat, lng)``, or the configured default."""

    finder = lookup or _default_timezone_lookup
    tz_name = finder(lat, lng)
    if not tz_name:
        LOGGER.debug("No timezone found at (%s, %s); using %s", lat, lng, DEFAULT_TIMEZONE)
        return DEFAULT_TIMEZONE
    return tz_name


def to_local_datetime_string(value: StartTime, tz_name: str) -> str:
    """Normalise a start time to ``YYYY-MM-DDThh:mm`` in ``tz_name``.

    Dotted dates (``2023.05.01``) are accepted, a bare date becomes noon, and
    offset-aware timestamps are converted into the trace's zone. Other strings
    are truncated to minutes.
    """

    if value is None:
        return ""
    if isinstance(value, datetime):
        return _format_in_zone(value, tz_name)
    cleaned = str(value).strip().replace(".", "-")
    if not cleaned:
        return ""
    if len(cleaned) == 10:
        return f"{cleaned}T12:00"
    try:
        parsed = datetime.fromisoformat(cleaned.replace("Z", "+00:00"))
    except ValueError:
        return cleaned[:16]
    if parsed.tzinfo is None:
        return parsed.strftime(LOCAL_DATETIME_FORMAT)
    return _format_in_zone(parsed, tz_name)


def _format_in_zone(value: datetime, tz_name: str) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("Unknown timezone %r; formatting in UTC", tz_name)
        zone = ZoneInfo("UTC")
    return value.astimezone(zone).strftime(LOCAL_DATETIME_FORMAT)


@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    # Loading the boundary data is slow; build the finder once per process.
    return TimezoneFinder()


def _default_timezone_lookup(lat: float, lng: float) -> Optional[str]:
    return _timezone_finder().timezone_at(lng=lng, lat=lat)


def _geometry_coordinates(geometry: Dict[str, Any]) -> List[Sequence[float]]:
    """Return the ``[lng, lat]`` vertices of a line-like GeoJSON geometry.

    Hiking-app exports often omit ``type``; their ``coordinates`` are read as a
    single line. A one-position ``LineString`` is read the same way because
    shapely refuses to build it.
    """

    geometry_type = geometry.get("type")
    coordinates = geometry.get("coordinates")
    if not geometry_type or (
        geometry_type == "LineString"
        and isinstance(coordinates, list)
        and len(coordinates) == 1
    ):
        return _raw_line(coordinates)
    try:
        geom = shape(geometry)
    except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as exc:
        raise TrackImportError(f"Malformed GeoJSON geometry: {exc}") from exc
    if geom.geom_type in {"LineString", "Point"}:
        return [tuple(coord) for coord in geom.coords]
    if geom.geom_type == "MultiLineString":
        return [tuple(coord) for line in geom.geoms for coord in line.coords]
    raise TrackImportError(f"Unsupported geometry type: {geom.geom_type}")


def _raw_line(coordinates: Any) -> List[Sequence[float]]:
    if not isinstance(coordinates, list):
        raise TrackImportError("Malformed GeoJSON coordinates: expected an array")
    for index, coord in enumerate(coordinates):
        if not isinstance(coord, (list, tuple)) or len(coord) < 2:
            raise TrackImportError(
                f"Malformed GeoJSON coordinates: position {index} is not [lng, lat]"
            )
    return [tuple(coord) for coord in coordinates]


def _convert_pairs(pairs: Sequence[Any]) -> PointSequence:
    points: List[GeoPoint] = []
    for index, pair in enumerate(pairs):
        try:
            points.append(to_geopoint(pair))
        except (ValueError, TypeError) as exc:
            raise TrackImportError(f"Invalid coordinate at index {index}: {exc}") from exc
    return points


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise TrackImportError(f"Malformed JSON: {exc.msg}") from exc


def _name_from_filename(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return Path(filename).stem


__all__ = [
    "ParsedTrace",
    "sniff_format",
    "parse_gpx",
    "parse_geojson",
    "parse_point_array",
    "parse_encoded_polyline",
    "import_track",
    "import_file",
    "resolve_timezone",
    "to_local_datetime_string",
]

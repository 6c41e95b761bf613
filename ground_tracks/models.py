"""Dataclasses describing GPS traces and published catalog entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .activity_types import ActivityType, parse_activity_type


class GeoPoint(NamedTuple):
    """A single ``(lat, lng)`` position in decimal degrees."""

    lat: float
    lng: float


PointSequence = List[GeoPoint]


class SourceFormat(str, Enum):
    """Raw file formats understood by the importer."""

    GPX = "gpx"
    GEOJSON = "geojson"
    POINT_ARRAY = "point_array"
    ENCODED_POLYLINE = "polyline"


def to_geopoint(pair: Sequence[Any]) -> GeoPoint:
    """Convert a raw ``[lat, lng]`` pair to a typed point.

    Raises:
        ValueError: If the pair is not two finite, in-range numbers.
    """

    if isinstance(pair, (str, bytes)) or len(pair) < 2:
        raise ValueError(f"Expected a [lat, lng] pair, got {pair!r}")
    try:
        lat = float(pair[0])
        lng = float(pair[1])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Non-numeric coordinate in {pair!r}") from exc
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
        raise ValueError(f"Coordinate out of range: {pair!r}")
    return GeoPoint(lat, lng)


def to_point_sequence(pairs: Any) -> PointSequence:
    """Convert a JSON array of ``[lat, lng]`` pairs to a point sequence."""

    if not isinstance(pairs, (list, tuple)):
        raise ValueError("Expected an array of [lat, lng] pairs")
    return [to_geopoint(pair) for pair in pairs]


@dataclass(slots=True)
class RawTrace:
    """A freshly imported trace plus the provenance needed to catalog it."""

    points: PointSequence
    name: str
    timestamp_iso: str
    timezone_id: str
    source_format: SourceFormat
    date_local: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """Immutable catalog entry as published in the manifest."""

    id: str
    name: str
    date_local: str
    activity_type: ActivityType
    has_blog: bool
    bounds: Tuple[GeoPoint, ...]
    preview: Tuple[GeoPoint, ...]
    track_url: str

    @property
    def activity_datetime(self) -> Optional[datetime]:
        """Return the local activity start as a naive datetime when parseable."""

        try:
            return datetime.fromisoformat(self.date_local)
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Return the manifest wire representation."""

        return {
            "id": self.id,
            "name": self.name,
            "date": self.date_local,
            "type": self.activity_type.value,
            "hasBlog": self.has_blog,
            "bounds": [list(point) for point in self.bounds],
            "preview": [list(point) for point in self.preview],
            "trackUrl": self.track_url,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ManifestEntry":
        """Build an entry from its manifest wire representation.

        Raises:
            ValueError: If a required field is missing or malformed.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Manifest entry must be a JSON object")
        missing = [key for key in ("id", "trackUrl") if not payload.get(key)]
        if missing:
            raise ValueError(f"Manifest entry missing fields: {', '.join(missing)}")
        bounds = to_point_sequence(payload.get("bounds") or [])
        if bounds and len(bounds) != 2:
            raise ValueError("Manifest bounds must hold exactly two points")
        has_blog = payload.get("hasBlog", False)
        if not isinstance(has_blog, bool):
            raise ValueError(f"Manifest hasBlog must be true or false, got {has_blog!r}")
        return cls(
            id=str(payload["id"]),
            name=str(payload.get("name") or ""),
            date_local=str(payload.get("date") or ""),
            activity_type=parse_activity_type(payload.get("type", "Hike")),
            has_blog=has_blog,
            bounds=tuple(bounds),
            preview=tuple(to_point_sequence(payload.get("preview") or [])),
            track_url=str(payload["trackUrl"]),
        )


__all__ = [
    "GeoPoint",
    "PointSequence",
    "SourceFormat",
    "RawTrace",
    "ManifestEntry",
    "to_geopoint",
    "to_point_sequence",
]

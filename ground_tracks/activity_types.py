"""Activity types a catalog entry may carry."""

from __future__ import annotations

from enum import Enum
from typing import Any

__all__ = ["ActivityType", "normalize_activity_type", "parse_activity_type"]


class ActivityType(str, Enum):
    """Published activity labels. The value is the manifest wire form."""

    HIKE = "Hike"
    BIKE_RIDE = "Bike ride"
    BACKPACKING = "Backpacking"
    WALK = "Walk"


def normalize_activity_type(value: Any) -> str | None:
    """Return a lowercase, single-spaced activity label or ``None`` when missing.

    Hand-edited manifests use inconsistent casing and separators ("bike_ride",
    "Bike Ride", "BIKE-RIDE"). Normalising once keeps comparisons cheap.
    """

    if value is None:
        return None
    text = str(value.value if isinstance(value, ActivityType) else value)
    normalized = " ".join(text.replace("_", " ").replace("-", " ").split()).lower()
    return normalized or None


_BY_NORMALIZED = {normalize_activity_type(item.value): item for item in ActivityType}


def parse_activity_type(value: Any) -> ActivityType:
    """Return the :class:`ActivityType` matching ``value``.

    Raises:
        ValueError: If ``value`` does not name a known activity type.
    """

    if isinstance(value, ActivityType):
        return value
    normalized = normalize_activity_type(value)
    try:
        return _BY_NORMALIZED[normalized]
    except KeyError:
        allowed = ", ".join(item.value for item in ActivityType)
        raise ValueError(
            f"Unknown activity type {value!r} (expected one of: {allowed})"
        ) from None

"""General utility helpers shared across modules."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Sequence

_SLUG_STRIP = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_COLLAPSE = re.compile(r"[\s_-]+")
_SLUG_TRIM = re.compile(r"^-+|-+$")


def slugify(value: str) -> str:
    """Return a lower-case, hyphenated, id-safe form of ``value``.

    ``"Blue Ridge Loop!"`` becomes ``"blue-ridge-loop"``.
    """

    text = value.lower().strip()
    text = _SLUG_STRIP.sub("", text)
    text = _SLUG_COLLAPSE.sub("-", text)
    return _SLUG_TRIM.sub("", text)


def format_miles(miles: float) -> str:
    """Format a distance in miles as ``X.XX mi``."""

    return f"{miles:.2f} mi"


def points_to_json(points: Iterable[Sequence[float]]) -> str:
    """Serialise points as a compact JSON array of ``[lat, lng]`` pairs."""

    return json.dumps([[float(p[0]), float(p[1])] for p in points], separators=(",", ":"))


def json_dumps_pretty(value: Any) -> str:
    """Return two-space indented JSON, as pasted into hand-curated files."""

    return json.dumps(value, indent=2, ensure_ascii=False)

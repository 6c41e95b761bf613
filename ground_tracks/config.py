"""Central configuration for the Ground Tracks catalog and authoring tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Deployment-specific values are read from environment
variables (optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Published data locations
# ---------------------------------------------------------------------------
# Manifest of all catalog entries. May be an http(s) URL or a local path.
MANIFEST_URL = os.getenv("GROUND_TRACKS_MANIFEST_URL", "data/manifest.json")

# Base used to resolve relative ``trackUrl`` values. Leave empty to resolve
# them against the local filesystem (the static site root).
TRACK_BASE_URL = os.getenv("GROUND_TRACKS_TRACK_BASE_URL", "")

# Directory acting as the static site root when ``TRACK_BASE_URL`` is empty.
STATIC_ROOT = os.getenv("GROUND_TRACKS_STATIC_ROOT", "public")

# Published location of a high-resolution track, keyed by the track id.
TRACK_URL_TEMPLATE = "/data/tracks/{id}.json"

# Where the export action writes ``<id>.json`` and the manifest snippet.
EXPORT_DIR = os.getenv("GROUND_TRACKS_EXPORT_DIR", "export")


# ---------------------------------------------------------------------------
# Simplification
# ---------------------------------------------------------------------------
# Working epsilon (decimal degrees) for the exported high-resolution track.
DEFAULT_WORKING_EPSILON = _env_float("GROUND_TRACKS_WORKING_EPSILON", 0.00002)

# Range and step offered to the operator when tuning the working epsilon.
MAX_WORKING_EPSILON = 0.0003
EPSILON_STEP = 0.000005

# Fixed, coarser epsilon for the lightweight manifest preview. Independent of
# the working epsilon so previews stay stable across export tuning.
PREVIEW_EPSILON = 0.005

# Approximate meters per degree of latitude, for display only.
METERS_PER_DEGREE_LAT = 111139.0


# ---------------------------------------------------------------------------
# Distance metrics
# ---------------------------------------------------------------------------
EARTH_RADIUS_MILES = 3958.8
FEET_PER_MILE = 5280.0

# Distance lost to simplification above which the operator is warned.
DISTANCE_LOSS_WARNING_FEET = _env_float("GROUND_TRACKS_LOSS_WARNING_FEET", 100.0)


# ---------------------------------------------------------------------------
# Hit testing
# ---------------------------------------------------------------------------
# Click tolerance is HIT_TOLERANCE_K / 2**zoom degrees. 14.0 is roughly ten
# screen pixels of a 256px tile pyramid at every zoom level.
HIT_TOLERANCE_K = _env_float("GROUND_TRACKS_HIT_TOLERANCE_K", 14.0)

# Memoised pruning envelopes kept by the hit tester. The memo grows to twice
# the catalog size (preview and full resolution) when a scan needs more.
ENVELOPE_CACHE_SIZE = _env_int("GROUND_TRACKS_ENVELOPE_CACHE_SIZE", 4096)


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------
# Worker threads used for background high-resolution track fetches.
RESOLUTION_FETCH_WORKERS = _env_int("GROUND_TRACKS_FETCH_WORKERS", 4)

# HTTP session pool sizes for concurrent requests.
HTTP_POOL_CONNECTIONS = 10
HTTP_POOL_MAXSIZE = 10

# Request timeout in seconds.
REQUEST_TIMEOUT = _env_int("GROUND_TRACKS_REQUEST_TIMEOUT", 15)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------
# Zone used when no IANA timezone covers the first point (e.g. at sea).
DEFAULT_TIMEZONE = os.getenv("GROUND_TRACKS_DEFAULT_TIMEZONE", "UTC")

# Default activity type offered by the authoring tool.
DEFAULT_ACTIVITY_TYPE = "Hike"


# ---------------------------------------------------------------------------
# Map preview
# ---------------------------------------------------------------------------
MAP_DEFAULT_CENTER = (35.5951, -82.5515)
MAP_DEFAULT_ZOOM = 11
MAP_TILES = os.getenv("GROUND_TRACKS_MAP_TILES", "OpenStreetMap")

# Open the generated HTML preview in a browser after writing it.
MAP_OPEN_BROWSER = _env_bool("GROUND_TRACKS_MAP_OPEN_BROWSER", False)

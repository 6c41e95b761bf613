"""Ground Tracks: GPS trace catalog, simplification and map hit testing."""

from .catalog import CatalogIndex, load_catalog
from .errors import (
    ExportBlockedError,
    ManifestLoadError,
    TrackImportError,
    TrackLoadError,
)
from .importer import import_file, import_track
from .main import main
from .manifest_builder import build_manifest_entry, generate_track_id
from .models import GeoPoint, ManifestEntry, RawTrace, SourceFormat
from .resolution_cache import ResolutionCache
from .viewer import SpatialHitTester, ViewerSession, hit_test

__all__ = [
    "main",
    "CatalogIndex",
    "load_catalog",
    "ExportBlockedError",
    "ManifestLoadError",
    "TrackImportError",
    "TrackLoadError",
    "import_file",
    "import_track",
    "build_manifest_entry",
    "generate_track_id",
    "GeoPoint",
    "ManifestEntry",
    "RawTrace",
    "SourceFormat",
    "ResolutionCache",
    "SpatialHitTester",
    "ViewerSession",
    "hit_test",
]

"""Central error types used across the application."""

from __future__ import annotations


class GroundTracksError(RuntimeError):
    """Base error for catalog, import and export failures."""


class TrackImportError(GroundTracksError):
    """Raised when a raw GPS file yields no usable coordinate data."""


class ManifestLoadError(GroundTracksError):
    """Raised when the published manifest cannot be fetched or parsed."""


class TrackLoadError(GroundTracksError):
    """Raised when a high-resolution track file cannot be fetched or parsed."""


class ExportBlockedError(GroundTracksError):
    """Raised when an export is attempted without a name and date."""


__all__ = [
    "GroundTracksError",
    "TrackImportError",
    "ManifestLoadError",
    "TrackLoadError",
    "ExportBlockedError",
]

"""In-memory index of published manifest entries."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import requests
from requests import Session

from .config import MANIFEST_URL
from .errors import ManifestLoadError
from .http_session import fetch_json
from .models import ManifestEntry

LOGGER = logging.getLogger(__name__)


class CatalogIndex:
    """Read-only mapping of track id to :class:`ManifestEntry`.

    Iteration follows manifest order; lookups are by id.
    """

    __slots__ = ("_entries", "_order", "_positions")

    def __init__(self, entries: Iterable[ManifestEntry] = ()) -> None:
        by_id: Dict[str, ManifestEntry] = {}
        for entry in entries:
            if entry.id in by_id:
                LOGGER.warning("Duplicate manifest id %s ignored", entry.id)
                continue
            by_id[entry.id] = entry
        self._entries = by_id
        self._order: Tuple[ManifestEntry, ...] = tuple(by_id.values())
        self._positions = {track_id: index for index, track_id in enumerate(by_id)}

    @classmethod
    def load(cls, entries: Iterable[ManifestEntry]) -> "CatalogIndex":
        return cls(entries)

    def by_id(self, track_id: str) -> Optional[ManifestEntry]:
        return self._entries.get(track_id)

    def all(self) -> Tuple[ManifestEntry, ...]:
        return self._order

    def position(self, track_id: str) -> int:
        """Return the manifest position of ``track_id`` (used for stable ties)."""

        return self._positions[track_id]

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._entries

    def __iter__(self) -> Iterator[ManifestEntry]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        return f"CatalogIndex(entries={len(self._order)})"


def parse_manifest(payload: Any) -> List[ManifestEntry]:
    """Convert a decoded manifest array into entries.

    Individual malformed entries are skipped with a warning.

    Raises:
        ManifestLoadError: If the payload is not a JSON array.
    """

    if not isinstance(payload, list):
        raise ManifestLoadError("Manifest must be a JSON array of entries")
    entries: List[ManifestEntry] = []
    for index, item in enumerate(payload):
        try:
            entries.append(ManifestEntry.from_dict(item))
        except (ValueError, TypeError) as exc:
            LOGGER.warning("Skipping manifest entry #%d: %s", index, exc)
    return entries


def fetch_manifest(
    source: str = MANIFEST_URL, *, session: Session | None = None
) -> List[ManifestEntry]:
    """Fetch and parse the manifest at ``source`` (URL or path).

    Raises:
        ManifestLoadError: On any fetch or parse failure.
    """

    try:
        payload = fetch_json(source, session=session)
    except (requests.RequestException, OSError, ValueError) as exc:
        raise ManifestLoadError(f"Unable to load manifest {source}: {exc}") from exc
    return parse_manifest(payload)


def load_catalog(
    source: str = MANIFEST_URL, *, session: Session | None = None
) -> CatalogIndex:
    """Load the catalog, degrading to an empty index when the manifest fails."""

    try:
        entries = fetch_manifest(source, session=session)
    except ManifestLoadError as exc:
        LOGGER.error("%s; continuing with an empty catalog", exc)
        return CatalogIndex()
    catalog = CatalogIndex.load(entries)
    LOGGER.info("Loaded %d catalog entries from %s", len(catalog), source)
    return catalog


__all__ = ["CatalogIndex", "parse_manifest", "fetch_manifest", "load_catalog"]

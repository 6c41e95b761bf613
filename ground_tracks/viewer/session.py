"""Viewer state: the loaded catalog, its resolution cache and highlight ids."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence, Tuple

from ..catalog import CatalogIndex
from ..models import GeoPoint, ManifestEntry
from ..resolution_cache import ResolutionCache, TrackPoints
from .hit_testing import HitTestResult, SpatialHitTester
from .styles import HighlightState, TrackStyle, style_for

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderLayer:
    """One track as handed to the rendering collaborator."""

    entry: ManifestEntry
    points: Sequence[GeoPoint]
    style: TrackStyle
    state: HighlightState


class ViewerSession:
    """Owns the viewer's mutable state.

    All changes go through :meth:`hover`, :meth:`click`, :meth:`select` and
    :meth:`clear`. Hovering or selecting a track starts its high-resolution
    fetch so later hit tests and renders use the finer geometry.
    """

    def __init__(
        self,
        catalog: CatalogIndex,
        cache: Optional[ResolutionCache] = None,
        hit_tester: Optional[SpatialHitTester] = None,
    ) -> None:
        self._catalog = catalog
        self._cache = cache if cache is not None else ResolutionCache(catalog)
        self._tester = hit_tester or SpatialHitTester()
        self._hovered_id: Optional[str] = None
        self._selected_id: Optional[str] = None
        self._candidates: Tuple[ManifestEntry, ...] = ()

    @property
    def catalog(self) -> CatalogIndex:
        return self._catalog

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def hovered_id(self) -> Optional[str]:
        return self._hovered_id

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def candidates(self) -> Tuple[ManifestEntry, ...]:
        """Tracks awaiting disambiguation after the last ambiguous click."""

        return self._candidates

    def hover(self, track_id: Optional[str]) -> Optional[Future[TrackPoints]]:
        """Mark ``track_id`` as hovered (``None`` clears) and refine its geometry."""

        if track_id is None:
            self._hovered_id = None
            return None
        self._require(track_id)
        self._hovered_id = track_id
        return self._cache.ensure_loaded(track_id)

    def click(self, click: Sequence[float], zoom_level: int) -> HitTestResult:
        """Hit-test a map click.

        A single candidate is selected straight away. Several candidates are
        kept in :attr:`candidates` for the disambiguation UI, newest first; the
        caller reports the choice through :meth:`select`. No candidate clears
        the selection.
        """

        result = self._tester.resolve(click, zoom_level, self._catalog, self._cache)
        if not result.candidates:
            self._selected_id = None
            self._candidates = ()
        elif result.is_ambiguous:
            self._candidates = tuple(result.candidates)
            LOGGER.debug(
                "Ambiguous click: %s", ", ".join(entry.id for entry in result.candidates)
            )
        else:
            self.select(result.candidates[0].id)
        return result

    def select(self, track_id: str) -> ManifestEntry:
        """Select ``track_id`` (e.g. the disambiguation choice)."""

        entry = self._require(track_id)
        self._selected_id = track_id
        self._candidates = ()
        self._cache.ensure_loaded(track_id)
        return entry

    def clear(self) -> None:
        self._hovered_id = None
        self._selected_id = None
        self._candidates = ()

    def state_of(self, track_id: str) -> HighlightState:
        if track_id == self._selected_id:
            return HighlightState.SELECTED
        if track_id == self._hovered_id:
            return HighlightState.HOVERED
        if self._selected_id is not None:
            return HighlightState.DIMMED
        return HighlightState.NORMAL

    def layers(self) -> List[RenderLayer]:
        """Return every track with its best geometry and current style.

        The selected and hovered tracks come last so they draw on top.
        """

        layers = []
        for entry in self._catalog:
            state = self.state_of(entry.id)
            layers.append(
                RenderLayer(
                    entry=entry,
                    points=self._cache.points_for(entry),
                    style=style_for(entry.activity_type, state),
                    state=state,
                )
            )
        order = {
            HighlightState.DIMMED: 0,
            HighlightState.NORMAL: 1,
            HighlightState.HOVERED: 2,
            HighlightState.SELECTED: 3,
        }
        return sorted(layers, key=lambda layer: order[layer.state])

    def _require(self, track_id: str) -> ManifestEntry:
        entry = self._catalog.by_id(track_id)
        if entry is None:
            raise KeyError(track_id)
        return entry


__all__ = ["RenderLayer", "ViewerSession"]

"""Render traces and catalogs as interactive Leaflet maps via folium."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import folium  # Using folium to build an interactive Leaflet map.

from .config import MAP_DEFAULT_CENTER, MAP_DEFAULT_ZOOM, MAP_TILES
from .models import GeoPoint
from .viewer.session import RenderLayer
from .viewer.styles import RAW_GHOST_STYLE, SIMPLIFIED_STYLE, TrackStyle

PathLike = Union[str, Path]


def _polyline(points: Sequence[GeoPoint], style: TrackStyle, tooltip: str) -> folium.PolyLine:
    return folium.PolyLine(
        [tuple(point) for point in points],
        color=style.color,
        weight=style.weight,
        opacity=style.opacity,
        dash_array=style.dash_array,
        tooltip=tooltip,
    )


def _bounds(points: Iterable[Sequence[float]]) -> Optional[List[List[float]]]:
    lats: List[float] = []
    lngs: List[float] = []
    for point in points:
        lats.append(float(point[0]))
        lngs.append(float(point[1]))
    if not lats:
        return None
    return [[min(lats), min(lngs)], [max(lats), max(lngs)]]


def _save(folium_map: folium.Map, output_html_path: Optional[PathLike]) -> None:
    if output_html_path is None:
        return
    output_path = Path(output_html_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    folium_map.save(str(output_path))


def create_import_preview_map(
    raw_points: Sequence[GeoPoint],
    simplified_points: Sequence[GeoPoint],
    *,
    output_html_path: Optional[PathLike] = None,
) -> folium.Map:
    """Overlay a simplified trace on its raw ghost so the operator can tune epsilon.

    Args:
        raw_points: Imported trace.
        simplified_points: The same trace after simplification.
        output_html_path: Optional path to persist the map as HTML.

    Returns:
        A :class:`folium.Map` fitted to the raw trace.
    """

    folium_map = folium.Map(
        location=MAP_DEFAULT_CENTER,
        zoom_start=MAP_DEFAULT_ZOOM,
        tiles=MAP_TILES,
        control_scale=True,
    )
    if len(raw_points) >= 2:
        _polyline(raw_points, RAW_GHOST_STYLE, f"Raw trace ({len(raw_points)} points)").add_to(
            folium_map
        )
    if len(simplified_points) >= 2:
        _polyline(
            simplified_points,
            SIMPLIFIED_STYLE,
            f"Simplified ({len(simplified_points)} points)",
        ).add_to(folium_map)
    bounds = _bounds(raw_points)
    if bounds is not None:
        folium_map.fit_bounds(bounds, padding=(50, 50))
    _save(folium_map, output_html_path)
    return folium_map


def create_catalog_map(
    layers: Sequence[RenderLayer],
    *,
    output_html_path: Optional[PathLike] = None,
) -> folium.Map:
    """Draw every catalog track with its highlight style.

    ``layers`` normally comes from :meth:`ViewerSession.layers`, which already
    orders highlighted tracks last so they draw on top.
    """

    folium_map = folium.Map(
        location=MAP_DEFAULT_CENTER,
        zoom_start=MAP_DEFAULT_ZOOM,
        tiles=MAP_TILES,
        control_scale=True,
    )
    for layer in layers:
        if len(layer.points) < 2:
            continue
        entry = layer.entry
        tooltip = f"{entry.name} ({entry.activity_type.value}, {entry.date_local})"
        _polyline(layer.points, layer.style, tooltip).add_to(folium_map)
    bounds = _bounds(point for layer in layers for point in layer.points)
    if bounds is not None:
        folium_map.fit_bounds(bounds)
    _save(folium_map, output_html_path)
    return folium_map


__all__ = ["create_import_preview_map", "create_catalog_map"]

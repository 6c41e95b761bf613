"""Tests for the folium map renderers."""

from __future__ import annotations

from pathlib import Path

import folium

from conftest import make_entry, noisy_trace
from ground_tracks.catalog import CatalogIndex
from ground_tracks.geometry import simplify_path
from ground_tracks.models import GeoPoint
from ground_tracks.resolution_cache import ResolutionCache
from ground_tracks.viewer import ViewerSession
from ground_tracks.viewer.styles import RAW_GHOST_STYLE, SIMPLIFIED_STYLE
from ground_tracks.visualization import create_catalog_map, create_import_preview_map


def _polylines(map_object: folium.Map):
    return [
        child
        for child in map_object._children.values()
        if isinstance(child, folium.vector_layers.PolyLine)
    ]


def test_import_preview_overlays_raw_and_simplified(tmp_path: Path) -> None:
    raw = [GeoPoint(*p) for p in noisy_trace(count=60)]
    simplified = simplify_path(raw, 0.001)
    output_path = tmp_path / "preview" / "overlay.html"

    map_object = create_import_preview_map(raw, simplified, output_html_path=output_path)

    assert isinstance(map_object, folium.Map)
    assert output_path.exists(), "Expected the HTML map output to be written"
    colors = {line.options.get("color") for line in _polylines(map_object)}
    assert colors == {RAW_GHOST_STYLE.color, SIMPLIFIED_STYLE.color}
    html = output_path.read_text(encoding="utf-8")
    assert "Raw trace (60 points)" in html
    assert f"Simplified ({len(simplified)} points)" in html


def test_catalog_map_skips_degenerate_tracks(crossing_catalog: CatalogIndex, tmp_path: Path) -> None:
    catalog = CatalogIndex.load([*crossing_catalog, make_entry("dot", [(35.0, -82.0)])])
    with ResolutionCache(catalog) as cache:
        layers = ViewerSession(catalog, cache).layers()
    assert len(layers) == 3
    map_object = create_catalog_map(layers, output_html_path=tmp_path / "catalog.html")
    assert len(_polylines(map_object)) == 2
    html = (tmp_path / "catalog.html").read_text(encoding="utf-8")
    assert "Newer-North-South (Hike, 2024-03-15T10:30)" in html


def test_catalog_map_without_output_path() -> None:
    assert isinstance(create_catalog_map([]), folium.Map)

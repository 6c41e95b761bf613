"""End-to-end tests for the ``ground-tracks`` command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_entry, noisy_trace
from ground_tracks import importer
from ground_tracks.main import main


@pytest.fixture(autouse=True)
def fixed_timezone(monkeypatch):
    """Avoid loading timezone boundary data during CLI tests."""

    monkeypatch.setattr(importer, "_default_timezone_lookup", lambda lat, lng: "America/New_York")


@pytest.fixture
def recording(tmp_path: Path) -> Path:
    path = tmp_path / "blue-ridge-loop.json"
    path.write_text(json.dumps(noisy_trace(count=120)), encoding="utf-8")
    return path


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    track_dir = tmp_path / "tracks"
    track_dir.mkdir()
    entries = [
        make_entry("older-east-west", [(35.0, -82.02), (35.0, -81.98)], date="2022-06-01T08:00"),
        make_entry("newer-north-south", [(34.98, -82.0), (35.02, -82.0)], date="2024-03-15T10:30"),
    ]
    payload = []
    for entry in entries:
        track_path = track_dir / f"{entry.id}.json"
        points = [list(entry.preview[0]), list(entry.preview[-1])]
        track_path.write_text(json.dumps(points), encoding="utf-8")
        item = entry.to_dict()
        item["trackUrl"] = track_path.as_uri()
        payload.append(item)
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_import_dry_run_prints_manifest_entry(recording, tmp_path, capsys):
    code = main(
        [
            "import",
            str(recording),
            "--date",
            "2023-05-01T12:00",
            "--type",
            "Bike ride",
            "--dry-run",
            "--export-dir",
            str(tmp_path / "export"),
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Track:      blue-ridge-loop" in out
    assert "Points:     120 -> " in out
    assert '"id": "2023-05-01T1200-blue-ridge-loop"' in out
    assert '"type": "Bike ride"' in out
    assert not (tmp_path / "export").exists()


def test_import_exports_files_and_preview(recording, tmp_path, capsys):
    export_dir = tmp_path / "export"
    preview = tmp_path / "preview.html"
    code = main(
        [
            "import",
            str(recording),
            "--name",
            "Blue Ridge Loop",
            "--date",
            "2023-05-01",
            "--blog",
            "--export-dir",
            str(export_dir),
            "--preview-html",
            str(preview),
        ]
    )
    assert code == 0
    track_file = export_dir / "2023-05-01T1200-blue-ridge-loop.json"
    assert track_file.exists()
    assert (export_dir / "2023-05-01T1200-blue-ridge-loop.manifest.txt").exists()
    assert preview.exists()
    assert "Exported:" in capsys.readouterr().out


def test_import_failure_reports_and_exits_nonzero(tmp_path, caplog):
    bad = tmp_path / "broken.json"
    bad.write_text("{oops", encoding="utf-8")
    assert main(["import", str(bad)]) == 1
    assert "Import Failed" in caplog.text


def test_import_rejects_negative_epsilon(recording):
    assert main(["import", str(recording), "--epsilon", "-0.1"]) == 2


def test_hit_test_lists_candidates_newest_first(manifest, capsys):
    code = main(["hit-test", "35.0", "-82.0", "--zoom", "13", "--manifest", str(manifest)])
    out = capsys.readouterr().out
    assert code == 0
    assert "Candidates (newest first):" in out
    assert out.index("newer-north-south") < out.index("older-east-west")


def test_hit_test_refine_and_single_hit(manifest, capsys):
    code = main(
        ["hit-test", "35.01", "-82.0", "--zoom", "14", "--manifest", str(manifest), "--refine"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "Hit:" in out
    assert "newer-north-south" in out
    assert "older-east-west" not in out


def test_hit_test_miss_and_bad_zoom(manifest, capsys):
    assert main(["hit-test", "0", "0", "--zoom", "10", "--manifest", str(manifest)]) == 0
    assert "No track under the cursor." in capsys.readouterr().out
    assert main(["hit-test", "0", "0", "--zoom", "-1", "--manifest", str(manifest)]) == 2


def test_map_renders_catalog(manifest, tmp_path):
    output = tmp_path / "catalog.html"
    code = main(
        [
            "map",
            "--manifest",
            str(manifest),
            "--output",
            str(output),
            "--select",
            "older-east-west",
            "--no-open",
        ]
    )
    assert code == 0
    assert output.exists()


def test_map_unknown_selection(manifest, tmp_path):
    code = main(
        ["map", "--manifest", str(manifest), "--output", str(tmp_path / "x.html"), "--select", "nope"]
    )
    assert code == 1

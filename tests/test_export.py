import dataclasses
import json

import pytest

from conftest import make_trace, noisy_trace
from ground_tracks.errors import ExportBlockedError
from ground_tracks.export import export_track
from ground_tracks.manifest_builder import PENDING_ID, build_manifest_entry


def test_export_writes_track_and_manifest_snippet(tmp_path):
    build = build_manifest_entry(make_trace(noisy_trace(count=50)), epsilon=0.0002)
    result = export_track(build, tmp_path / "out")

    assert result.track_path.name == "2023-05-01T1200-blue-ridge-loop.json"
    track = json.loads(result.track_path.read_text(encoding="utf-8"))
    assert track == [[p.lat, p.lng] for p in build.track_points]

    snippet = result.manifest_path.read_text(encoding="utf-8")
    assert result.manifest_path.name == "2023-05-01T1200-blue-ridge-loop.manifest.txt"
    assert snippet == result.manifest_text + "\n"
    assert result.manifest_text.endswith(",")


def test_pending_id_writes_nothing(tmp_path):
    build = build_manifest_entry(make_trace(noisy_trace(count=10)))
    pending = dataclasses.replace(build, entry=dataclasses.replace(build.entry, id=PENDING_ID))
    with pytest.raises(ExportBlockedError):
        export_track(pending, tmp_path)
    assert list(tmp_path.iterdir()) == []

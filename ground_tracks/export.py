"""Write exported tracks and manifest snippets for manual curation."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Union

from .config import EXPORT_DIR
from .errors import ExportBlockedError
from .manifest_builder import PENDING_ID, ManifestBuild, manifest_entry_text
from .utils import points_to_json

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(slots=True)
class ExportResult:
    """Files written by :func:`export_track` and the snippet to paste."""

    track_path: Path
    manifest_path: Path
    manifest_text: str


def export_track(build: ManifestBuild, output_dir: PathLike = EXPORT_DIR) -> ExportResult:
    """Write ``<id>.json`` and ``<id>.manifest.txt`` into ``output_dir``.

    The manifest snippet carries a trailing comma so it can be pasted straight
    into the published manifest array.

    Raises:
        ExportBlockedError: If the entry still has the pending id. Nothing is
            written in that case.
    """

    entry = build.entry
    if not entry.id or entry.id == PENDING_ID:
        raise ExportBlockedError("Please ensure Name and Date are set.")
    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)

    track_path = target / f"{entry.id}.json"
    track_path.write_text(points_to_json(build.track_points), encoding="utf-8")

    text = manifest_entry_text(entry)
    manifest_path = target / f"{entry.id}.manifest.txt"
    manifest_path.write_text(text + "\n", encoding="utf-8")
    LOGGER.info("Exported %s (%d points) to %s", entry.id, len(build.track_points), target)
    return ExportResult(track_path=track_path, manifest_path=manifest_path, manifest_text=text)


__all__ = ["ExportResult", "export_track"]

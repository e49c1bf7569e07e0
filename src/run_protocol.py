"""Run folders and artifact names for design exports.

Each export gets its own folder under the runs root::

    <runs_root>/<utc-stamp>_<design-slug>/
        input/design.json
        artifacts/design-<ms>.svg|dxf|stl, bend-instructions-<ms>.txt|json
        quote.json
        summary.md
        manifest.json

Artifact names carry a millisecond stamp so downloads from the same design
never overwrite each other.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase, dash-separated form of *name*; ``design`` when nothing survives."""
    return _NON_SLUG.sub("-", name.lower()).strip("-") or "design"


def timestamp_ms() -> int:
    """Milliseconds since the epoch, used in artifact file names."""
    return int(time.time() * 1000)


def artifact_filename(stem: str, ext: str, stamp: Optional[int] = None) -> str:
    """``<stem>-<timestamp>.<ext>``, e.g. ``design-1718000000000.svg``."""
    if stamp is None:
        stamp = timestamp_ms()
    return f"{stem}-{stamp}.{ext.lstrip('.')}"


def create_run_id(design_name: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
    return f"{stamp}_{slugify(design_name)}"


@dataclass
class RunPaths:
    """Locations inside one run folder."""

    run_id: str
    run_dir: Path

    @property
    def input_dir(self) -> Path:
        return self.run_dir / "input"

    @property
    def artifacts_dir(self) -> Path:
        return self.run_dir / "artifacts"

    @property
    def design_json_path(self) -> Path:
        return self.input_dir / "design.json"

    @property
    def manifest_path(self) -> Path:
        return self.run_dir / "manifest.json"

    @property
    def quote_path(self) -> Path:
        return self.run_dir / "quote.json"

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.md"

    def artifact(self, stem: str, ext: str, stamp: int) -> Path:
        return self.artifacts_dir / artifact_filename(stem, ext, stamp)


def prepare_run_dir(runs_root: str, design_name: str) -> RunPaths:
    """Create a fresh run folder (with ``input/`` and ``artifacts/``) under *runs_root*."""
    run_id = create_run_id(design_name)
    paths = RunPaths(run_id=run_id, run_dir=Path(runs_root) / run_id)
    for folder in (paths.input_dir, paths.artifacts_dir):
        folder.mkdir(parents=True, exist_ok=True)
    return paths


def _open_for_write(path: Path, mode: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    if "b" in mode:
        return path.open(mode)
    return path.open(mode, encoding="utf-8")


def write_text(path: Path, content: str) -> None:
    with _open_for_write(path, "w") as f:
        f.write(content)


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    write_text(path, json.dumps(payload, indent=2, ensure_ascii=False))


def write_bytes(path: Path, content: bytes) -> None:
    with _open_for_write(path, "wb") as f:
        f.write(content)

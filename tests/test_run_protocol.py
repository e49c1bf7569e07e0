from __future__ import annotations

import json
from pathlib import Path

import pytest

from run_protocol import artifact_filename, prepare_run_dir, slugify, write_bytes, write_json


@pytest.mark.parametrize("name,expected", [
    ("Mixed Design", "mixed-design"),
    ("  Bracket #2 (rev B) ", "bracket-2-rev-b"),
    ("***", "design"),
])
def test_slugify(name, expected):
    assert slugify(name) == expected


def test_artifact_filename():
    assert artifact_filename("design", ".svg", 1718000000000) == "design-1718000000000.svg"
    name = artifact_filename("bend-instructions", "txt")
    assert name.startswith("bend-instructions-")
    assert name.endswith(".txt")


def test_prepare_run_dir(tmp_path: Path):
    paths = prepare_run_dir(str(tmp_path / "runs"), "Wall Bracket")
    assert paths.run_dir.parent == tmp_path / "runs"
    assert paths.run_id.endswith("_wall-bracket")
    assert paths.input_dir.is_dir()
    assert paths.artifacts_dir.is_dir()
    assert paths.design_json_path == paths.run_dir / "input" / "design.json"
    assert paths.artifact("design", "stl", 42) == paths.run_dir / "artifacts" / "design-42.stl"
    assert not paths.manifest_path.exists()


def test_writers_create_parents(tmp_path: Path):
    target = tmp_path / "a" / "b" / "quote.json"
    write_json(target, {"material": "Aluminium 3mm", "note": "Ø10 hole"})
    assert json.loads(target.read_text(encoding="utf-8"))["note"] == "Ø10 hole"
    blob = tmp_path / "c" / "part.stl"
    write_bytes(blob, b"\x00\x01")
    assert blob.read_bytes() == b"\x00\x01"

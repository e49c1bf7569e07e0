from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "export_design.py"


def _run(*args: str) -> subprocess.CompletedProcess:
    cmd = [sys.executable, str(SCRIPT), *args]
    return subprocess.run(cmd, capture_output=True, text=True)


def test_cli_exports_design(design_file: str, tmp_path: Path):
    proc = _run("--design", design_file, "--runs-dir", str(tmp_path / "runs"), "--quantity", "3")
    assert proc.returncode == 0, proc.stderr
    assert "Run:" in proc.stdout
    assert "Material: Aluminium 3mm" in proc.stdout
    assert "(quantity 3)" in proc.stdout
    assert "Bend instructions:" in proc.stdout


def test_cli_material_override(design_file: str, tmp_path: Path):
    proc = _run(
        "--design", design_file,
        "--runs-dir", str(tmp_path / "runs"),
        "--material", "stainless-1mm",
        "--no-stl",
    )
    assert proc.returncode == 0, proc.stderr
    assert "Material: Stainless Steel 1mm" in proc.stdout
    assert "STL:" not in proc.stdout


def test_cli_bad_quantity_falls_back_to_one(design_file: str, tmp_path: Path):
    proc = _run("--design", design_file, "--runs-dir", str(tmp_path / "runs"), "--quantity", "lots")
    assert proc.returncode == 0, proc.stderr
    assert "(quantity 1)" in proc.stdout


def test_cli_missing_design(tmp_path: Path):
    proc = _run("--design", str(tmp_path / "missing.json"), "--runs-dir", str(tmp_path))
    assert proc.returncode == 2
    assert "could not load design" in proc.stderr


def test_cli_empty_design(tmp_path: Path):
    path = tmp_path / "empty.json"
    path.write_text(json.dumps({"shapes": []}), encoding="utf-8")
    proc = _run("--design", str(path), "--runs-dir", str(tmp_path / "runs"))
    assert proc.returncode == 1
    assert "Error:" in proc.stderr

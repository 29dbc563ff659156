from __future__ import annotations

from pathlib import Path

from argswap.config import DetectorConfig
from argswap.engine import SwapEngine, apply_edits

SWAPPED = """
def transfer(sender, recipient):
    pass

def pay(sender, recipient):
    transfer(recipient, sender)
"""

CLEAN = """
def transfer(sender, recipient):
    pass

def pay(sender, recipient):
    transfer(sender, recipient)
"""


def test_scan_directory_reports_findings_and_edits(tmp_path: Path, write_module) -> None:
    swapped = write_module("pkg/pay.py", SWAPPED)
    write_module("pkg/clean.py", CLEAN)
    report = SwapEngine(project_root=tmp_path).scan()
    assert [finding.path for finding in report.findings] == ["pkg/pay.py"]
    assert report.findings[0].render().startswith("pkg/pay.py:5:5: ")
    [edit] = report.edits
    assert edit.path == str(swapped.resolve())
    assert edit.start == (0, 0)
    assert edit.end == (5, 0)
    assert "transfer(sender, recipient)" in edit.replacement
    assert report.errors == []


def test_scan_single_file_target(tmp_path: Path, write_module) -> None:
    swapped = write_module("pay.py", SWAPPED)
    write_module("other.py", SWAPPED)
    report = SwapEngine(project_root=tmp_path).scan([swapped])
    assert [finding.path for finding in report.findings] == ["pay.py"]


def test_read_and_parse_failures_are_collected(tmp_path: Path, write_module) -> None:
    write_module("broken.py", "def broken(:\n")
    (tmp_path / "binary.py").write_bytes(b"\xff\xfe\x00bad")
    write_module("pay.py", SWAPPED)
    report = SwapEngine(project_root=tmp_path).scan()
    assert len(report.findings) == 1
    assert any(error.startswith("LibCST parse failed for") for error in report.errors)
    assert any(error.startswith("Failed to read") for error in report.errors)


def test_excluded_paths_are_skipped(tmp_path: Path, write_module) -> None:
    write_module("build/pay.py", SWAPPED)
    write_module("src/pay.py", SWAPPED)
    write_module("src/generated_pay.py", SWAPPED)
    config = DetectorConfig(exclude=("build", "generated_*.py"))
    report = SwapEngine(project_root=tmp_path, config=config).scan()
    assert [finding.path for finding in report.findings] == ["src/pay.py"]


def test_config_warnings_lead_the_report(tmp_path: Path, write_module) -> None:
    write_module("mod.py", 'def move(sender: "list[", recipient):\n    pass\n')
    config = DetectorConfig(warnings=("Ignoring [swap] beta='x'; using 0.667.",))
    report = SwapEngine(project_root=tmp_path, config=config).scan()
    assert report.warnings[0].startswith("Ignoring [swap] beta")
    assert report.warnings[1].startswith("mod.py: Failed to parse type hint")


def test_report_patch_is_relative_to_root(tmp_path: Path, write_module) -> None:
    write_module("pkg/pay.py", SWAPPED)
    report = SwapEngine(project_root=tmp_path).scan()
    patch = report.patch()
    assert patch.startswith("--- pkg/pay.py\n+++ pkg/pay.py\n")
    assert "-    transfer(recipient, sender)" in patch
    assert "+    transfer(sender, recipient)" in patch


def test_apply_edits_rewrites_files(tmp_path: Path, write_module) -> None:
    swapped = write_module("pay.py", SWAPPED)
    report = SwapEngine(project_root=tmp_path).scan()
    written = apply_edits(report.edits)
    assert written == [str(swapped.resolve())]
    assert swapped.read_text(encoding="utf-8") == CLEAN.lstrip()
    rescan = SwapEngine(project_root=tmp_path).scan()
    assert rescan.findings == []
    assert rescan.edits == []


def test_fix_preserves_crlf_line_endings(tmp_path: Path) -> None:
    path = tmp_path / "pay.py"
    path.write_bytes(SWAPPED.lstrip().replace("\n", "\r\n").encode("utf-8"))
    report = SwapEngine(project_root=tmp_path).scan([path])
    assert len(report.findings) == 1
    assert "-    transfer(recipient, sender)\r" in report.patch()
    apply_edits(report.edits)
    assert path.read_bytes() == CLEAN.lstrip().replace("\n", "\r\n").encode("utf-8")

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, Iterator

import libcst as cst

from argswap.config import DetectorConfig
from argswap.frontend import analyze_source
from argswap.model import Finding, TextEdit
from argswap.patch import PatchFileDestination


@dataclass
class ScanReport:
    root: Path
    findings: list[Finding] = field(default_factory=list)
    edits: list[TextEdit] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    originals: dict[str, str] = field(default_factory=dict)

    def patch(self) -> str:
        destination = PatchFileDestination(self.root, self.root)
        for edit in self.edits:
            destination.write_diff(
                Path(edit.path), self.originals[edit.path], edit.replacement
            )
        return destination.patch_file()


class SwapEngine:
    def __init__(
        self, project_root: Path | None = None, config: DetectorConfig | None = None
    ) -> None:
        self.project_root = (project_root if project_root is not None else Path.cwd()).resolve()
        self.config = config or DetectorConfig()

    def scan(self, paths: Iterable[Path] = ()) -> ScanReport:
        report = ScanReport(root=self.project_root, warnings=list(self.config.warnings))
        targets = list(paths) or [self.project_root]
        for path in self._iter_python_files(targets):
            self._scan_file(path, report)
        return report

    def _resolve(self, path: Path) -> Path:
        if not path.is_absolute():
            path = self.project_root / path
        return path.resolve()

    def _is_excluded(self, path: Path) -> bool:
        try:
            relative = path.relative_to(self.project_root).as_posix()
        except ValueError:
            relative = path.as_posix()
        parts = relative.split("/")
        for pattern in self.config.exclude:
            if fnmatch(relative, pattern) or any(fnmatch(part, pattern) for part in parts):
                return True
            if relative.startswith(pattern.rstrip("/") + "/"):
                return True
        return False

    def _iter_python_files(self, targets: list[Path]) -> Iterator[Path]:
        seen: set[Path] = set()
        for target in targets:
            resolved = self._resolve(target)
            if resolved.is_dir():
                candidates = sorted(resolved.rglob("*.py"))
            else:
                candidates = [resolved]
            for path in candidates:
                if path in seen or self._is_excluded(path):
                    continue
                seen.add(path)
                yield path

    def _scan_file(self, path: Path, report: ScanReport) -> None:
        try:
            source = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            report.errors.append(f"Failed to read {path}: {exc}")
            return
        try:
            analysis = analyze_source(source, path=self._display_path(path), config=self.config)
        except cst.ParserSyntaxError as exc:
            report.errors.append(f"LibCST parse failed for {path}: {exc}")
            return
        report.findings.extend(analysis.findings)
        report.warnings.extend(f"{analysis.path}: {warning}" for warning in analysis.warnings)
        if not analysis.changed:
            return
        end_line = len(source.splitlines())
        report.originals[str(path)] = source
        report.edits.append(
            TextEdit(
                path=str(path),
                start=(0, 0),
                end=(end_line, 0),
                replacement=analysis.source,
            )
        )

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.project_root).as_posix()
        except ValueError:
            return path.as_posix()


def apply_edits(edits: Iterable[TextEdit]) -> list[str]:
    """Write whole-file edits back to disk; returns the paths written."""
    written: list[str] = []
    for edit in edits:
        Path(edit.path).write_text(edit.replacement, encoding="utf-8", newline="")
        written.append(edit.path)
    return written

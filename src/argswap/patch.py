"""Unified-diff patch output for suggested fixes."""

from __future__ import annotations

import difflib
from pathlib import Path

_CONTEXT_LINES = 2


class PatchFileDestination:
    """Collects per-file unified diffs and renders them as one patch.

    Diffs are keyed by the original file's path so the patch comes out in path
    order no matter which order files were written in.
    """

    def __init__(self, base_dir: Path, root_path: Path) -> None:
        self.base_dir = Path(base_dir)
        self.root_path = Path(root_path)
        self._diff_by_file: dict[str, str] = {}

    def write_file(self, path: str | Path, source_text: str) -> None:
        original_path = self.root_path / path
        old_source = original_path.read_bytes().decode("utf-8")
        self.write_diff(path, old_source, source_text)

    def write_diff(self, path: str | Path, old_source: str, new_source: str) -> None:
        if old_source == new_source:
            return
        original_path = self.root_path / path
        relative = self._relativize(original_path)
        # Split on "\n" only; a trailing newline yields a final empty line.
        diff = difflib.unified_diff(
            old_source.split("\n"),
            new_source.split("\n"),
            fromfile=relative,
            tofile=relative,
            n=_CONTEXT_LINES,
            lineterm="",
        )
        self._diff_by_file[str(original_path)] = "\n".join(diff)

    def _relativize(self, path: Path) -> str:
        try:
            return path.resolve().relative_to(self.base_dir.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def patch_file(self) -> str:
        return "\n".join(self._diff_by_file[key] for key in sorted(self._diff_by_file))

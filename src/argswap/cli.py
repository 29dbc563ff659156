from __future__ import annotations

from pathlib import Path
from typing import List, Optional
import sys

import typer

from argswap.config import detector_config, swap_defaults
from argswap.engine import ScanReport, SwapEngine, apply_edits
from argswap.exceptions import ConfigError
from argswap.naming import similarity, split_terms
from argswap.schema import scan_response

app = typer.Typer(add_completion=False, help="Detect swapped call arguments.")

_STDOUT_ALIAS = "-"


def _write_patch(target: Path, payload: str) -> None:
    text = payload if not payload or payload.endswith("\n") else payload + "\n"
    if str(target) == _STDOUT_ALIAS:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    target.write_text(text, encoding="utf-8", newline="")


def _emit_diagnostics(report: ScanReport) -> None:
    for warning in report.warnings:
        typer.echo(f"warning: {warning}", err=True)
    for error in report.errors:
        typer.secho(f"error: {error}", err=True, fg=typer.colors.RED)


@app.command()
def check(
    paths: Optional[List[Path]] = typer.Argument(None, help="Files or directories to scan."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    beta: Optional[float] = typer.Option(
        None, "--beta", help="Minimum similarity gain required to propose a swap."
    ),
    disallow: Optional[List[str]] = typer.Option(
        None, "--disallow", help="Extra parameter-name pair to ignore, as first:second."
    ),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude"),
    patch: Optional[Path] = typer.Option(
        None, "--patch", help="Write a unified diff of all fixes ('-' for stdout)."
    ),
    fix: bool = typer.Option(False, "--fix", help="Rewrite files in place."),
    json_output: bool = typer.Option(False, "--json"),
    fail_on_findings: bool = typer.Option(
        True, "--fail-on-findings/--no-fail-on-findings"
    ),
) -> None:
    """Report calls whose arguments look swapped relative to the parameters."""
    section = swap_defaults(root=root, config_path=config)
    try:
        detector = detector_config(
            section, beta=beta, extra_pairs=disallow or (), exclude=exclude or ()
        )
    except ConfigError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2)
    engine = SwapEngine(project_root=root, config=detector)
    report = engine.scan([path.resolve() for path in paths or []])

    if json_output:
        response = scan_response(report, include_patch=patch is not None)
        typer.echo(response.model_dump_json(indent=2))
    else:
        # Keep stdout for the patch when it is written there.
        to_stderr = patch is not None and str(patch) == _STDOUT_ALIAS
        for finding in report.findings:
            typer.echo(finding.render(), err=to_stderr)
        if report.findings:
            typer.echo(f"{len(report.findings)} suspicious call(s) found.", err=to_stderr)
    _emit_diagnostics(report)

    if patch is not None and not (json_output and str(patch) == _STDOUT_ALIAS):
        _write_patch(patch, report.patch())
    if fix:
        for path in apply_edits(report.edits):
            typer.echo(f"Rewrote {path}", err=True)

    if report.findings and fail_on_findings and not fix:
        raise typer.Exit(code=1)


@app.command()
def explain(first: str, second: str) -> None:
    """Show how two names are tokenized and how similar they are."""
    typer.echo(f"{first}: {', '.join(split_terms(first)) or '(no terms)'}")
    typer.echo(f"{second}: {', '.join(split_terms(second)) or '(no terms)'}")
    typer.echo(f"similarity: {similarity(first, second):.3f}")

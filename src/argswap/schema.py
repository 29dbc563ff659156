from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel

from argswap.engine import ScanReport
from argswap.model import Finding


class SwapProposalDTO(BaseModel):
    first: int
    second: int


class FindingDTO(BaseModel):
    path: str
    line: int
    column: int
    callee: str
    original: str
    replacement: str
    message: str
    proposals: List[SwapProposalDTO]


class ScanResponseDTO(BaseModel):
    findings: List[FindingDTO] = []
    warnings: List[str] = []
    errors: List[str] = []
    patch: Optional[str] = None


def finding_dto(finding: Finding) -> FindingDTO:
    return FindingDTO(
        path=finding.path,
        line=finding.line,
        column=finding.column,
        callee=finding.callee,
        original=finding.original,
        replacement=finding.fix.replacement,
        message=finding.message,
        proposals=[
            SwapProposalDTO(first=proposal.first, second=proposal.second)
            for proposal in finding.proposals
        ],
    )


def scan_response(report: ScanReport, *, include_patch: bool = False) -> ScanResponseDTO:
    return ScanResponseDTO(
        findings=[finding_dto(finding) for finding in report.findings],
        warnings=list(report.warnings),
        errors=list(report.errors),
        patch=report.patch() if include_patch else None,
    )

from __future__ import annotations

"""Controlled errors for the auto-healer pipeline.

Containment levels:
- CheckError: one probe failed; recorded in the report, the run continues.
- RemediationError: a fix failed or did not verify; the issue is escalated.
- PipelineError: nothing above contained it; the run is FAILED.
"""


class AuditError(RuntimeError):
    """Base error for the health pipeline."""


class CheckError(AuditError):
    """Raised (or wrapped) when a check module's own queries fail."""

    def __init__(self, check_name: str, message: str) -> None:
        super().__init__(f"{check_name}: {message}")
        self.check_name = check_name


class ProbeUnavailable(CheckError):
    """Raised when a probe has no implementation for the connected dialect."""


class RemediationError(AuditError):
    """Raised when a corrective mutation fails or does not verify."""


class PipelineError(AuditError):
    """Raised for faults that escape per-check and per-fix containment."""


class IssueFinalizedError(AuditError):
    """Raised when a finalized issue is mutated."""

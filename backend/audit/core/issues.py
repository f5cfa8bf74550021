"""Issue taxonomy for the auto-healer.

Checks emit `Finding` values (what was observed). The policy table turns each
finding into an `Issue` (how serious it is, whether it may be fixed). Issues
are mutable only until the report that holds them is finalized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from audit.core.errors import IssueFinalizedError


class Severity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.CRITICAL: 3,
}


class ReportStatus(str, Enum):
    HEALTHY = "HEALTHY"
    ISSUES_FOUND = "ISSUES_FOUND"
    CRITICAL = "CRITICAL"


class Resolution(str, Enum):
    """Where an issue ends up once the run completes."""

    FIXED = "FIXED"
    MANUAL = "MANUAL"
    INFORMATIONAL = "INFORMATIONAL"


@dataclass(frozen=True, slots=True)
class Finding:
    """Raw observation produced by a check.

    `targets` holds the ids of the records the finding applies to (empty for
    count-only findings); `params` carries values a remediation needs, such as
    the age cutoff that was queried.
    """

    key: str
    description: str
    affected: int = 0
    location: str | None = None
    targets: tuple[str, ...] = ()
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Issue:
    key: str
    severity: Severity
    category: str
    description: str
    location: str
    auto_fixable: bool
    fixed: bool = False
    affected: int = 0
    resolution: Resolution | None = None
    _finalized: bool = field(default=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "_finalized" and getattr(self, "_finalized", False):
            raise IssueFinalizedError(f"Issue {self.key!r} is finalized; {name} is read-only.")
        object.__setattr__(self, name, value)

    def mark_fixed(self) -> None:
        if not self.auto_fixable:
            raise IssueFinalizedError(f"Issue {self.key!r} is not auto-fixable and cannot be marked fixed.")
        self.fixed = True
        self.resolution = Resolution.FIXED

    def finalize(self) -> None:
        self._finalized = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "severity": self.severity.value,
            "category": self.category,
            "description": self.description,
            "location": self.location,
            "auto_fixable": self.auto_fixable,
            "fixed": self.fixed,
            "affected": self.affected,
            "resolution": self.resolution.value if self.resolution else None,
        }

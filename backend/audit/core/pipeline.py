"""Diagnostic pipeline (auto-healer).

INIT -> RUNNING -> AGGREGATING -> NOTIFYING -> DONE, with FAILED reachable
from any state when a fault escapes per-check and per-fix containment.

Checks run strictly in declaration order over one session. Each check is
invoked through `isolate`, which turns a probe's exception into a
CheckResult carrying the error instead of findings; the pipeline merges each
result into an explicit accumulator. A FAILED run is reported through the
dispatcher's critical-failure path and is not retried.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from audit.checks.policies import POLICIES, FindingPolicy
from audit.checks.registry import REGISTERED_CHECKS, RegisteredCheck
from audit.core.config import AuditThresholds
from audit.core.errors import CheckError, PipelineError, ProbeUnavailable
from audit.core.issues import Finding, Issue, Resolution, Severity
from audit.core.remediation import execute_remediation
from audit.report.health_report import CheckErrorRecord, HealthReport, finalize_report
from notify.dispatcher import DispatchOutcome, NotificationDispatcher
from notify.notices import HealthReportNotice


UTC = timezone.utc
BOT_NAME = "Auto-Healer Bot"

logger = logging.getLogger("agentpro.audit")

SessionFactory = Callable[[], Session]
Clock = Callable[[], datetime]


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


class PipelineState(str, Enum):
    INIT = "INIT"
    RUNNING = "RUNNING"
    AGGREGATING = "AGGREGATING"
    NOTIFYING = "NOTIFYING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(slots=True)
class CheckResult:
    name: str
    findings: list[Finding] = field(default_factory=list)
    error: Optional[CheckError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def isolate(check: RegisteredCheck, db: Session, *, now: datetime, thresholds: AuditThresholds) -> CheckResult:
    """Run one check; any exception it raises becomes the result's error."""
    try:
        findings = list(check.run(db, now=now, thresholds=thresholds))
    except Exception as ex:  # noqa: BLE001
        db.rollback()
        error = ex if isinstance(ex, CheckError) else CheckError(check.name, f"{type(ex).__name__}: {ex}")
        event = "audit_check_unavailable" if isinstance(ex, ProbeUnavailable) else "audit_check_failed"
        _log({"event": event, "name": check.name, "error_type": type(ex).__name__, "error": str(ex)})
        return CheckResult(name=check.name, error=error)
    _log({"event": "audit_check", "name": check.name, "findings": len(findings)})
    return CheckResult(name=check.name, findings=findings)


@dataclass(slots=True)
class ReportAccumulator:
    issues_found: list[Issue] = field(default_factory=list)
    issues_fixed: list[Issue] = field(default_factory=list)
    manual_action_required: list[Issue] = field(default_factory=list)
    check_errors: list[CheckErrorRecord] = field(default_factory=list)

    def merge(self, result: CheckResult, issues: Sequence[Issue]) -> None:
        if result.error is not None:
            self.check_errors.append(
                CheckErrorRecord(check=result.name, error_type=type(result.error).__name__, message=str(result.error))
            )
        for issue in issues:
            self.issues_found.append(issue)
            if issue.resolution is Resolution.FIXED:
                self.issues_fixed.append(issue)
            elif issue.resolution is Resolution.MANUAL:
                self.manual_action_required.append(issue)


@dataclass(slots=True)
class PipelineOutcome:
    state: PipelineState
    report: Optional[HealthReport] = None
    error: Optional[BaseException] = None
    dispatch: Optional[DispatchOutcome] = None

    @property
    def success(self) -> bool:
        return self.state is PipelineState.DONE


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class DiagnosticPipeline:
    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        dispatcher: Optional[NotificationDispatcher] = None,
        checks: Sequence[RegisteredCheck] = REGISTERED_CHECKS,
        policies: Mapping[str, FindingPolicy] = POLICIES,
        thresholds: Optional[AuditThresholds] = None,
        interval_days: int = 3,
        clock: Optional[Clock] = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._checks = tuple(checks)
        self._policies = policies
        self._thresholds = thresholds or AuditThresholds()
        self._interval_days = interval_days
        self._clock = clock or _utcnow
        self.state = PipelineState.INIT
        self.history: list[PipelineState] = [PipelineState.INIT]

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)
        _log({"event": "audit_pipeline_state", "state": state.value})

    def _resolve(self, db: Session, finding: Finding, *, now: datetime) -> Issue:
        policy = self._policies.get(finding.key)
        if policy is None:
            raise PipelineError(f"No finding policy registered for {finding.key!r}.")
        issue = policy.to_issue(finding)
        if policy.remediation is not None:
            return execute_remediation(db, issue, finding, policy.remediation, now=now)
        if policy.escalate or issue.severity is Severity.CRITICAL:
            issue.resolution = Resolution.MANUAL
        else:
            issue.resolution = Resolution.INFORMATIONAL
        return issue

    def _scan(self, now: datetime) -> ReportAccumulator:
        acc = ReportAccumulator()
        db = self._session_factory()
        try:
            for check in self._checks:
                result = isolate(check, db, now=now, thresholds=self._thresholds)
                issues = [self._resolve(db, f, now=now) for f in result.findings]
                acc.merge(result, issues)
        finally:
            db.close()
        return acc

    def run(self) -> PipelineOutcome:
        now = self._clock()
        _log({"event": "audit_pipeline_started", "checks": [c.name for c in self._checks]})
        try:
            self._enter(PipelineState.RUNNING)
            acc = self._scan(now)

            self._enter(PipelineState.AGGREGATING)
            report = finalize_report(
                now=now,
                issues_found=acc.issues_found,
                issues_fixed=acc.issues_fixed,
                manual_action_required=acc.manual_action_required,
                total_checks=len(self._checks),
                check_errors=acc.check_errors,
            )

            self._enter(PipelineState.NOTIFYING)
            dispatch = None
            if self._dispatcher is not None:
                dispatch = self._dispatcher.dispatch(
                    HealthReportNotice(report, bot_name=BOT_NAME, interval_days=self._interval_days)
                )

            self._enter(PipelineState.DONE)
            _log(
                {
                    "event": "audit_pipeline_completed",
                    "status": report.status.value,
                    **report.stats.to_dict(),
                }
            )
            return PipelineOutcome(state=PipelineState.DONE, report=report, dispatch=dispatch)
        except Exception as ex:  # noqa: BLE001
            self._enter(PipelineState.FAILED)
            logger.error(
                json.dumps({"event": "audit_pipeline_failed", "error_type": type(ex).__name__, "error": str(ex)})
            )
            dispatch = self._dispatcher.dispatch_failure(ex) if self._dispatcher is not None else None
            return PipelineOutcome(state=PipelineState.FAILED, error=ex, dispatch=dispatch)

"""Remediation executor.

A remediation is a pair of callables declared in the policy table:
- `apply` performs the corrective mutation, committing per record (or per
  small batch), never as one cross-record transaction;
- `verify` re-queries and confirms none of the finding's targets still match.

`execute_remediation` is the failure boundary: an exception from either step,
or a failed verification, rolls the session back and escalates the issue to
manual action. Rows already committed stay fixed; the next run simply finds
fewer of them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from audit.core.errors import RemediationError
from audit.core.issues import Finding, Issue, Resolution


logger = logging.getLogger("agentpro.audit")

DELETE_BATCH_SIZE = 500


class ApplyFn(Protocol):
    def __call__(self, db: Session, finding: Finding, *, now: datetime) -> int: ...


class VerifyFn(Protocol):
    def __call__(self, db: Session, finding: Finding, *, now: datetime) -> bool: ...


@dataclass(frozen=True, slots=True)
class Remediation:
    description: str
    apply: ApplyFn
    verify: VerifyFn


def _log(event: dict) -> None:
    logger.info(json.dumps(event, ensure_ascii=False, default=str))


def delete_in_batches(db: Session, model: Any, condition: Any, *, batch_size: int = DELETE_BATCH_SIZE) -> int:
    """Delete rows matching `condition` in id batches, one commit per batch."""
    deleted = 0
    while True:
        ids = list(db.execute(select(model.id).where(condition).limit(batch_size)).scalars().all())
        if not ids:
            return deleted
        deleted += db.execute(delete(model).where(model.id.in_(ids))).rowcount or 0
        db.commit()


def execute_remediation(
    db: Session,
    issue: Issue,
    finding: Finding,
    remediation: Remediation,
    *,
    now: datetime,
    on_error: Callable[[Issue, Exception], None] | None = None,
) -> Issue:
    """Apply and verify one fix; route the issue to FIXED or MANUAL."""
    if not issue.auto_fixable:
        raise RemediationError(f"Issue {issue.key!r} is not auto-fixable.")

    try:
        changed = remediation.apply(db, finding, now=now)
        if not remediation.verify(db, finding, now=now):
            raise RemediationError(f"{issue.key}: verification failed after {remediation.description}")
    except Exception as ex:  # noqa: BLE001
        db.rollback()
        issue.resolution = Resolution.MANUAL
        _log(
            {
                "event": "remediation_failed",
                "issue": issue.key,
                "action": remediation.description,
                "error_type": type(ex).__name__,
                "error": str(ex),
            }
        )
        if on_error is not None:
            on_error(issue, ex)
        return issue

    issue.mark_fixed()
    _log({"event": "remediation_applied", "issue": issue.key, "action": remediation.description, "changed": changed})
    return issue

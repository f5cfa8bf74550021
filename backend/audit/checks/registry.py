"""Registered check modules, in report order."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy.orm import Session

from audit.checks import (
    access_control_check,
    account_integrity_check,
    connectivity_check,
    log_hygiene_check,
    performance_check,
    referential_integrity_check,
    resource_integrity_check,
)
from audit.core.config import AuditThresholds
from audit.core.issues import Finding


class CheckFn(Protocol):
    def __call__(self, db: Session, *, now: datetime, thresholds: AuditThresholds) -> list[Finding]: ...


@dataclass(frozen=True, slots=True)
class RegisteredCheck:
    name: str
    run: CheckFn


REGISTERED_CHECKS: tuple[RegisteredCheck, ...] = (
    RegisteredCheck(connectivity_check.NAME, connectivity_check.run),
    RegisteredCheck(referential_integrity_check.NAME, referential_integrity_check.run),
    RegisteredCheck(resource_integrity_check.NAME, resource_integrity_check.run),
    RegisteredCheck(account_integrity_check.NAME, account_integrity_check.run),
    RegisteredCheck(log_hygiene_check.NAME, log_hygiene_check.run),
    RegisteredCheck(performance_check.NAME, performance_check.run),
    RegisteredCheck(access_control_check.NAME, access_control_check.run),
)

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlalchemy.orm import Session

from audit.checks.registry import REGISTERED_CHECKS, RegisteredCheck
from audit.core.errors import CheckError
from audit.core.issues import Finding, ReportStatus, Resolution
from audit.core.pipeline import (
    BOT_NAME,
    CheckResult,
    DiagnosticPipeline,
    PipelineState,
    ReportAccumulator,
    isolate,
)
from audit.core.config import AuditThresholds
from audit.job.run_auto_healer import CADENCE_KEY, build_pipeline, run_auto_healer
from audit.report.health_report import aggregate, build_report, status_for
from notify.channel import RecordingChannel
from notify.config import NotifySettings
from notify.dispatcher import DispatchKind
from app.models.user import User, UserRole
from conftest import NOW, add_admin, add_file, add_folder, add_user


@pytest.fixture()
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture()
def make_pipeline(session_factory, channel: RecordingChannel, tmp_path: Path):
    settings = NotifySettings(recipient="ops@example.com", cadence_dir=tmp_path / "cadence")

    def _make(**kwargs) -> DiagnosticPipeline:
        pipeline = build_pipeline(session_factory=session_factory, settings=settings, channel=channel, **kwargs)
        pipeline._clock = lambda: NOW
        return pipeline

    return _make


def _keys(issues) -> list[str]:
    return [i.key for i in issues]


def test_healthy_store_sends_routine_status_once(db_session: Session, make_pipeline, channel: RecordingChannel):
    add_admin(db_session)

    first = make_pipeline().run()
    second = make_pipeline().run()

    assert first.success
    assert first.report.status is ReportStatus.HEALTHY
    assert first.report.issues_found == []
    assert first.report.stats.total_checks == len(REGISTERED_CHECKS)
    assert first.dispatch.kind is DispatchKind.STATUS
    assert second.dispatch.kind is DispatchKind.SUPPRESSED
    assert len(channel.sent) == 1
    assert "all systems healthy" in channel.sent[0].subject
    assert channel.sent[0].recipient == "ops@example.com"


def test_server_probe_gap_is_a_check_error_not_an_issue(db_session: Session, make_pipeline):
    add_admin(db_session)
    outcome = make_pipeline().run()

    assert [e.check for e in outcome.report.check_errors] == ["performance_check"]
    assert outcome.report.check_errors[0].error_type == "ProbeUnavailable"
    assert outcome.report.status is ReportStatus.HEALTHY


def test_orphaned_clients_are_fixed_and_alerted(db_session: Session, make_pipeline, channel: RecordingChannel):
    add_admin(db_session)
    add_user(db_session, email="a@example.com", agent_id="gone-1")
    add_user(db_session, email="b@example.com", agent_id="gone-2")

    outcome = make_pipeline().run()
    report = outcome.report

    assert report.status is ReportStatus.ISSUES_FOUND
    assert _keys(report.issues_found) == ["orphaned_clients"]
    assert _keys(report.issues_fixed) == ["orphaned_clients"]
    assert report.manual_action_required == []
    assert report.issues_found[0].affected == 2
    assert outcome.dispatch.kind is DispatchKind.ALERT
    assert "1 issue(s) found" in channel.sent[0].subject

    again = make_pipeline().run()
    assert again.report.issues_found == []
    assert again.report.status is ReportStatus.HEALTHY


def test_orphaned_clients_keep_former_agent_and_spare_assigned_ones(db_session: Session, make_pipeline):
    add_admin(db_session)
    agent = add_user(db_session, email="agent@example.com", role=UserRole.AGENT)
    first = add_user(db_session, email="c1@example.com", agent_id="gone-1")
    second = add_user(db_session, email="c2@example.com", agent_id="gone-2")
    kept = add_user(db_session, email="c3@example.com", agent_id=agent.id)

    report = make_pipeline().run().report

    assert report.issues_fixed[0].key == "orphaned_clients"
    assert report.issues_fixed[0].affected == 2
    db_session.expire_all()
    for client, former in ((first, "gone-1"), (second, "gone-2")):
        stored = db_session.get(User, client.id)
        assert stored.agent_id is None
        assert stored.former_agent_name == f"Agent ID: {former}"
    stored = db_session.get(User, kept.id)
    assert stored.agent_id == agent.id
    assert stored.former_agent_name is None


def test_zero_admins_is_critical_and_manual(db_session: Session, make_pipeline, channel: RecordingChannel):
    add_user(db_session, email="client@example.com")

    outcome = make_pipeline().run()
    report = outcome.report

    assert report.status is ReportStatus.CRITICAL
    assert _keys(report.manual_action_required) == ["no_admins"]
    assert report.issues_fixed == []
    assert report.manual_action_required[0].resolution is Resolution.MANUAL
    assert outcome.dispatch.kind is DispatchKind.ALERT
    assert len(channel.sent) == 1


def test_every_issue_lands_in_at_most_one_list(db_session: Session, make_pipeline):
    add_user(db_session, email=None, agent_id="gone")
    add_folder(db_session, user_id="gone")
    owner = add_user(db_session, email="owner@example.com")
    folder = add_folder(db_session, user_id=owner.id)
    add_file(db_session, folder_id=folder.id, url="https://x/dup")
    add_file(db_session, folder_id=folder.id, url="https://x/dup")

    report = make_pipeline().run().report

    fixed = {id(i) for i in report.issues_fixed}
    manual = {id(i) for i in report.manual_action_required}
    assert not fixed & manual
    assert (fixed | manual) <= {id(i) for i in report.issues_found}
    informational = [i for i in report.issues_found if id(i) not in fixed | manual]
    assert _keys(informational) == ["duplicate_file_urls"]
    assert informational[0].resolution is Resolution.INFORMATIONAL
    assert report.stats.issues_found == len(report.issues_found)
    assert report.stats.issues_fixed == len(report.issues_fixed)
    assert report.stats.manual_required == len(report.manual_action_required)


def test_second_run_finds_nothing_left_to_fix(db_session: Session, make_pipeline):
    add_admin(db_session)
    folder = add_folder(db_session, user_id="gone")
    add_file(db_session, folder_id=folder.id)
    add_file(db_session, folder_id="also-gone")
    add_file(db_session, folder_id=folder.id, url=None)

    first = make_pipeline().run().report
    second = make_pipeline().run().report

    assert first.stats.issues_fixed >= 2
    assert second.issues_fixed == []
    assert second.issues_found == []


def test_failing_check_is_isolated(db_session: Session, session_factory):
    add_user(db_session, email="client@example.com")

    def broken(db, *, now, thresholds):
        raise RuntimeError("probe exploded")

    checks = (RegisteredCheck("broken_check", broken),) + REGISTERED_CHECKS
    outcome = DiagnosticPipeline(session_factory, checks=checks, clock=lambda: NOW).run()

    assert outcome.success
    assert "broken_check" in [e.check for e in outcome.report.check_errors]
    assert outcome.report.stats.total_checks == len(checks)
    # Checks after the broken one still ran.
    assert _keys(outcome.report.manual_action_required) == ["no_admins"]
    assert outcome.report.status is ReportStatus.CRITICAL


def test_isolate_wraps_foreign_exceptions(db_session: Session):
    def broken(db, *, now, thresholds):
        raise ValueError("bad row")

    result = isolate(RegisteredCheck("x", broken), db_session, now=NOW, thresholds=AuditThresholds())

    assert not result.ok
    assert isinstance(result.error, CheckError)
    assert result.error.check_name == "x"
    assert "ValueError" in str(result.error)


def test_accumulator_records_errors_and_routes_issues():
    acc = ReportAccumulator()
    acc.merge(CheckResult(name="a", error=CheckError("a", "down")), [])
    assert [(e.check, e.error_type) for e in acc.check_errors] == [("a", "CheckError")]
    assert acc.issues_found == []


def test_unknown_finding_fails_the_run_and_sends_critical_notice(
    db_session: Session, session_factory, channel: RecordingChannel, make_pipeline
):
    def rogue(db, *, now, thresholds):
        return [Finding(key="unregistered_key", description="?")]

    template = make_pipeline()
    pipeline = DiagnosticPipeline(
        session_factory,
        dispatcher=template._dispatcher,
        checks=(RegisteredCheck("rogue", rogue),),
        clock=lambda: NOW,
    )
    outcome = pipeline.run()

    assert outcome.state is PipelineState.FAILED
    assert not outcome.success
    assert outcome.report is None
    assert pipeline.history == [PipelineState.INIT, PipelineState.RUNNING, PipelineState.FAILED]
    assert outcome.dispatch.kind is DispatchKind.CRITICAL_FAILURE
    assert channel.sent[0].subject == f"\U0001f534 Critical error in {BOT_NAME}"


def test_state_history_of_a_clean_run(db_session: Session, make_pipeline):
    add_admin(db_session)
    pipeline = make_pipeline()
    pipeline.run()
    assert pipeline.history == [
        PipelineState.INIT,
        PipelineState.RUNNING,
        PipelineState.AGGREGATING,
        PipelineState.NOTIFYING,
        PipelineState.DONE,
    ]


def test_status_derivation_is_worst_severity():
    from audit.checks.policies import policy_for

    info = policy_for("duplicate_file_urls").to_issue(Finding(key="duplicate_file_urls", description="x"))
    warn = policy_for("excess_admins").to_issue(Finding(key="excess_admins", description="x"))
    crit = policy_for("no_admins").to_issue(Finding(key="no_admins", description="x"))

    assert status_for([]) is ReportStatus.HEALTHY
    assert status_for([info]) is ReportStatus.ISSUES_FOUND
    assert status_for([info, warn]) is ReportStatus.ISSUES_FOUND
    assert status_for([warn, crit]) is ReportStatus.CRITICAL
    status, stats = aggregate([info, crit], [], [crit], total_checks=7)
    assert status is ReportStatus.CRITICAL
    assert stats.to_dict() == {"total_checks": 7, "issues_found": 2, "issues_fixed": 0, "manual_required": 1}


def test_run_writes_report_file(db_session: Session, make_pipeline, tmp_path: Path):
    add_admin(db_session)
    path = tmp_path / "out" / "health_report.json"

    outcome = run_auto_healer(make_pipeline(), report_path=path)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == build_report(outcome.report)
    assert payload["status"] == "HEALTHY"
    assert set(payload["stats"]) == {"total_checks", "issues_found", "issues_fixed", "manual_required"}


def test_cadence_key_is_per_bot(make_pipeline, tmp_path: Path, db_session: Session):
    add_admin(db_session)
    make_pipeline().run()
    assert (tmp_path / "cadence" / f"{CADENCE_KEY}.txt").exists()


def test_cli_dry_run_renders_without_sending(engine, db_session: Session, tmp_path: Path):
    from audit.job.run_auto_healer import main

    add_admin(db_session)
    path = tmp_path / "report.json"

    assert main(["--dry-run", "--report", str(path)]) == 0
    assert json.loads(path.read_text(encoding="utf-8"))["status"] == "HEALTHY"

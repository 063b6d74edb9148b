import logging
from datetime import timedelta

from app.services.scheduler import (
    OrganizationOutcome,
    execute_scheduled_pairing,
    format_summary,
    summarize_outcomes,
)


def _ended(store, organization_id, period_id, now):
    store.add_period(organization_id, period_id, now - timedelta(days=22), days=21)


def test_summarize_outcomes_is_a_pure_fold():
    outcomes = [
        OrganizationOutcome("org-1", "succeeded", pairs_created=3),
        OrganizationOutcome("org-2", "skipped"),
        OrganizationOutcome("org-3", "failed", message="Scaling error"),
        OrganizationOutcome("org-4", "failed", message="Timeout"),
        OrganizationOutcome("org-5", "succeeded", pairs_created=2),
    ]
    summary = summarize_outcomes(outcomes)
    assert (summary.processed, summary.succeeded, summary.skipped, summary.failed) == (5, 2, 1, 2)
    assert summary.pairs_created == 5
    assert summary.failures == [("org-3", "Scaling error"), ("org-4", "Timeout")]
    assert format_summary(summary) == "processed=5 successes=2 skipped=1 failures=2 pairsCreated=5"
    assert summarize_outcomes(outcomes) == summary


def test_no_configured_organizations(uow_factory, caplog):
    caplog.set_level(logging.DEBUG)
    summary = execute_scheduled_pairing(uow_factory=uow_factory)
    assert summary.processed == 0
    assert "Scheduled pairing cron found no organizations" in caplog.text


def test_only_ended_periods_are_rolled_over(store, uow_factory, now):
    store.add_organization("org-ended")
    store.add_users("org-ended", ["a1", "a2", "a3", "a4"])
    _ended(store, "org-ended", "old-period", now)

    store.add_organization("org-running")
    store.add_users("org-running", ["b1", "b2"])
    store.add_period("org-running", "running-period", now - timedelta(days=3))

    store.add_organization("org-unconfigured", with_settings=False)
    store.add_users("org-unconfigured", ["c1", "c2"])

    summary = execute_scheduled_pairing(uow_factory=uow_factory, now=now)

    assert (summary.processed, summary.succeeded, summary.skipped, summary.failed) == (2, 1, 1, 0)
    assert summary.pairs_created == 2
    statuses = {p["id"]: p["status"] for p in store.data["periods"]}
    assert statuses["old-period"] == "completed"
    assert statuses["running-period"] == "active"
    new_periods = [p for p in store.data["periods"] if p["organization_id"] == "org-ended" and p["id"] != "old-period"]
    assert len(new_periods) == 1 and new_periods[0]["status"] == "active"
    assert all(p["organization_id"] != "org-unconfigured" for p in store.data["periods"])


def test_organization_without_period_gets_its_first_cycle(store, uow_factory, now):
    store.add_organization("org-1")
    store.add_users("org-1", ["u1", "u2", "u3"])

    summary = execute_scheduled_pairing(uow_factory=uow_factory, now=now)

    assert summary.succeeded == 1
    assert summary.pairs_created == 1
    assert len(store.data["periods"]) == 1


def test_failures_are_isolated_and_reported(store, uow_factory, now, caplog):
    store.add_organization("org-1")
    store.add_users("org-1", ["u1", "u2", "u3", "u4"])
    _ended(store, "org-1", "org-1-old", now)

    store.add_organization("org-2")
    del store.data["organizations"]["org-2"]

    store.add_organization("org-3")
    store.add_users("org-3", ["solo"])
    _ended(store, "org-3", "org-3-old", now)

    store.add_organization("org-4")
    store.add_users("org-4", ["w1", "w2"])

    summary = execute_scheduled_pairing(uow_factory=uow_factory, now=now)

    assert (summary.processed, summary.succeeded, summary.failed) == (4, 2, 2)
    assert summary.pairs_created == 3
    assert [org for org, _ in summary.failures] == ["org-2", "org-3"]

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any("org-2" in r.getMessage() for r in errors)
    assert any("org-3" in r.getMessage() for r in errors)
    assert "processed=4 successes=2 skipped=0 failures=2 pairsCreated=3" in caplog.text
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING and "failed organizations" in r.getMessage()]
    assert len(warnings) == 1
    assert "org-2: Organization org-2 not found; org-3: Not enough eligible users" in warnings[0]


def test_aborted_cycle_is_retried_on_next_run(store, uow_factory, now):
    store.add_organization("org-3")
    store.add_users("org-3", ["solo"])
    _ended(store, "org-3", "org-3-old", now)

    first = execute_scheduled_pairing(uow_factory=uow_factory, now=now)
    assert first.failed == 1
    assert [p["status"] for p in store.data["periods"]] == ["completed"]

    store.add_users("org-3", ["friend"])
    second = execute_scheduled_pairing(uow_factory=uow_factory, now=now + timedelta(days=7))
    assert second.succeeded == 1
    assert second.pairs_created == 1

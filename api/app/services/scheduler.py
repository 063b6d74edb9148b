from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable

from ..unit_of_work import get_unit_of_work
from .pairing import execute_pairing
from .periods import close_period, has_period_ended

logger = logging.getLogger(__name__)

OUTCOME_SUCCEEDED = "succeeded"
OUTCOME_SKIPPED = "skipped"
OUTCOME_FAILED = "failed"


@dataclass
class OrganizationOutcome:
    organization_id: str
    status: str
    pairs_created: int = 0
    message: str | None = None


@dataclass
class ScheduledRunSummary:
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    pairs_created: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)


def summarize_outcomes(outcomes: Iterable[OrganizationOutcome]) -> ScheduledRunSummary:
    summary = ScheduledRunSummary()
    for o in outcomes:
        summary.processed += 1
        if o.status == OUTCOME_SUCCEEDED:
            summary.succeeded += 1
            summary.pairs_created += o.pairs_created
        elif o.status == OUTCOME_SKIPPED:
            summary.skipped += 1
        else:
            summary.failed += 1
            summary.failures.append((o.organization_id, o.message or "unknown error"))
    return summary


def format_summary(summary: ScheduledRunSummary) -> str:
    return (
        f"processed={summary.processed} successes={summary.succeeded} skipped={summary.skipped} "
        f"failures={summary.failed} pairsCreated={summary.pairs_created}"
    )


def _run_organization(uow_factory: Callable, organization_id: str, now: datetime, log: logging.Logger) -> OrganizationOutcome:
    with uow_factory() as uow:
        period = uow.repo.get_active_period(organization_id)
        if period and not has_period_ended(period, now):
            log.debug("[SCHEDULER] organization %s: period %s still running", organization_id, period["id"])
            return OrganizationOutcome(organization_id, OUTCOME_SKIPPED)
        before = uow.repo.count_pairings(organization_id)
        if period:
            close_period(uow.repo, period)
            uow.commit()

    with uow_factory() as uow:
        execute_pairing(uow, organization_id, now=now, log=log)
        after = uow.repo.count_pairings(organization_id)

    return OrganizationOutcome(organization_id, OUTCOME_SUCCEEDED, pairs_created=after - before)


def execute_scheduled_pairing(
    uow_factory: Callable = get_unit_of_work,
    now: datetime | None = None,
    log: logging.Logger | None = None,
) -> ScheduledRunSummary:
    """Start a new pairing cycle for every configured organization whose period is over.

    Organizations run one after another, each in its own unit of work; a failing
    organization is logged and counted, and the loop moves on.
    """
    log = log or logger
    now = now or datetime.now(timezone.utc)

    with uow_factory() as uow:
        organization_ids = uow.repo.list_configured_organization_ids()

    if not organization_ids:
        log.debug("[SCHEDULER] Scheduled pairing cron found no organizations")
        return summarize_outcomes([])

    outcomes: list[OrganizationOutcome] = []
    for organization_id in organization_ids:
        try:
            outcomes.append(_run_organization(uow_factory, organization_id, now, log))
        except Exception as exc:
            log.exception("[SCHEDULER] scheduled pairing failed for organization %s: %s", organization_id, exc)
            outcomes.append(OrganizationOutcome(organization_id, OUTCOME_FAILED, message=str(exc)))

    summary = summarize_outcomes(outcomes)
    log.info("[SCHEDULER] %s", format_summary(summary))
    if summary.failures:
        log.warning(
            "[SCHEDULER] failed organizations: %s",
            "; ".join(f"{org}: {message}" for org, message in summary.failures),
        )
    return summary

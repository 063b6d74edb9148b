from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from ..unit_of_work import get_unit_of_work
from .algorithm_settings import get_or_create_settings
from .constraints import load_constraints, recent_periods
from .eligibility import eligible_users, guaranteed_users
from .errors import InsufficientUsersException, PairingConstraintException
from .matching import build_pairs
from .periods import resolve_current_period

logger = logging.getLogger(__name__)


@dataclass
class PairingRunOutcome:
    organization_id: str
    period_id: str
    pairs_created: int
    unpaired_user_ids: list[str] = field(default_factory=list)
    eligible_count: int = 0


@dataclass
class PairingExecutionResult:
    success: bool
    pairings_created: int
    message: str
    unpaired_users: int | None = None


def persist_pairings(uow, period: dict[str, Any], pairs: list[tuple[str, str]], log: logging.Logger | None = None) -> int:
    """Insert every pair of one run and commit them with the run's other writes."""
    log = log or logger
    try:
        created = uow.repo.create_pairings(str(period["organization_id"]), str(period["id"]), pairs) if pairs else 0
        uow.commit()
    except Exception:
        uow.rollback()
        log.exception("[PAIRING] failed to store %d pairs for period %s", len(pairs), period["id"])
        raise
    return created


def execute_pairing(uow, organization_id: str, now: datetime | None = None, log: logging.Logger | None = None) -> PairingRunOutcome:
    log = log or logger
    now = now or datetime.now(timezone.utc)
    repo = uow.repo

    if not repo.get_organization(organization_id):
        raise PairingConstraintException(f"Organization {organization_id} not found")

    settings = get_or_create_settings(repo, organization_id)
    period = resolve_current_period(repo, organization_id, settings, now)
    period_id = str(period["id"])

    user_ids = [u.id for u in eligible_users(repo, organization_id, period_id, now)]
    if len(user_ids) < 2:
        raise InsufficientUsersException(organization_id, len(user_ids))

    guaranteed = guaranteed_users(repo, organization_id, period_id, user_ids, now)
    constraints = load_constraints(repo, organization_id, user_ids, recent_periods(repo, organization_id, period_id))
    result = build_pairs(
        user_ids,
        guaranteed,
        constraints,
        int(settings["random_seed"]),
        total_eligible=len(user_ids),
        log=log,
    )

    created = persist_pairings(uow, {"id": period_id, "organization_id": organization_id}, result.pairs, log=log)

    log.info(
        "[PAIRING] organization=%s period=%s eligible=%d guaranteed=%d pairs=%d unpaired=%d swaps=%d",
        organization_id,
        period_id,
        len(user_ids),
        len(guaranteed),
        created,
        len(result.unpaired),
        result.swaps,
    )
    if created == 0:
        log.warning("[PAIRING] No pairs were created during this run (organization=%s)", organization_id)

    return PairingRunOutcome(
        organization_id=organization_id,
        period_id=period_id,
        pairs_created=created,
        unpaired_user_ids=list(result.unpaired),
        eligible_count=len(user_ids),
    )


def execute_pairing_with_stats(
    organization_id: str,
    uow_factory: Callable = get_unit_of_work,
    log: logging.Logger | None = None,
) -> PairingExecutionResult:
    log = log or logger
    with uow_factory() as uow:
        try:
            outcome = execute_pairing(uow, organization_id, log=log)
        except InsufficientUsersException as exc:
            uow.rollback()
            log.warning("[PAIRING] %s", exc)
            return PairingExecutionResult(
                success=False,
                pairings_created=0,
                message=str(exc),
                unpaired_users=exc.user_count,
            )
        except Exception:
            log.exception("[PAIRING] manual pairing failed for organization %s", organization_id)
            raise

    if outcome.pairs_created > 0:
        message = f"Pairing algorithm executed successfully: {outcome.pairs_created} new pairings created."
    else:
        message = "Pairing algorithm executed successfully with no new pairings."
    return PairingExecutionResult(
        success=True,
        pairings_created=outcome.pairs_created,
        message=message,
        unpaired_users=len(outcome.unpaired_user_ids),
    )

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

STATUS_UPCOMING = "upcoming"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"


def resolve_current_period(repo, organization_id: str, settings: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Return the organization's active period, opening a new one when there is none.

    A new period starts at ``now`` and lasts ``settings["period_length_days"]`` days.
    """
    period = repo.get_active_period(organization_id)
    if period:
        return period
    now = now or datetime.now(timezone.utc)
    end_date = now + timedelta(days=int(settings["period_length_days"]))
    period = repo.create_period(organization_id, now, end_date, status=STATUS_ACTIVE)
    logger.info(
        "[PAIRING] opened period %s for organization %s (%s -> %s)",
        period["id"],
        organization_id,
        now.isoformat(),
        end_date.isoformat(),
    )
    return period


def has_period_ended(period: dict[str, Any], now: datetime) -> bool:
    end_date = period.get("end_date")
    return end_date is not None and end_date <= now


def close_period(repo, period: dict[str, Any]) -> None:
    repo.update_period_status(str(period["id"]), STATUS_COMPLETED)
    logger.info("[PAIRING] closed period %s", period["id"])

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable


@dataclass(frozen=True)
class EligibleUser:
    id: str
    organization_id: str
    is_active: bool = True
    suspended_until: datetime | None = None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def is_user_eligible(user: EligibleUser, now: datetime) -> bool:
    if not user.is_active:
        return False
    return user.suspended_until is None or user.suspended_until < now


def _to_user(row: dict[str, Any]) -> EligibleUser:
    return EligibleUser(
        id=str(row["id"]),
        organization_id=str(row.get("organization_id") or ""),
        is_active=bool(row.get("is_active", True)),
        suspended_until=row.get("suspended_until"),
    )


def eligible_users(repo, organization_id: str, period_id: str, now: datetime | None = None) -> list[EligibleUser]:
    """Active, unsuspended members of the organization with no pairing in ``period_id``."""
    now = now or _now_utc()
    return [_to_user(r) for r in repo.list_eligible_users(organization_id, period_id, now)]


def new_users(repo, organization_id: str) -> list[str]:
    return list(repo.list_never_paired_user_ids(organization_id))


def unpaired_from_last_period(repo, organization_id: str, current_period_id: str, now: datetime | None = None) -> list[str]:
    current = repo.get_period(current_period_id)
    if not current or not current.get("start_date"):
        return []
    previous = repo.get_previous_period(organization_id, current["start_date"])
    if not previous:
        return []
    previous_id = str(previous["id"])
    pool = eligible_users(repo, organization_id, previous_id, now)
    paired = repo.list_paired_user_ids(organization_id, previous_id)
    return [u.id for u in pool if u.id not in paired]


def guaranteed_users(
    repo,
    organization_id: str,
    current_period_id: str,
    eligible_ids: Iterable[str],
    now: datetime | None = None,
) -> list[str]:
    """New users first, then last period's leftovers, restricted to this run's pool."""
    pool = set(eligible_ids)
    out: list[str] = []
    seen: set[str] = set()
    candidates = new_users(repo, organization_id) + unpaired_from_last_period(repo, organization_id, current_period_id, now)
    for uid in candidates:
        if uid in pool and uid not in seen:
            seen.add(uid)
            out.append(uid)
    return out

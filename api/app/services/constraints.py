from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..config import PAIRING_HISTORY_LOOKBACK_PERIODS


@dataclass
class Constraints:
    blocks: dict[str, set[str]] = field(default_factory=dict)
    history: dict[str, dict[str, int]] = field(default_factory=dict)

    def blocks_of(self, user_id: str) -> set[str]:
        return self.blocks.get(user_id, set())

    def history_of(self, user_id: str) -> dict[str, int]:
        return self.history.get(user_id, {})


def blocks_from_rows(rows: Iterable[dict[str, Any]], user_ids: Iterable[str]) -> dict[str, set[str]]:
    """Fold directed block rows into a symmetric user -> blocked-partners map."""
    out: dict[str, set[str]] = {str(uid): set() for uid in user_ids}
    for r in rows:
        blocker = str(r["blocker_id"])
        blocked = str(r["blocked_id"])
        if blocker in out:
            out[blocker].add(blocked)
        if blocked in out:
            out[blocked].add(blocker)
    return out


def history_from_rows(rows: Iterable[dict[str, Any]], period_ids: list[str]) -> dict[str, dict[str, int]]:
    """Map user -> partner -> periods back, where ``period_ids[0]`` is one period back.

    A duo that met in several of the considered periods keeps the closest distance.
    """
    distance_of = {str(pid): idx + 1 for idx, pid in enumerate(period_ids)}
    out: dict[str, dict[str, int]] = {}
    for r in rows:
        distance = distance_of.get(str(r["period_id"]))
        if distance is None:
            continue
        a = str(r["user_a_id"])
        b = str(r["user_b_id"])
        for user, partner in ((a, b), (b, a)):
            seen = out.setdefault(user, {})
            if partner not in seen or distance < seen[partner]:
                seen[partner] = distance
    return out


def recent_periods(repo, organization_id: str, current_period_id: str | None, limit: int | None = None) -> list[dict[str, Any]]:
    """Periods before the current one, newest first."""
    return repo.list_recent_periods(
        organization_id,
        exclude_period_id=current_period_id,
        limit=limit if limit is not None else PAIRING_HISTORY_LOOKBACK_PERIODS,
    )


def get_user_blocks(repo, user_id: str) -> set[str]:
    return blocks_from_rows(repo.list_blocks_for_users([user_id]), [user_id])[str(user_id)]


def get_user_pairing_history(repo, organization_id: str, user_id: str, periods: list[dict[str, Any]]) -> dict[str, int]:
    period_ids = [str(p["id"]) for p in periods]
    rows = repo.list_pairings_for_periods(organization_id, period_ids)
    return history_from_rows(rows, period_ids).get(str(user_id), {})


def load_constraints(repo, organization_id: str, user_ids: list[str], periods: list[dict[str, Any]]) -> Constraints:
    period_ids = [str(p["id"]) for p in periods]
    blocks = blocks_from_rows(repo.list_blocks_for_users(user_ids), user_ids)
    history = history_from_rows(repo.list_pairings_for_periods(organization_id, period_ids), period_ids)
    return Constraints(blocks=blocks, history=history)

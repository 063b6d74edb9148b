from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..config import PAIRING_SWAP_MAX_ATTEMPTS, PAIRING_SWAP_WINDOW
from .constraints import Constraints
from .shuffle import seeded_shuffle

logger = logging.getLogger(__name__)

# periods-back values that forbid a repeat duo
RECENT_PERIOD_DISTANCES = (1, 2)

REASON_NO_PARTNER_LEFT = "no_partner_left"
REASON_NO_FEASIBLE_PARTNER = "no_feasible_partner"


@dataclass
class MatchResult:
    pairs: list[tuple[str, str]] = field(default_factory=list)
    unpaired: list[str] = field(default_factory=list)
    unpaired_reasons: dict[str, str] = field(default_factory=dict)
    swaps: int = 0

    def paired_user_ids(self) -> set[str]:
        out: set[str] = set()
        for a, b in self.pairs:
            out.add(a)
            out.add(b)
        return out


def canonical_pair(user_a: str, user_b: str) -> tuple[str, str]:
    return tuple(sorted((user_a, user_b)))


def can_be_paired(
    user_a: str,
    user_b: str,
    blocks_a: set[str],
    blocks_b: set[str],
    history_a: dict[str, int],
    history_b: dict[str, int],
    total_eligible: int,
) -> bool:
    if user_b in blocks_a or user_a in blocks_b:
        return False
    # with only two people in the pool a repeat is unavoidable
    if total_eligible <= 2:
        return True
    if history_a.get(user_b) in RECENT_PERIOD_DISTANCES:
        return False
    if history_b.get(user_a) in RECENT_PERIOD_DISTANCES:
        return False
    return True


def _try_swap_repair(
    stuck: str,
    pairs: list[tuple[str, str]],
    free: list[str],
    feasible: Callable[[str, str], bool],
    window: int,
    max_attempts: int,
) -> tuple[int, str, str, str] | None:
    """Exchange partners between the stuck duo (stuck, z) and a recent pair (x, y).

    Looks for a pair index ``i`` and a free user ``z`` such that ``stuck`` can
    take one member of ``pairs[i]`` and ``z`` can take the other. Only the
    ``window`` most recent pairs and the first ``window`` free users are
    considered, and at most ``max_attempts`` combinations are evaluated.
    """
    attempts = 0
    lowest = max(0, len(pairs) - window)
    for i in range(len(pairs) - 1, lowest - 1, -1):
        x, y = pairs[i]
        for z in free[:window]:
            for keep, displaced in ((x, y), (y, x)):
                if attempts >= max_attempts:
                    return None
                attempts += 1
                if feasible(stuck, keep) and feasible(z, displaced):
                    return i, keep, displaced, z
    return None


def build_pairs(
    user_ids: Iterable[str],
    guaranteed: Iterable[str],
    constraints: Constraints,
    seed: int,
    total_eligible: int | None = None,
    *,
    swap_window: int = PAIRING_SWAP_WINDOW,
    max_swap_attempts: int = PAIRING_SWAP_MAX_ATTEMPTS,
    log: logging.Logger | None = None,
) -> MatchResult:
    log = log or logger
    pool = [str(u) for u in user_ids]
    total = total_eligible if total_eligible is not None else len(pool)
    guaranteed_set = {str(u) for u in guaranteed} & set(pool)

    shuffled = seeded_shuffle(pool, seed)
    queue = [u for u in shuffled if u in guaranteed_set] + [u for u in shuffled if u not in guaranteed_set]

    def feasible(a: str, b: str) -> bool:
        return can_be_paired(
            a,
            b,
            constraints.blocks_of(a),
            constraints.blocks_of(b),
            constraints.history_of(a),
            constraints.history_of(b),
            total,
        )

    result = MatchResult()
    consumed: set[str] = set()

    for idx, user in enumerate(queue):
        if user in consumed:
            continue

        remaining = [c for c in queue[idx + 1:] if c not in consumed]
        partner = next((c for c in remaining if feasible(user, c)), None)
        if partner is not None:
            result.pairs.append((user, partner))
            consumed.update((user, partner))
            continue

        free = [u for u in result.unpaired if u != user] + remaining
        repair = _try_swap_repair(user, result.pairs, free, feasible, swap_window, max_swap_attempts)
        if repair is not None:
            i, keep, displaced, other = repair
            result.pairs[i] = (user, keep)
            result.pairs.append((displaced, other))
            consumed.update((user, other))
            if other in result.unpaired_reasons:
                result.unpaired.remove(other)
                del result.unpaired_reasons[other]
            result.swaps += 1
            log.debug("[PAIRING] swap repair paired %s with %s and %s with %s", user, keep, displaced, other)
            continue

        consumed.add(user)
        result.unpaired.append(user)
        if any(feasible(user, other) for other in queue if other != user):
            result.unpaired_reasons[user] = REASON_NO_PARTNER_LEFT
        else:
            result.unpaired_reasons[user] = REASON_NO_FEASIBLE_PARTNER

    for uid in result.unpaired:
        reason = result.unpaired_reasons[uid]
        if uid in guaranteed_set:
            log.warning("[PAIRING] guaranteed user %s left unpaired: %s", uid, reason)
        else:
            log.debug("[PAIRING] user %s left unpaired: %s", uid, reason)

    return result

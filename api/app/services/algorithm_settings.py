from __future__ import annotations

import logging
import secrets
from typing import Any

from ..config import (
    PAIRING_DEFAULT_PERIOD_DAYS,
    PAIRING_MAX_PERIOD_DAYS,
    PAIRING_MIN_PERIOD_DAYS,
    RANDOM_SEED_MAX,
    RANDOM_SEED_MIN,
)
from .errors import PairingConstraintException, SettingsValidationError

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def generate_random_seed() -> int:
    return RANDOM_SEED_MIN + secrets.randbelow(RANDOM_SEED_MAX - RANDOM_SEED_MIN + 1)


def resolve_period_length_days(value: Any = None, fallback: Any = None) -> int:
    resolved = value if value is not None else fallback
    if resolved is None:
        resolved = PAIRING_DEFAULT_PERIOD_DAYS
    if not _is_int(resolved) or resolved <= 0:
        raise SettingsValidationError("periodLengthDays must be a positive integer")
    return resolved


def resolve_random_seed(value: Any = None, fallback: Any = None) -> int:
    resolved = value if value is not None else fallback
    if resolved is None:
        return generate_random_seed()
    if not _is_int(resolved) or not (RANDOM_SEED_MIN <= resolved <= RANDOM_SEED_MAX):
        raise SettingsValidationError(
            f"randomSeed must be an integer between {RANDOM_SEED_MIN} and {RANDOM_SEED_MAX}"
        )
    return resolved


def build_warning(period_length_days: int) -> str | None:
    if period_length_days < PAIRING_MIN_PERIOD_DAYS:
        return f"Warning: Period length is too short (< {PAIRING_MIN_PERIOD_DAYS} days)"
    if period_length_days > PAIRING_MAX_PERIOD_DAYS:
        return f"Warning: Period length is too long (> {PAIRING_MAX_PERIOD_DAYS} days)"
    return None


def _repair_missing_values(repo, organization_id: str, settings: dict[str, Any]) -> dict[str, Any]:
    if settings.get("period_length_days") is not None and settings.get("random_seed") is not None:
        return settings
    repaired = repo.update_settings(
        organization_id,
        period_length_days=resolve_period_length_days(settings.get("period_length_days")),
        random_seed=resolve_random_seed(settings.get("random_seed")),
    )
    if not repaired:
        raise PairingConstraintException(f"Could not repair algorithm settings for organization {organization_id}")
    logger.warning("[PAIRING] repaired incomplete algorithm settings for organization %s", organization_id)
    return repaired


def get_or_create_settings(repo, organization_id: str) -> dict[str, Any]:
    """Load the organization's algorithm settings, creating defaults on first use.

    Stored rows with a missing period length or seed are repaired in place.
    """
    settings = repo.get_settings(organization_id)
    if not settings:
        settings = repo.create_settings(
            organization_id,
            period_length_days=PAIRING_DEFAULT_PERIOD_DAYS,
            random_seed=generate_random_seed(),
        )
        if not settings:
            raise PairingConstraintException(f"Could not create algorithm settings for organization {organization_id}")
        logger.info("[PAIRING] created default algorithm settings for organization %s", organization_id)
        return settings
    return _repair_missing_values(repo, organization_id, settings)


def update_settings(
    repo,
    organization_id: str,
    period_length_days: Any = None,
    random_seed: Any = None,
) -> dict[str, Any]:
    existing = repo.get_settings(organization_id)
    current_length = existing.get("period_length_days") if existing else None
    current_seed = existing.get("random_seed") if existing else None

    length = resolve_period_length_days(period_length_days, current_length)
    seed = resolve_random_seed(random_seed, current_seed)

    if existing:
        saved = repo.update_settings(organization_id, period_length_days=length, random_seed=seed)
    else:
        saved = repo.create_settings(organization_id, period_length_days=length, random_seed=seed)
    if not saved:
        raise PairingConstraintException(f"Could not save algorithm settings for organization {organization_id}")

    out = dict(saved)
    out["warning"] = build_warning(length)
    return out

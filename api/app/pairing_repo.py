import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import text


def _row(row: Any) -> dict[str, Any] | None:
    return dict(row) if row else None


class PairingRepo:
    """Raw-SQL access to the tables the pairing engine reads and writes.

    One instance wraps one session; every method runs inside the caller's
    transaction and nothing here commits.
    """

    def __init__(self, db) -> None:
        self.db = db

    # organizations / settings

    def get_organization(self, organization_id: str) -> dict[str, Any] | None:
        row = self.db.execute(
            text("SELECT id, name FROM organization WHERE id=CAST(:id AS uuid)"),
            {"id": organization_id},
        ).mappings().first()
        return _row(row)

    def get_settings(self, organization_id: str) -> dict[str, Any] | None:
        row = self.db.execute(
            text(
                """
                SELECT id, organization_id, period_length_days, random_seed, created_at, updated_at
                FROM algorithm_setting
                WHERE organization_id=CAST(:organization_id AS uuid)
                """
            ),
            {"organization_id": organization_id},
        ).mappings().first()
        return _row(row)

    def list_configured_organization_ids(self) -> list[str]:
        rows = self.db.execute(
            text("SELECT organization_id FROM algorithm_setting ORDER BY created_at ASC")
        ).mappings().all()
        return [str(r["organization_id"]) for r in rows]

    def create_settings(self, organization_id: str, period_length_days: int, random_seed: int) -> dict[str, Any] | None:
        row = self.db.execute(
            text(
                """
                INSERT INTO algorithm_setting (id, organization_id, period_length_days, random_seed)
                VALUES (CAST(:id AS uuid), CAST(:organization_id AS uuid), :period_length_days, :random_seed)
                ON CONFLICT (organization_id) DO NOTHING
                RETURNING id, organization_id, period_length_days, random_seed, created_at, updated_at
                """
            ),
            {
                "id": str(uuid.uuid4()),
                "organization_id": organization_id,
                "period_length_days": period_length_days,
                "random_seed": random_seed,
            },
        ).mappings().first()
        if row:
            return dict(row)
        # lost a concurrent insert race; the other writer's row wins
        return self.get_settings(organization_id)

    def update_settings(self, organization_id: str, period_length_days: int, random_seed: int) -> dict[str, Any] | None:
        row = self.db.execute(
            text(
                """
                UPDATE algorithm_setting
                SET period_length_days=:period_length_days, random_seed=:random_seed, updated_at=NOW()
                WHERE organization_id=CAST(:organization_id AS uuid)
                RETURNING id, organization_id, period_length_days, random_seed, created_at, updated_at
                """
            ),
            {
                "organization_id": organization_id,
                "period_length_days": period_length_days,
                "random_seed": random_seed,
            },
        ).mappings().first()
        return _row(row)

    # periods

    def get_active_period(self, organization_id: str) -> dict[str, Any] | None:
        row = self.db.execute(
            text(
                """
                SELECT id, organization_id, start_date, end_date, status
                FROM pairing_period
                WHERE organization_id=CAST(:organization_id AS uuid)
                  AND status='active'
                ORDER BY start_date DESC
                LIMIT 1
                """
            ),
            {"organization_id": organization_id},
        ).mappings().first()
        return _row(row)

    def get_period(self, period_id: str) -> dict[str, Any] | None:
        row = self.db.execute(
            text("SELECT id, organization_id, start_date, end_date, status FROM pairing_period WHERE id=CAST(:id AS uuid)"),
            {"id": period_id},
        ).mappings().first()
        return _row(row)

    def get_previous_period(self, organization_id: str, before: datetime) -> dict[str, Any] | None:
        row = self.db.execute(
            text(
                """
                SELECT id, organization_id, start_date, end_date, status
                FROM pairing_period
                WHERE organization_id=CAST(:organization_id AS uuid)
                  AND start_date < :before
                ORDER BY start_date DESC
                LIMIT 1
                """
            ),
            {"organization_id": organization_id, "before": before},
        ).mappings().first()
        return _row(row)

    def list_recent_periods(self, organization_id: str, exclude_period_id: str | None, limit: int) -> list[dict[str, Any]]:
        rows = self.db.execute(
            text(
                """
                SELECT id, organization_id, start_date, end_date, status
                FROM pairing_period
                WHERE organization_id=CAST(:organization_id AS uuid)
                  AND (:exclude_id IS NULL OR id <> CAST(:exclude_id AS uuid))
                ORDER BY start_date DESC
                LIMIT :limit
                """
            ),
            {"organization_id": organization_id, "exclude_id": exclude_period_id, "limit": limit},
        ).mappings().all()
        return [dict(r) for r in rows]

    def create_period(self, organization_id: str, start_date: datetime, end_date: datetime, status: str = "active") -> dict[str, Any]:
        row = self.db.execute(
            text(
                """
                INSERT INTO pairing_period (id, organization_id, start_date, end_date, status)
                VALUES (CAST(:id AS uuid), CAST(:organization_id AS uuid), :start_date, :end_date, :status)
                RETURNING id, organization_id, start_date, end_date, status
                """
            ),
            {
                "id": str(uuid.uuid4()),
                "organization_id": organization_id,
                "start_date": start_date,
                "end_date": end_date,
                "status": status,
            },
        ).mappings().first()
        return dict(row)

    def update_period_status(self, period_id: str, status: str) -> int:
        res = self.db.execute(
            text("UPDATE pairing_period SET status=:status WHERE id=CAST(:id AS uuid)"),
            {"id": period_id, "status": status},
        )
        return int(res.rowcount or 0)

    # users

    def list_eligible_users(self, organization_id: str, period_id: str, now: datetime) -> list[dict[str, Any]]:
        rows = self.db.execute(
            text(
                """
                SELECT ua.id, ua.organization_id, ua.is_active, ua.suspended_until
                FROM user_account ua
                WHERE ua.organization_id=CAST(:organization_id AS uuid)
                  AND ua.is_active = TRUE
                  AND (ua.suspended_until IS NULL OR ua.suspended_until < :now)
                  AND NOT EXISTS (
                    SELECT 1
                    FROM pairing p
                    WHERE p.period_id=CAST(:period_id AS uuid)
                      AND (p.user_a_id = ua.id OR p.user_b_id = ua.id)
                  )
                ORDER BY ua.id
                """
            ),
            {"organization_id": organization_id, "period_id": period_id, "now": now},
        ).mappings().all()
        return [dict(r) for r in rows]

    def list_never_paired_user_ids(self, organization_id: str) -> list[str]:
        rows = self.db.execute(
            text(
                """
                SELECT ua.id
                FROM user_account ua
                WHERE ua.organization_id=CAST(:organization_id AS uuid)
                  AND NOT EXISTS (
                    SELECT 1 FROM pairing p WHERE p.user_a_id = ua.id OR p.user_b_id = ua.id
                  )
                ORDER BY ua.id
                """
            ),
            {"organization_id": organization_id},
        ).mappings().all()
        return [str(r["id"]) for r in rows]

    def list_paired_user_ids(self, organization_id: str, period_id: str) -> set[str]:
        rows = self.db.execute(
            text(
                """
                SELECT user_a_id, user_b_id
                FROM pairing
                WHERE organization_id=CAST(:organization_id AS uuid)
                  AND period_id=CAST(:period_id AS uuid)
                """
            ),
            {"organization_id": organization_id, "period_id": period_id},
        ).mappings().all()
        out: set[str] = set()
        for r in rows:
            out.add(str(r["user_a_id"]))
            out.add(str(r["user_b_id"]))
        return out

    # constraints

    def list_blocks_for_users(self, user_ids: list[str]) -> list[dict[str, str]]:
        if not user_ids:
            return []
        rows = self.db.execute(
            text(
                """
                SELECT blocker_id, blocked_id
                FROM user_block
                WHERE blocker_id = ANY(CAST(:user_ids AS uuid[]))
                   OR blocked_id = ANY(CAST(:user_ids AS uuid[]))
                """
            ),
            {"user_ids": list(user_ids)},
        ).mappings().all()
        return [{"blocker_id": str(r["blocker_id"]), "blocked_id": str(r["blocked_id"])} for r in rows]

    def list_pairings_for_periods(self, organization_id: str, period_ids: list[str]) -> list[dict[str, str]]:
        if not period_ids:
            return []
        rows = self.db.execute(
            text(
                """
                SELECT period_id, user_a_id, user_b_id
                FROM pairing
                WHERE organization_id=CAST(:organization_id AS uuid)
                  AND period_id = ANY(CAST(:period_ids AS uuid[]))
                """
            ),
            {"organization_id": organization_id, "period_ids": list(period_ids)},
        ).mappings().all()
        return [
            {"period_id": str(r["period_id"]), "user_a_id": str(r["user_a_id"]), "user_b_id": str(r["user_b_id"])}
            for r in rows
        ]

    # pairings

    def count_pairings(self, organization_id: str) -> int:
        value = self.db.execute(
            text("SELECT COUNT(1) FROM pairing WHERE organization_id=CAST(:organization_id AS uuid)"),
            {"organization_id": organization_id},
        ).scalar()
        return int(value or 0)

    def create_pairings(self, organization_id: str, period_id: str, pairs: list[tuple[str, str]]) -> int:
        if not pairs:
            return 0
        self.db.execute(
            text(
                """
                INSERT INTO pairing (id, organization_id, period_id, user_a_id, user_b_id, status)
                VALUES (
                  CAST(:id AS uuid),
                  CAST(:organization_id AS uuid),
                  CAST(:period_id AS uuid),
                  CAST(:user_a_id AS uuid),
                  CAST(:user_b_id AS uuid),
                  'planned'
                )
                """
            ),
            [
                {
                    "id": str(uuid.uuid4()),
                    "organization_id": organization_id,
                    "period_id": period_id,
                    "user_a_id": user_a,
                    "user_b_id": user_b,
                }
                for user_a, user_b in pairs
            ],
        )
        return len(pairs)

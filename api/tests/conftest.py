import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

NOW = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


class FakeRepo:
    """In-memory stand-in for PairingRepo working on a private copy of the store."""

    def __init__(self, data: dict[str, Any]) -> None:
        self.data = data
        self.fail_on_create_pairings: Exception | None = None

    def get_organization(self, organization_id):
        return copy.deepcopy(self.data["organizations"].get(organization_id))

    def get_settings(self, organization_id):
        return copy.deepcopy(self.data["settings"].get(organization_id))

    def list_configured_organization_ids(self):
        return list(self.data["settings"].keys())

    def create_settings(self, organization_id, period_length_days, random_seed):
        if organization_id not in self.data["settings"]:
            self.data["settings"][organization_id] = {
                "id": str(uuid.uuid4()),
                "organization_id": organization_id,
                "period_length_days": period_length_days,
                "random_seed": random_seed,
                "created_at": NOW,
                "updated_at": NOW,
            }
        return self.get_settings(organization_id)

    def update_settings(self, organization_id, period_length_days, random_seed):
        row = self.data["settings"].get(organization_id)
        if not row:
            return None
        row.update(period_length_days=period_length_days, random_seed=random_seed)
        return self.get_settings(organization_id)

    def _periods(self, organization_id):
        rows = [p for p in self.data["periods"] if p["organization_id"] == organization_id]
        return sorted(rows, key=lambda p: p["start_date"], reverse=True)

    def get_active_period(self, organization_id):
        active = [p for p in self._periods(organization_id) if p["status"] == "active"]
        return dict(active[0]) if active else None

    def get_period(self, period_id):
        for p in self.data["periods"]:
            if p["id"] == period_id:
                return dict(p)
        return None

    def get_previous_period(self, organization_id, before):
        earlier = [p for p in self._periods(organization_id) if p["start_date"] < before]
        return dict(earlier[0]) if earlier else None

    def list_recent_periods(self, organization_id, exclude_period_id, limit):
        rows = [p for p in self._periods(organization_id) if p["id"] != exclude_period_id]
        return [dict(p) for p in rows[:limit]]

    def create_period(self, organization_id, start_date, end_date, status="active"):
        row = {
            "id": f"period-{len(self.data['periods']) + 1}",
            "organization_id": organization_id,
            "start_date": start_date,
            "end_date": end_date,
            "status": status,
        }
        self.data["periods"].append(row)
        return dict(row)

    def update_period_status(self, period_id, status):
        for p in self.data["periods"]:
            if p["id"] == period_id:
                p["status"] = status
                return 1
        return 0

    def _paired_in(self, period_id):
        out = set()
        for r in self.data["pairings"]:
            if r["period_id"] == period_id:
                out.update((r["user_a_id"], r["user_b_id"]))
        return out

    def list_eligible_users(self, organization_id, period_id, now):
        taken = self._paired_in(period_id)
        rows = []
        for u in sorted(self.data["users"], key=lambda u: u["id"]):
            if u["organization_id"] != organization_id or not u["is_active"]:
                continue
            if u["suspended_until"] is not None and u["suspended_until"] >= now:
                continue
            if u["id"] in taken:
                continue
            rows.append(dict(u))
        return rows

    def list_never_paired_user_ids(self, organization_id):
        ever = set()
        for r in self.data["pairings"]:
            ever.update((r["user_a_id"], r["user_b_id"]))
        return [u["id"] for u in sorted(self.data["users"], key=lambda u: u["id"]) if u["organization_id"] == organization_id and u["id"] not in ever]

    def list_paired_user_ids(self, organization_id, period_id):
        return {
            uid
            for r in self.data["pairings"]
            if r["organization_id"] == organization_id and r["period_id"] == period_id
            for uid in (r["user_a_id"], r["user_b_id"])
        }

    def list_blocks_for_users(self, user_ids):
        wanted = set(user_ids)
        return [dict(b) for b in self.data["blocks"] if b["blocker_id"] in wanted or b["blocked_id"] in wanted]

    def list_pairings_for_periods(self, organization_id, period_ids):
        wanted = set(period_ids)
        return [
            {"period_id": r["period_id"], "user_a_id": r["user_a_id"], "user_b_id": r["user_b_id"]}
            for r in self.data["pairings"]
            if r["organization_id"] == organization_id and r["period_id"] in wanted
        ]

    def count_pairings(self, organization_id):
        return sum(1 for r in self.data["pairings"] if r["organization_id"] == organization_id)

    def create_pairings(self, organization_id, period_id, pairs):
        if self.fail_on_create_pairings is not None:
            raise self.fail_on_create_pairings
        for a, b in pairs:
            self.data["pairings"].append(
                {"organization_id": organization_id, "period_id": period_id, "user_a_id": a, "user_b_id": b, "status": "planned"}
            )
        return len(pairs)


class FakeStore:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {
            "organizations": {},
            "settings": {},
            "periods": [],
            "users": [],
            "blocks": [],
            "pairings": [],
        }
        self.commits = 0
        self.rollbacks = 0
        self.hooks: list = []

    def add_organization(self, organization_id, *, period_length_days=21, random_seed=42, with_settings=True):
        self.data["organizations"][organization_id] = {"id": organization_id, "name": organization_id}
        if with_settings:
            self.data["settings"][organization_id] = {
                "id": f"settings-{organization_id}",
                "organization_id": organization_id,
                "period_length_days": period_length_days,
                "random_seed": random_seed,
                "created_at": NOW,
                "updated_at": NOW,
            }

    def add_users(self, organization_id, user_ids, **fields):
        for uid in user_ids:
            row = {"id": uid, "organization_id": organization_id, "is_active": True, "suspended_until": None}
            row.update(fields)
            self.data["users"].append(row)

    def add_period(self, organization_id, period_id, start_date, *, days=21, status="active"):
        self.data["periods"].append(
            {
                "id": period_id,
                "organization_id": organization_id,
                "start_date": start_date,
                "end_date": start_date + timedelta(days=days),
                "status": status,
            }
        )

    def add_pairing(self, organization_id, period_id, user_a, user_b):
        self.data["pairings"].append(
            {"organization_id": organization_id, "period_id": period_id, "user_a_id": user_a, "user_b_id": user_b, "status": "planned"}
        )

    def add_block(self, blocker, blocked):
        self.data["blocks"].append({"blocker_id": blocker, "blocked_id": blocked})


class FakeUnitOfWork:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    def __enter__(self):
        self.repo = FakeRepo(copy.deepcopy(self.store.data))
        for hook in self.store.hooks:
            hook(self.repo)
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self):
        self.store.data = copy.deepcopy(self.repo.data)
        self.store.commits += 1

    def rollback(self):
        self.repo.data = copy.deepcopy(self.store.data)
        self.store.rollbacks += 1


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def uow_factory(store):
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def repo(store):
    return FakeRepo(store.data)


@pytest.fixture
def now():
    return NOW

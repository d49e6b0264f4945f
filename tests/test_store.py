import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from vitabalance.models import Payment, Profile
from vitabalance.database import Database
from vitabalance.services.store import Store, to_store_error
from vitabalance.utils.errors import StoreError

from conftest import count_rows


def test_upsert_inserts_then_updates_by_key(store, database):
    store.upsert("profiles", {"id": "u1", "email": "a@example.com"}, "id")
    row = store.upsert("profiles", {"id": "u1", "has_paid_plan": True}, "id")

    assert row["email"] == "a@example.com"
    assert row["has_paid_plan"] is True
    assert count_rows(database, Profile) == 1


def test_upsert_is_idempotent(store, database):
    payment = {"external_id": "123", "user_id": "u1", "status": "approved", "amount": 9.9}
    first = store.upsert("payments", payment, "external_id")
    second = store.upsert("payments", payment, "external_id")

    assert first["id"] == second["id"]
    assert second["amount"] == pytest.approx(9.9)
    assert count_rows(database, Payment) == 1


def test_update_where_keeps_terminal_status(store):
    store.upsert("payments", {"external_id": "123", "status": "approved"}, "external_id")
    row = store.upsert(
        "payments",
        {"external_id": "123", "status": "pending"},
        "external_id",
        update_where={"status": "pending"},
    )
    assert row["status"] == "approved"


def test_update_where_allows_pending_to_advance(store):
    store.upsert("payments", {"external_id": "123", "status": "pending"}, "external_id")
    row = store.upsert(
        "payments",
        {"external_id": "123", "status": "approved"},
        "external_id",
        update_where={"status": "pending"},
    )
    assert row["status"] == "approved"


def test_ignore_duplicates_keeps_first_row(store):
    store.upsert("subscriptions", {"payment_id": "p1", "user_id": "u1"}, "payment_id", ignore_duplicates=True)
    row = store.upsert(
        "subscriptions",
        {"payment_id": "p1", "user_id": "u2"},
        "payment_id",
        ignore_duplicates=True,
    )
    assert row["user_id"] == "u1"
    assert row["plan_type"] == "premium"
    assert row["status"] == "active"


def test_get_with_descending_order(store):
    now = datetime(2026, 1, 1, 12, 0)
    for i in range(3):
        store.insert("nutritional_plans", {
            "user_id": "u1",
            "payment_id": f"p{i}",
            "daily_calories": 2000 + i,
            "created_at": now + timedelta(days=i),
        })

    latest = store.get("nutritional_plans", {"user_id": "u1"}, order_by="-created_at")
    oldest = store.get("nutritional_plans", {"user_id": "u1"}, order_by="created_at")
    assert latest["daily_calories"] == 2002
    assert oldest["daily_calories"] == 2000
    assert store.get("nutritional_plans", {"user_id": "nobody"}) is None


def test_update_returns_rowcount(store):
    store.insert("profiles", {"id": "u1"})
    assert store.update("profiles", {"email": "b@example.com"}, {"id": "u1"}) == 1
    assert store.update("profiles", {"email": "c@example.com"}, {"id": "missing"}) == 0
    assert store.get("profiles", {"id": "u1"})["email"] == "b@example.com"


def test_unknown_table(store):
    with pytest.raises(ValueError):
        store.get("users", {"id": "u1"})


def test_ping(store):
    assert store.ping() is True


def test_operational_error_is_retryable():
    error = to_store_error(OperationalError("SELECT 1", {}, Exception("server closed the connection")), "get")
    assert isinstance(error, StoreError)
    assert error.retryable is True
    assert error.status_code == 503


def test_integrity_error_is_not_retryable():
    error = to_store_error(IntegrityError("INSERT", {}, Exception("duplicate key")), "insert")
    assert error.retryable is False
    assert error.code == "Exception"


def test_transient_failures_are_retried(store):
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))
        return "ok"

    assert store._run("get profiles", flaky) == "ok"
    assert len(calls) == 3


def test_retries_give_up_after_budget(store):
    calls = []

    def down():
        calls.append(1)
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(StoreError) as exc_info:
        store._run("get profiles", down)
    assert exc_info.value.retryable is True
    assert len(calls) == 3


def test_constraint_violation_is_not_retried(store):
    store.insert("profiles", {"id": "u1"})
    with pytest.raises(StoreError) as exc_info:
        store.insert("profiles", {"id": "u1"})
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_async_methods(store):
    await store.aupsert("profiles", {"id": "u1", "email": "a@example.com"}, "id")
    await store.ainsert("payments", {"external_id": "123", "user_id": "u1", "status": "pending"})

    assert await store.aupdate("profiles", {"has_paid_plan": True}, {"id": "u1"}) == 1
    assert (await store.aget("profiles", {"id": "u1"}))["has_paid_plan"] is True
    assert (await store.aget("payments", {"external_id": "123"}))["status"] == "pending"
    assert await store.aping() is True


@pytest.mark.asyncio
async def test_retry_backoff_does_not_block_event_loop(tmp_path):
    unreachable = Database(f"sqlite:///{tmp_path / 'missing' / 'vitabalance.db'}")
    store = Store(unreachable, retry_attempts=3, retry_base_delay=0.05)
    ticks = []

    async def ticker():
        while True:
            ticks.append(1)
            await asyncio.sleep(0.01)

    task = asyncio.ensure_future(ticker())
    try:
        with pytest.raises(StoreError) as exc_info:
            await store.aget("profiles", {"id": "u1"})
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    assert exc_info.value.retryable is True
    assert len(ticks) >= 3

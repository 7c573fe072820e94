import pytest

from app.services.quota_store import QuotaStore

from conftest import ManualClock

WINDOW_MS = 1_000


@pytest.fixture
def store(clock):
    return QuotaStore(window_ms=WINDOW_MS, clock=clock)


def test_records_are_created_lazily(store):
    assert store.peek("alice") is None
    assert len(store) == 0

    with store.locked("alice") as (record, now):
        assert record.count == 0
        assert record.window_start == now

    assert len(store) == 1


def test_locked_rolls_expired_window(store, clock):
    with store.locked("alice") as (record, _):
        record.count = 7
    clock.advance(WINDOW_MS)

    with store.locked("alice") as (record, now):
        assert record.count == 0
        assert record.window_start == now


def test_peek_returns_a_detached_snapshot(store):
    with store.locked("alice") as (record, _):
        record.count = 2

    snapshot = store.peek("alice")
    snapshot.count = 99

    assert store.peek("alice").count == 2


def test_evict_expired_only_removes_finished_windows(store, clock):
    with store.locked("old"):
        pass
    clock.advance(WINDOW_MS // 2)
    with store.locked("fresh"):
        pass
    clock.advance(WINDOW_MS // 2)

    assert store.evict_expired() == 1
    assert store.peek("old") is None
    assert store.peek("fresh") is not None


def test_evict_skips_records_in_use(store, clock):
    with store.locked("alice"):
        assert store.evict_expired(now=clock() + 10 * WINDOW_MS) == 0
    assert store.peek("alice") is not None


def test_evicted_identity_starts_a_new_record(store, clock):
    with store.locked("alice") as (record, _):
        record.count = 3
    clock.advance(WINDOW_MS)
    store.evict_expired()

    with store.locked("alice") as (record, _):
        assert record.count == 0


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        QuotaStore(window_ms=0, clock=ManualClock())

import threading

import pydantic
import pytest

from app.core.config import Settings
from app.services.rate_limiter import AdmissionController

from conftest import LIMIT, WINDOW_MS


def test_admits_up_to_limit_with_decreasing_remaining(admission):
    remaining = [admission.evaluate("alice").remaining for _ in range(LIMIT)]

    assert remaining == [LIMIT - 1 - i for i in range(LIMIT)]


def test_request_past_limit_is_denied_without_counting(admission, clock):
    for _ in range(LIMIT):
        assert admission.evaluate("alice").allowed

    denied = admission.evaluate("alice")
    assert denied.allowed is False
    assert denied.remaining == 0
    assert denied.reset_in_ms == WINDOW_MS

    clock.advance(10_000)
    again = admission.evaluate("alice")
    assert again.allowed is False
    assert again.remaining == 0
    assert again.reset_in_ms == WINDOW_MS - 10_000
    assert admission.store.peek("alice").count == LIMIT


def test_reset_in_ms_counts_down_within_window(admission, clock):
    assert admission.evaluate("alice").reset_in_ms == WINDOW_MS
    clock.advance(1_500)
    assert admission.evaluate("alice").reset_in_ms == WINDOW_MS - 1_500


def test_window_expiry_resets_count(admission, clock):
    for _ in range(LIMIT + 2):
        admission.evaluate("alice")

    clock.advance(WINDOW_MS)
    decision = admission.evaluate("alice")

    assert decision.allowed is True
    assert decision.remaining == LIMIT - 1
    assert decision.reset_in_ms == WINDOW_MS
    assert admission.store.peek("alice").count == 1


def test_fixed_window_admits_burst_across_boundary(admission, clock):
    admission.evaluate("alice")  # opens the window
    clock.advance(WINDOW_MS - 1)
    burst = [admission.evaluate("alice").allowed for _ in range(LIMIT - 1)]
    clock.advance(1)
    burst += [admission.evaluate("alice").allowed for _ in range(LIMIT)]

    # 2 × limit - 1 admitted within 1 ms of each other.
    assert burst == [True] * (2 * LIMIT - 1)


def test_users_do_not_interfere(admission):
    for _ in range(LIMIT + 1):
        admission.evaluate("alice")

    assert admission.remaining("bob") == LIMIT
    assert admission.evaluate("bob").remaining == LIMIT - 1
    assert admission.remaining("alice") == 0


def test_remaining_does_not_consume(admission):
    assert admission.remaining("alice") == LIMIT
    assert admission.remaining("alice") == LIMIT
    assert admission.store.peek("alice") is None


def test_concurrent_evaluations_never_exceed_limit():
    admission = AdmissionController(limit=25, window_ms=600_000)
    results: list[bool] = []
    lock = threading.Lock()

    def worker():
        decision = admission.evaluate("racer")
        with lock:
            results.append(decision.allowed)

    threads = [threading.Thread(target=worker) for _ in range(200)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 25
    assert admission.store.peek("racer").count == 25


@pytest.mark.parametrize("limit, window_ms", [(0, 1000), (-1, 1000), (3, 0), (3, -5)])
def test_invalid_configuration_is_rejected_at_construction(limit, window_ms):
    with pytest.raises(ValueError):
        AdmissionController(limit=limit, window_ms=window_ms)


@pytest.mark.parametrize("field", ["QUOTA_LIMIT", "QUOTA_WINDOW_MS"])
def test_non_positive_quota_settings_fail_validation(field):
    with pytest.raises(pydantic.ValidationError):
        Settings(**{field: 0})


def test_peek_reports_state_without_consuming(admission, clock):
    untouched = admission.peek("alice")
    assert (untouched.allowed, untouched.remaining, untouched.reset_in_ms) == (True, LIMIT, 0)
    assert admission.store.peek("alice") is None

    admission.evaluate("alice")
    clock.advance(2_000)
    snapshot = admission.peek("alice")
    assert (snapshot.remaining, snapshot.reset_in_ms) == (LIMIT - 1, WINDOW_MS - 2_000)
    assert admission.peek("alice") == snapshot

    for _ in range(LIMIT):
        admission.evaluate("alice")
    assert admission.peek("alice").allowed is False

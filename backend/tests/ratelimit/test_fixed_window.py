from app.ratelimit import fixed_window_decide
from app.ratelimit.fixed_window import RateLimitResult, WindowEntry

WINDOW_MS = 60_000


def test_first_request_opens_window():
    entry, result = fixed_window_decide(1_000, None, 3, WINDOW_MS)
    assert entry == WindowEntry(count=1, reset_at_ms=61_000)
    assert result.allowed
    assert result.remaining == 2


def test_requests_within_window_count_up_then_deny():
    entry = None
    decisions = []
    for now in (0, 10, 20, 30):
        entry, result = fixed_window_decide(now, entry, 3, WINDOW_MS)
        decisions.append((result.allowed, result.remaining))

    assert decisions == [(True, 2), (True, 1), (True, 0), (False, 0)]
    assert entry.reset_at_ms == WINDOW_MS


def test_window_resets_at_boundary():
    entry = WindowEntry(count=5, reset_at_ms=WINDOW_MS)
    new_entry, result = fixed_window_decide(WINDOW_MS, entry, 3, WINDOW_MS)
    assert new_entry.count == 1
    assert new_entry.reset_at_ms == 2 * WINDOW_MS
    assert result.allowed


def test_retry_after_rounds_up_and_is_at_least_one():
    result = RateLimitResult(allowed=False, limit=3, remaining=0, reset_at_ms=10_500)
    assert result.retry_after_s(9_000) == 2
    assert result.retry_after_s(10_499) == 1
    assert result.retry_after_s(20_000) == 1

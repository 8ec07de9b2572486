import pytest

from r6tracker.common.http import (
    ResponseClass,
    RetryPolicy,
    build_headers,
    classify_response,
    looks_like_challenge,
)


@pytest.mark.parametrize("status", [403, 429, 503])
def test_blocking_statuses(status):
    assert classify_response(status, "<html>ok</html>") == ResponseClass.BLOCKED


def test_challenge_markup_on_200_is_blocked(challenge_html):
    assert looks_like_challenge(challenge_html)
    assert classify_response(200, challenge_html) == ResponseClass.BLOCKED


def test_plain_success_and_other_errors(header_v1_html):
    assert classify_response(200, header_v1_html) == ResponseClass.SUCCESS
    assert classify_response(404, "missing") == ResponseClass.HTTP_ERROR
    assert classify_response(500, "") == ResponseClass.HTTP_ERROR


def test_challenge_detected_from_title_only():
    assert looks_like_challenge("<html></html>", title="Just a moment...")
    assert not looks_like_challenge("<html><body>Overview</body></html>", title="Player Stats")


def test_build_headers():
    h = build_headers("UA/1.0", header_randomize=True)
    assert h["User-Agent"] == "UA/1.0"
    assert "Accept-Language" in h and "Accept" in h
    assert build_headers("UA", header_randomize=False) == {"User-Agent": "UA"}


def test_retry_policy_delays_grow_and_are_capped():
    policy = RetryPolicy(attempts=5, backoff_base=1.0, backoff_cap=5.0)
    assert 1.0 <= policy.delay_for(1) <= 2.0
    assert 2.0 <= policy.delay_for(2) <= 3.0
    assert 4.0 <= policy.delay_for(3) <= 5.0
    assert policy.delay_for(6) == 5.0


@pytest.mark.asyncio
async def test_zero_base_never_sleeps():
    policy = RetryPolicy(backoff_base=0)
    assert policy.delay_for(4) == 0.0
    assert await policy.backoff(3) == 0.0


def test_policy_from_settings(fast_settings):
    policy = RetryPolicy.from_settings(fast_settings)
    assert policy.attempts == 2
    assert policy.backoff_base == 0

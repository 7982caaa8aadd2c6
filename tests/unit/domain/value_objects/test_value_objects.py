from datetime import datetime, timedelta, timezone

import pytest

from resetgate.domain.value_objects.password import PolicyResult
from resetgate.domain.value_objects.rate_limit import RateLimitRule
from resetgate.domain.value_objects.reset_token import IssuedResetToken

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestRateLimitRule:
    def test_window_in_milliseconds(self):
        assert RateLimitRule("reset:verify:ip", 30, 60).window_ms == 60_000

    @pytest.mark.parametrize(
        "bucket, limit, window",
        [("", 1, 60), ("b", 0, 60), ("b", 1, 0), ("b", -3, 60)],
    )
    def test_rejects_invalid_rule(self, bucket, limit, window):
        with pytest.raises(ValueError):
            RateLimitRule(bucket, limit, window)


class TestIssuedResetToken:
    def test_requires_timezone_aware_times(self):
        with pytest.raises(ValueError):
            IssuedResetToken("a" * 64, "b" * 64, datetime(2024, 1, 1), datetime(2024, 1, 2))

    def test_requires_expiry_after_issue(self):
        with pytest.raises(ValueError):
            IssuedResetToken("a" * 64, "b" * 64, NOW, NOW)

    def test_fingerprint_prefix(self):
        token = IssuedResetToken("a" * 64, "0123456789" + "f" * 54, NOW, NOW + timedelta(minutes=30))

        assert token.fingerprint_prefix == "01234567"
        assert token.ttl_seconds == 1800


def test_policy_result_constructors():
    assert PolicyResult.ok() == PolicyResult(valid=True, message=None)
    assert PolicyResult.fail("nope") == PolicyResult(valid=False, message="nope")

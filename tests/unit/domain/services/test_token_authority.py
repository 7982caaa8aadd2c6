import re
from datetime import datetime, timedelta, timezone

import pytest

from resetgate.domain.services.password_reset.token_authority import TokenAuthority, as_utc
from tests.utils.fakes import FrozenClock


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def authority(clock):
    return TokenAuthority(ttl_seconds=3600, clock=clock)


class TestIssue:
    def test_token_is_64_hex_characters(self, authority):
        issued = authority.issue()

        assert re.fullmatch(r"[0-9a-f]{64}", issued.raw_token)

    def test_fingerprint_is_sha256_of_raw_token(self, authority):
        issued = authority.issue()

        assert issued.fingerprint == TokenAuthority.fingerprint(issued.raw_token)
        assert issued.fingerprint != issued.raw_token
        assert len(issued.fingerprint) == 64

    def test_expiry_is_issue_time_plus_ttl(self, authority, clock):
        issued = authority.issue()

        assert issued.issued_at == clock.now
        assert issued.expires_at == clock.now + timedelta(hours=1)
        assert issued.ttl_seconds == 3600

    def test_tokens_do_not_repeat(self, authority):
        fingerprints = {authority.issue().fingerprint for _ in range(10_000)}

        assert len(fingerprints) == 10_000

    def test_raw_token_hidden_from_repr(self, authority):
        issued = authority.issue()

        assert issued.raw_token not in repr(issued)

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ValueError):
            TokenAuthority(ttl_seconds=0)


class TestFingerprint:
    def test_known_digest(self):
        assert TokenAuthority.fingerprint("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_deterministic(self):
        assert TokenAuthority.fingerprint("token") == TokenAuthority.fingerprint("token")


class TestVerify:
    def test_valid_before_expiry(self, authority, clock):
        issued = authority.issue()
        clock.advance(minutes=59)

        assert authority.verify(issued.raw_token, issued.fingerprint, issued.expires_at) is True

    def test_invalid_at_and_after_expiry(self, authority, clock):
        issued = authority.issue()

        clock.advance(hours=1)
        assert authority.verify(issued.raw_token, issued.fingerprint, issued.expires_at) is False

        clock.advance(seconds=1)
        assert authority.verify(issued.raw_token, issued.fingerprint, issued.expires_at) is False

    def test_invalid_on_fingerprint_mismatch(self, authority):
        issued = authority.issue()
        other = authority.issue()

        assert authority.verify(issued.raw_token, other.fingerprint, issued.expires_at) is False

    @pytest.mark.parametrize("raw, fingerprint", [("", "abc"), ("abc", "")])
    def test_invalid_on_empty_input(self, authority, clock, raw, fingerprint):
        assert authority.verify(raw, fingerprint, clock.now + timedelta(hours=1)) is False

    def test_explicit_now_overrides_clock(self, authority, clock):
        issued = authority.issue()
        later = clock.now + timedelta(hours=2)

        assert authority.verify(issued.raw_token, issued.fingerprint, issued.expires_at, now=later) is False

    def test_naive_stored_expiry_is_read_as_utc(self, authority, clock):
        issued = authority.issue()
        naive_expiry = issued.expires_at.replace(tzinfo=None)

        assert authority.verify(issued.raw_token, issued.fingerprint, naive_expiry) is True


def test_as_utc_keeps_aware_values():
    aware = datetime(2024, 5, 1, tzinfo=timezone.utc)

    assert as_utc(aware) is aware
    assert as_utc(datetime(2024, 5, 1)).tzinfo is timezone.utc

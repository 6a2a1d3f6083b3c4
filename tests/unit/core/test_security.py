"""Unit tests for password, CSRF and redirect helpers."""

import time

import pytest

from src.catalog.core.security import (
    extract_client_fingerprint,
    generate_csrf_token,
    generate_secure_token,
    hash_client_fingerprint,
    hash_password,
    sanitize_return_url,
    validate_csrf_token,
    verify_password,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret")

        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("other", hashed)

    def test_malformed_hash_never_verifies(self):
        assert not verify_password("s3cret", "not-a-bcrypt-hash")

    def test_long_passwords_are_accepted(self):
        password = "x" * 100
        assert verify_password(password, hash_password(password))


class TestCsrf:
    def test_round_trip(self):
        token = generate_csrf_token("session-1", "secret")

        assert validate_csrf_token("session-1", token, "secret")

    def test_bound_to_session_and_secret(self):
        token = generate_csrf_token("session-1", "secret")

        assert not validate_csrf_token("session-2", token, "secret")
        assert not validate_csrf_token("session-1", token, "other-secret")

    def test_expired_token(self):
        old_hour = int(time.time() // 3600) - 13
        token = generate_csrf_token("session-1", "secret", timestamp=old_hour)

        assert not validate_csrf_token("session-1", token, "secret", max_age_hours=12)

    @pytest.mark.parametrize("token", [None, "", "garbage", "abc:def"])
    def test_malformed_tokens(self, token):
        assert not validate_csrf_token("session-1", token, "secret")


class TestReturnUrl:
    @pytest.mark.parametrize("url", ["/book/", "/book/new?x=1"])
    def test_relative_paths_kept(self, url: str):
        assert sanitize_return_url(url) == url

    @pytest.mark.parametrize(
        "url",
        [None, "", "https://evil.example/", "//evil.example", "book", "/x\nLocation: y"],
    )
    def test_unsafe_targets_fall_back(self, url):
        assert sanitize_return_url(url, "/book/") == "/book/"


class TestFingerprint:
    def test_stable_hash(self):
        assert hash_client_fingerprint("ua", "1.2.3.4") == hash_client_fingerprint(
            "ua", "1.2.3.4"
        )
        assert hash_client_fingerprint("ua", "1.2.3.4") != hash_client_fingerprint(
            "ua", "5.6.7.8"
        )

    def test_forwarded_header_preferred(self, request_factory):
        request = request_factory(
            {"user-agent": "ua", "x-forwarded-for": "1.2.3.4, 10.0.0.1"}
        )

        assert extract_client_fingerprint(request) == hash_client_fingerprint(
            "ua", "1.2.3.4"
        )

    def test_secure_token_is_random(self):
        assert generate_secure_token() != generate_secure_token()

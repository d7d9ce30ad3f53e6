"""Unit tests for auth/tokens.py and the pure gate in auth/dependencies.py.

Covers:
- issue -> verify round-trip resolves the same subject
- expiry boundary: rejected exactly at iat + duration, accepted one second before
- MALFORMED vs INVALID_SIGNATURE vs EXPIRED vs MISSING are distinguishable
- bcrypt helpers never store the plaintext
"""

from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.dependencies import authenticate_request
from auth.tokens import (
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    verify_password,
)
from core.errors import TokenErrorKind, Unauthorized

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _b64(obj: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()


def _kind(fn, *args, **kwargs) -> TokenErrorKind:
    with pytest.raises(Unauthorized) as exc_info:
        fn(*args, **kwargs)
    return exc_info.value.kind


class TestIssueAndVerify:
    def test_round_trip_returns_subject(self, settings) -> None:
        token = create_access_token("user-123", settings, now=NOW)
        assert decode_access_token(token, settings, now=NOW) == "user-123"

    def test_claims_encode_subject_issue_and_expiry(self, settings) -> None:
        token = create_access_token("user-123", settings, now=NOW)
        claims = jwt.get_unverified_claims(token)
        assert claims["sub"] == "user-123"
        assert claims["iat"] == int(NOW.timestamp())
        assert claims["exp"] == claims["iat"] + settings.token_expire_seconds

    def test_default_validity_is_seven_days(self, settings) -> None:
        assert settings.token_expire_seconds == 7 * 24 * 3600

    def test_issuance_is_deterministic_for_same_inputs(self, settings) -> None:
        """No hidden state: same subject and time give the same token."""
        assert create_access_token("u", settings, now=NOW) == create_access_token("u", settings, now=NOW)


class TestExpiry:
    def test_valid_one_second_before_expiry(self, settings) -> None:
        token = create_access_token("u", settings, now=NOW)
        just_before = NOW + timedelta(seconds=settings.token_expire_seconds - 1)
        assert decode_access_token(token, settings, now=just_before) == "u"

    def test_expired_exactly_at_boundary(self, settings) -> None:
        token = create_access_token("u", settings, now=NOW)
        boundary = NOW + timedelta(seconds=settings.token_expire_seconds)
        assert _kind(decode_access_token, token, settings, now=boundary) is TokenErrorKind.EXPIRED

    def test_expired_long_after(self, settings) -> None:
        token = create_access_token("u", settings, now=NOW)
        later = NOW + timedelta(days=365)
        assert _kind(decode_access_token, token, settings, now=later) is TokenErrorKind.EXPIRED

    def test_short_configured_window(self, settings_factory) -> None:
        short = settings_factory(token_expire_seconds=60)
        token = create_access_token("u", short, now=NOW)
        assert _kind(decode_access_token, token, short, now=NOW + timedelta(seconds=60)) is TokenErrorKind.EXPIRED


class TestRejection:
    def test_wrong_secret_is_invalid_signature(self, settings, settings_factory) -> None:
        other = settings_factory(secret_key="another-secret-key-that-is-32-chars-long")
        token = create_access_token("u", other, now=NOW)
        assert _kind(decode_access_token, token, settings, now=NOW) is TokenErrorKind.INVALID_SIGNATURE

    def test_tampered_subject_is_invalid_signature(self, settings) -> None:
        token = create_access_token("victim", settings, now=NOW)
        header, payload, signature = token.split(".")
        claims = jwt.get_unverified_claims(token)
        claims["sub"] = "attacker"
        forged = ".".join([header, _b64(claims), signature])
        assert _kind(decode_access_token, forged, settings, now=NOW) is TokenErrorKind.INVALID_SIGNATURE

    def test_alg_none_is_invalid_signature(self, settings) -> None:
        iat = int(NOW.timestamp())
        unsigned = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64({'sub': 'u', 'iat': iat, 'exp': iat + 60})}."
        assert _kind(decode_access_token, unsigned, settings, now=NOW) is TokenErrorKind.INVALID_SIGNATURE

    def test_expired_and_badly_signed_reports_signature(self, settings, settings_factory) -> None:
        """Signature is checked before expiry; a forged token never reports EXPIRED."""
        other = settings_factory(secret_key="another-secret-key-that-is-32-chars-long")
        token = create_access_token("u", other, now=NOW)
        later = NOW + timedelta(days=30)
        assert _kind(decode_access_token, token, settings, now=later) is TokenErrorKind.INVALID_SIGNATURE

    @pytest.mark.parametrize("garbage", ["not-a-token", "a.b.c", "....", "eyJhbGciOiJIUzI1NiJ9"])
    def test_unparseable_is_malformed(self, settings, garbage: str) -> None:
        assert _kind(decode_access_token, garbage, settings, now=NOW) is TokenErrorKind.MALFORMED

    def test_missing_expiry_claim_is_malformed(self, settings) -> None:
        token = jwt.encode({"sub": "u", "iat": int(NOW.timestamp())}, settings.secret_key, algorithm="HS256")
        assert _kind(decode_access_token, token, settings, now=NOW) is TokenErrorKind.MALFORMED

    def test_missing_subject_is_malformed(self, settings) -> None:
        iat = int(NOW.timestamp())
        token = jwt.encode({"iat": iat, "exp": iat + 60}, settings.secret_key, algorithm="HS256")
        assert _kind(decode_access_token, token, settings, now=NOW) is TokenErrorKind.MALFORMED


class TestBearerExtraction:
    @pytest.mark.parametrize("header", [None, "", "   ", "Bearer", "Bearer   ", "Basic dXNlcjpwYXNz", "Token abc"])
    def test_missing(self, header) -> None:
        assert _kind(extract_bearer_token, header) is TokenErrorKind.MISSING

    def test_scheme_is_case_insensitive(self) -> None:
        assert extract_bearer_token("bearer abc.def.ghi") == "abc.def.ghi"

    def test_gate_resolves_identity(self, settings) -> None:
        token = create_access_token("user-9", settings, now=NOW)
        identity = authenticate_request(f"Bearer {token}", settings, now=NOW)
        assert identity.user_id == "user-9"

    def test_gate_without_header_is_missing(self, settings) -> None:
        assert _kind(authenticate_request, None, settings, now=NOW) is TokenErrorKind.MISSING

    def test_all_kinds_share_one_status(self) -> None:
        """Internally distinct, externally one 401."""
        statuses = {Unauthorized(kind).status_code for kind in TokenErrorKind}
        messages = {Unauthorized(kind).message for kind in TokenErrorKind}
        assert statuses == {401}
        assert len(messages) == 1


class TestPasswordHashing:
    def test_hash_is_salted_and_not_plaintext(self) -> None:
        first = hash_password("correct horse")
        second = hash_password("correct horse")
        assert first != "correct horse"
        assert first != second

    def test_verify(self) -> None:
        hashed = hash_password("correct horse")
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_verify_against_garbage_hash_is_false(self) -> None:
        assert not verify_password("anything", "not-a-bcrypt-hash")

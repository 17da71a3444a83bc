"""
Identity resolution: bearer tokens, guest emails and normalization.
"""
import pytest

from roast_api.errors.exceptions import UnauthenticatedError
from roast_api.services.identity_service import (
    PrincipalKind,
    decode_identity_token,
    normalize_email,
    resolve_principal,
)
from conftest import make_token


class TestNormalizeEmail:
    def test_trims_and_lowercases(self):
        assert normalize_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"

    @pytest.mark.parametrize("value", [
        "", "   ", "no-at-sign", "a@b", "@example.com", "a b@example.com",
        "jane@@example.com", "a@b.com,c@d.com", "a@.", "<x>@y.z",
    ])
    def test_rejects_malformed_addresses(self, value):
        with pytest.raises(ValueError):
            normalize_email(value)


class TestResolvePrincipal:
    def test_account_from_claims(self):
        principal = resolve_principal(account_claims={"sub": "user_1", "email": "Jane@Example.com"})

        assert principal.kind == PrincipalKind.ACCOUNT
        assert principal.id == "user_1"
        assert principal.email == "jane@example.com"
        assert principal.key == "user_1"
        assert not principal.is_guest

    def test_account_wins_over_self_reported_email(self):
        principal = resolve_principal(account_claims={"sub": "user_1"}, email="someone@else.com")

        assert principal.kind == PrincipalKind.ACCOUNT
        assert principal.email is None

    def test_account_with_unusable_email_claim_keeps_id(self):
        principal = resolve_principal(account_claims={"sub": "user_1", "email": "not-an-email"})

        assert principal.id == "user_1"
        assert principal.email is None

    def test_guest_from_email(self):
        principal = resolve_principal(email=" A@B.com ")

        assert principal.is_guest
        assert principal.id is None
        assert principal.key == "a@b.com"

    def test_nothing_identifies_caller(self):
        with pytest.raises(UnauthenticatedError):
            resolve_principal()

    def test_payment_session_alone_identifies_caller(self):
        principal = resolve_principal(payment_session_token="cs_paid")

        assert principal.is_guest
        assert principal.email is None
        assert principal.id is None

    def test_email_preferred_over_bare_session(self):
        principal = resolve_principal(email="a@b.com", payment_session_token="cs_paid")

        assert principal.email == "a@b.com"

    def test_session_does_not_satisfy_account_requirement(self):
        with pytest.raises(UnauthenticatedError):
            resolve_principal(payment_session_token="cs_paid", require_account=True)

    def test_account_required_but_only_email(self):
        with pytest.raises(UnauthenticatedError):
            resolve_principal(email="a@b.com", require_account=True)


class TestDecodeIdentityToken:
    def test_valid_token(self):
        claims = decode_identity_token(make_token("user_42", email="x@y.com"))

        assert claims["sub"] == "user_42"
        assert claims["email"] == "x@y.com"

    def test_expired_token(self):
        assert decode_identity_token(make_token("user_42", expires_in=-60)) is None

    def test_wrong_signing_key(self):
        assert decode_identity_token(make_token("user_42", secret="some-other-secret-that-is-long-enough")) is None

    def test_garbage_and_missing(self):
        assert decode_identity_token("not.a.jwt") is None
        assert decode_identity_token(None) is None
        assert decode_identity_token("") is None

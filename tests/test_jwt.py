"""
Tests for voter access tokens
"""

from datetime import timedelta

import pytest
from jose import jwt

from exceptions import ConfigurationError
from identity.jwt import TokenIssuer


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer("test-secret")


class TestTokenIssuer:

    @pytest.mark.parametrize("secret", [None, "", "   "])
    def test_empty_secret_rejected(self, secret):
        with pytest.raises(ConfigurationError):
            TokenIssuer(secret)

    def test_round_trip_identity(self, issuer):
        token = issuer.issue_access_token("uid-42")
        assert issuer.current_identity(token) == "uid-42"

    def test_payload_claims(self, issuer):
        payload = issuer.verify_token(issuer.issue_access_token("uid-42"))
        assert payload["uid"] == "uid-42"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token_rejected(self, issuer):
        token = issuer.issue_access_token("uid-42", expires_in=timedelta(seconds=-30))
        assert issuer.verify_token(token) is None
        assert issuer.current_identity(token) is None

    def test_other_secret_rejected(self, issuer):
        token = TokenIssuer("another-secret").issue_access_token("uid-42")
        assert issuer.current_identity(token) is None

    def test_wrong_token_type_rejected(self, issuer):
        token = jwt.encode({"uid": "uid-42", "type": "refresh"}, "test-secret", algorithm="HS256")
        assert issuer.verify_token(token) is None
        assert issuer.verify_token(token, expected_type=None)["uid"] == "uid-42"

    def test_token_without_uid_has_no_identity(self, issuer):
        token = jwt.encode({"type": "access"}, "test-secret", algorithm="HS256")
        assert issuer.current_identity(token) is None

    @pytest.mark.parametrize("token", [None, "", "not.a.jwt"])
    def test_garbage_has_no_identity(self, issuer, token):
        assert issuer.current_identity(token) is None

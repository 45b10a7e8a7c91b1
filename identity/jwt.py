"""
JWT Identity Utilities

The auth provider signs a short-lived access token whose "uid" claim is
the voter id. The core never handles passwords; it only verifies the
token and reads the uid. issue_access_token() exists for local
development and tests.

TokenIssuer holds its secret explicitly; nothing here is module-level state.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from exceptions import ConfigurationError

_ALGORITHM = "HS256"
_ACCESS_TOKEN_EXPIRY = timedelta(hours=1)


class TokenIssuer:
    """Sign and verify voter access tokens with one shared secret"""

    def __init__(self, secret: Optional[str]):
        if not secret or not secret.strip():
            raise ConfigurationError("JWT secret cannot be empty", config_key="CAMPUSVOTE_JWT_SECRET")
        self._secret = secret

    def issue_access_token(
        self, voter_id: str, expires_in: timedelta = _ACCESS_TOKEN_EXPIRY
    ) -> str:
        """Generate an access token for voter_id."""
        payload = {
            "uid": voter_id,
            "type": "access",
            "exp": datetime.now(timezone.utc) + expires_in,
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify_token(self, token: str, expected_type: Optional[str] = "access") -> Optional[dict]:
        """Verify JWT token and return payload, or None if invalid/expired."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError:
            return None

        if expected_type and payload.get("type") != expected_type:
            return None
        return payload

    def current_identity(self, token: Optional[str]) -> Optional[str]:
        """Voter id carried by a valid token, None otherwise"""
        if not token:
            return None
        payload = self.verify_token(token)
        if not payload:
            return None
        uid = payload.get("uid")
        return uid if isinstance(uid, str) and uid else None

"""
Bearer token issuing and verification.

Tokens are HS256 JWTs whose `sub` claim is the user identifier. Signature
and expiry checks are delegated to PyJWT; verify() lets its
ExpiredSignatureError / InvalidTokenError propagate so the Authentication
Gate can tell the two apart.
"""

import datetime as _dt
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from devtasks.config import settings
from devtasks.middleware.validation import is_object_id


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    issued_at: _dt.datetime
    expires_at: _dt.datetime
    role: Optional[str] = None


class TokenVerifier:
    """
    Signs and verifies tokens with a shared secret.

    Args:
        secret:            HMAC secret; empty means "not configured"
        algorithm:         JWT algorithm (HS256 by default)
        expires_minutes:   lifetime of issued tokens
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @property
    def configured(self) -> bool:
        return bool(self.secret)

    def issue(self, subject_id: str, role: Optional[str] = None, email: Optional[str] = None) -> str:
        now = _dt.datetime.now(_dt.timezone.utc)
        payload: Dict[str, Any] = {
            "sub": subject_id,
            "iat": int(now.timestamp()),
            "exp": int((now + _dt.timedelta(minutes=self.expires_minutes)).timestamp()),
        }
        if role:
            payload["role"] = role
        if email:
            payload["email"] = email
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            jwt.ExpiredSignatureError: the token's exp is in the past
            jwt.InvalidTokenError:     bad signature, malformed token or
                                       missing/malformed subject
        """
        payload = jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            options={"require": ["sub", "exp", "iat"]},
        )
        subject = payload.get("sub")
        if not isinstance(subject, str) or not is_object_id(subject):
            raise jwt.InvalidTokenError("Token subject is not a valid identifier")
        return TokenClaims(
            subject_id=subject,
            issued_at=_dt.datetime.fromtimestamp(payload["iat"], tz=_dt.timezone.utc),
            expires_at=_dt.datetime.fromtimestamp(payload["exp"], tz=_dt.timezone.utc),
            role=payload.get("role"),
        )


def default_verifier() -> TokenVerifier:
    return TokenVerifier(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_expires_minutes,
    )

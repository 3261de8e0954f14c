"""
Session Service - issues and validates signed session tokens

Sessions are stateless HS256 JWTs carrying sub/iat/exp plus the account's
email and display name. Validation needs only the server secret; whether the
account is still active is checked separately by the auth gate.

Rotating the secret invalidates every outstanding session. There is no
revocation list: expiry is the only other way a session ends.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_SESSION_TTL = timedelta(days=7)


class SessionError(Exception):
    """Base exception for session validation failures"""
    pass


class MalformedTokenError(SessionError):
    """Raised when a token cannot be parsed or lacks required claims"""
    pass


class SignatureInvalidError(SessionError):
    """Raised when a token's signature does not verify"""
    pass


class TokenExpiredError(SessionError):
    """Raised when a token is used at or after its expiry"""
    pass


@dataclass
class SessionAssertion:
    """A freshly issued session"""
    token: str
    subject: str
    issued_at: datetime
    expires_at: datetime


class SessionManager:
    """Mints and verifies session tokens with a process-wide secret"""

    def __init__(self, secret: str, ttl: timedelta = DEFAULT_SESSION_TTL):
        """
        Args:
            secret: HMAC secret, loaded once at startup
            ttl: Lifetime of issued sessions
        """
        if not secret:
            raise ValueError("Session secret must not be empty")
        self._secret = secret
        self.ttl = ttl

    def issue(self, account_id: str, display_name: str, email: str) -> SessionAssertion:
        """Sign a new session for an account. Pure: no storage, no side effects."""
        issued_at = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = issued_at + self.ttl

        payload = {
            "sub": str(account_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "email": email,
            "name": display_name,
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

        return SessionAssertion(
            token=token,
            subject=str(account_id),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def validate(self, token: str) -> str:
        """
        Verify a token and return its subject account id.

        Raises:
            MalformedTokenError: token unparseable or missing sub/iat/exp
            SignatureInvalidError: signature does not match the current secret
            TokenExpiredError: now >= exp
        """
        if not token:
            raise MalformedTokenError("Empty token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "require": ["sub", "iat", "exp"],
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Session expired") from e
        except jwt.InvalidSignatureError as e:
            logger.warning("Session signature verification failed - possible token tampering")
            raise SignatureInvalidError("Invalid session signature") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Malformed session token: {e}") from e

        subject = payload.get("sub")
        if not subject:
            raise MalformedTokenError("Session token has an empty subject")

        return str(subject)

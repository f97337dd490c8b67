"""
Security Service

Issues and verifies the bearer tokens that identify API callers.

Security Features:
==================
1. HS256-signed JWTs (python-jose) with a service-only secret
2. Tamper evidence: any change to header, payload or signature fails
3. Expiry (exp) and not-before (nbf) are enforced on every verify
4. Callers only ever see InvalidCredential; the precise reason is logged

Usage:
    from skeleton_api.services.security import TokenService

    tokens = TokenService(secret_key, issuer="skeleton-api")
    token = tokens.issue(42, "alice")
    claims = tokens.verify(token)
    claims.subject_name  # "alice"

Limitation:
    refresh() issues a new token but does not revoke the old one. There is
    no revocation list; a superseded token stays valid until its own exp.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from skeleton_api.errors import InvalidCredential, NotRefreshable

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TYPE = "access"
DEFAULT_EXPIRE_SECONDS = 86400
DEFAULT_REFRESH_WINDOW = timedelta(minutes=30)


@dataclass(frozen=True)
class Claims:
    """Identity claims carried by a verified token."""

    subject_id: int
    subject_name: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime
    issuer: str

    @property
    def identity(self) -> str:
        """Actor identity used for ownership checks."""
        return self.subject_name


class TokenService:
    """
    Sign and verify bearer tokens.

    The secret is read-only after construction, so one instance can be
    shared by every concurrent request without locking.

    Args:
        secret_key: Symmetric HMAC secret
        issuer: Value of the iss claim; tokens from other issuers are rejected
        expire_seconds: Default token lifetime
        refresh_window: How close to expiry a token must be to be refreshed
        clock: Returns the current UTC time (overridable for tests)
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str = "skeleton-api",
        expire_seconds: int = DEFAULT_EXPIRE_SECONDS,
        refresh_window: timedelta = DEFAULT_REFRESH_WINDOW,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._secret_key = secret_key
        self.issuer = issuer
        self.expire_seconds = expire_seconds
        self.refresh_window = refresh_window
        self._clock = clock or (lambda: datetime.now(UTC))

    def issue(
        self,
        subject_id: int,
        subject_name: str,
        ttl: timedelta | None = None,
    ) -> str:
        """
        Create a signed token for a subject.

        Args:
            subject_id: Numeric user id (stored as the sub claim)
            subject_name: User name (stored as the name claim)
            ttl: Lifetime; defaults to expire_seconds

        Returns:
            Encoded JWT string (header.payload.signature)
        """
        now = self._clock()
        lifetime = ttl if ttl is not None else timedelta(seconds=self.expire_seconds)
        payload = {
            "sub": str(subject_id),
            "name": subject_name,
            "iss": self.issuer,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int((now + lifetime).timestamp()),
            "type": TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)

    def verify(self, token: str) -> Claims:
        """
        Verify a token and return its claims.

        Raises:
            InvalidCredential: For every kind of failure (malformed,
                bad signature, expired, not yet valid, wrong issuer)
        """
        try:
            # exp/nbf are checked below against our own clock
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                options={"verify_exp": False, "verify_nbf": False, "verify_iat": False},
            )
        except JWTError as e:
            logger.warning(f"Token rejected: {e}")
            raise InvalidCredential() from None

        try:
            claims = Claims(
                subject_id=int(payload["sub"]),
                subject_name=str(payload["name"]),
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                not_before=datetime.fromtimestamp(payload["nbf"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
                issuer=payload["iss"],
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Token rejected: malformed claims ({e!r})")
            raise InvalidCredential() from None

        if payload.get("type") != TOKEN_TYPE:
            logger.warning(f"Token rejected: unexpected type {payload.get('type')!r}")
            raise InvalidCredential()

        now = self._clock()
        if claims.expires_at <= now:
            logger.warning(f"Token rejected: expired at {claims.expires_at.isoformat()}")
            raise InvalidCredential()
        if claims.not_before > now:
            logger.warning(f"Token rejected: not valid before {claims.not_before.isoformat()}")
            raise InvalidCredential()

        return claims

    def refresh(self, token: str) -> str:
        """
        Exchange a token that is about to expire for a fresh one.

        Raises:
            InvalidCredential: If the token does not verify
            NotRefreshable: If the token is further than refresh_window
                from its expiry
        """
        claims = self.verify(token)
        if claims.expires_at - self._clock() > self.refresh_window:
            raise NotRefreshable()
        return self.issue(claims.subject_id, claims.subject_name)

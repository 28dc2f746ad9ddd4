"""
Access/refresh JWT issuance and verification.

Both token classes carry the same identity claims but are signed with
different secrets, so a token can only ever be verified as the class it was
issued as. The codec is stateless: there is no revocation list and expiry is
the only way a token stops being valid.
"""
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

import jwt

from services.exceptions import ServiceError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger(__name__)

MAX_EXTRA_CLAIMS = 16

# Claims written by the codec itself; extension claims may not shadow them.
RESERVED_CLAIMS = frozenset({"sub", "email", "type", "iat", "exp", "nbf", "jti", "iss", "aud"})

ClaimValue = str | int | bool


class TokenType(StrEnum):
    """Token class, embedded in the payload as the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(ServiceError):
    """Base class for token failures."""

    status_code = 401
    code = "token_error"


class TokenIssuanceError(TokenError):
    """Signer misconfiguration. Never expected on the normal path."""

    status_code = 500
    code = "token_issuance_failed"


class TokenVerificationError(TokenError):
    """Token could not be verified (malformed, truncated, missing claims)."""

    code = "malformed_token"


class InvalidTokenError(TokenVerificationError):
    """Well-formed token whose signature or class does not match."""

    code = "invalid_token"


class ExpiredTokenError(TokenVerificationError):
    """Well-formed, correctly signed token past its expiry."""

    code = "token_expired"


@dataclass(frozen=True)
class TokenClaims:
    """
    Identity carried by both token classes.

    ``extra`` is a bounded map of scalar extension claims; anything the codec
    does not know about ends up here on verification.
    """

    user_id: str
    email: str
    extra: Mapping[str, ClaimValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id claim is required")
        if len(self.extra) > MAX_EXTRA_CLAIMS:
            raise ValueError(f"At most {MAX_EXTRA_CLAIMS} extension claims are allowed")
        for key, value in self.extra.items():
            if key in RESERVED_CLAIMS:
                raise ValueError(f"Extension claim '{key}' is reserved")
            if not isinstance(value, str | int | bool):
                raise ValueError(f"Extension claim '{key}' must be a scalar")


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token, always issued and rotated together."""

    access_token: str
    refresh_token: str


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenCodec:
    """Sign and verify access/refresh tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secrets = {
            TokenType.ACCESS: access_secret,
            TokenType.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenType.ACCESS: access_ttl,
            TokenType.REFRESH: refresh_ttl,
        }
        self._algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenCodec":
        """Build a codec from application settings."""
        return cls(
            access_secret=settings.jwt_access_secret,
            refresh_secret=settings.jwt_refresh_secret,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            algorithm=settings.jwt_algorithm,
        )

    def issue_access_token(self, claims: TokenClaims) -> str:
        """Sign a short-lived access token."""
        return self._issue(claims, TokenType.ACCESS)

    def issue_refresh_token(self, claims: TokenClaims) -> str:
        """Sign a long-lived refresh token."""
        return self._issue(claims, TokenType.REFRESH)

    def issue_token_pair(self, claims: TokenClaims) -> TokenPair:
        """
        Sign both tokens for the same claims.

        Raises:
            TokenIssuanceError: If either token cannot be signed. No partial
                pair is ever returned.
        """
        access_token = self.issue_access_token(claims)
        refresh_token = self.issue_refresh_token(claims)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify_access_token(self, token: str) -> TokenClaims:
        """Verify an access token and return its claims."""
        return self._verify(token, TokenType.ACCESS)

    def verify_refresh_token(self, token: str) -> TokenClaims:
        """Verify a refresh token and return its claims."""
        return self._verify(token, TokenType.REFRESH)

    def _issue(self, claims: TokenClaims, token_type: TokenType) -> str:
        secret = self._secrets[token_type]
        if not secret:
            logger.error("token_issue_failed type=%s reason=missing_secret", token_type)
            raise TokenIssuanceError(f"No signing secret configured for {token_type} tokens")

        now = self._clock()
        payload = {
            **claims.extra,
            "sub": claims.user_id,
            "email": claims.email,
            "type": token_type.value,
            "iat": now,
            "exp": now + self._ttls[token_type],
            # jti keeps two tokens issued in the same second distinct
            "jti": uuid.uuid4().hex,
        }
        try:
            return jwt.encode(payload, secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            logger.error("token_issue_failed type=%s reason=%s", token_type, e)
            raise TokenIssuanceError(f"Unable to issue {token_type} token") from e

    def _verify(self, token: str, token_type: TokenType) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat", "type"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidTokenError("Token signature is invalid") from e
        except jwt.PyJWTError as e:
            raise TokenVerificationError("Token could not be verified") from e

        if payload["type"] != token_type.value:
            # Only reachable if both classes share a secret; settings forbid that.
            raise InvalidTokenError(f"Expected a {token_type} token")

        extra = {
            key: value
            for key, value in payload.items()
            if key not in RESERVED_CLAIMS and isinstance(value, str | int | bool)
        }
        try:
            return TokenClaims(
                user_id=str(payload["sub"]),
                email=str(payload.get("email", "")),
                extra=extra,
            )
        except ValueError as e:
            raise TokenVerificationError("Token claims are invalid") from e

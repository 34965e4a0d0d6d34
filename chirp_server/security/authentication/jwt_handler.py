"""
JWT Handler - Issuing and verifying access / refresh tokens

Module: security.authentication.jwt_handler
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Issuer-typed tokens
  - One claim type (TokenClaims) with an issuer discriminant
  - Access tokens: 1h fixed, caller lifetime capped at 24h
  - Refresh tokens: 60 days
  - Injectable clock for expiry checks
[2026-10-05 v0.1.0] Initial implementation
  - JWT generation with HS256
  - JWT validation and claim extraction

ARCHITECTURE:
JWTHandler provides:
  - Stateless tokens signed with HS256 (HMAC-SHA256)
  - iss claim set to "access" or "refresh"
  - sub claim holding the account id as a decimal string
  - Verification in fixed order: signature, expiry, issuer, subject

The handler never touches storage. Revocation of refresh tokens is layered
on top by SessionManager.

SECURITY NOTES:
- Secret key must be 32+ characters and is never rotated in-process
- Any decode failure is reported as an error, never as a valid token
- All times in UTC
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

import jwt

from ...core.constants import (
    ACCESS_TOKEN_ISSUER,
    ACCESS_TOKEN_LIFETIME,
    JWT_ALGORITHM,
    MAX_ACCESS_TOKEN_LIFETIME,
    MIN_SECRET_KEY_LENGTH,
    REFRESH_TOKEN_ISSUER,
    REFRESH_TOKEN_LIFETIME,
)


class JWTError(Exception):
    """Base authentication error"""
    pass


class MalformedHeaderError(JWTError):
    """Authorization header is not '<scheme> <token>'"""
    pass


class JWTInvalidError(JWTError):
    """JWT is invalid (malformed, bad signature)"""
    pass


class JWTExpiredError(JWTError):
    """JWT has expired"""
    pass


class JWTClaimError(JWTError):
    """JWT claim validation failed"""
    pass


class WrongTokenTypeError(JWTClaimError):
    """Token issuer is not the one the caller expects"""
    pass


class MalformedSubjectError(JWTClaimError):
    """Subject claim is not an account id"""
    pass


class TokenRevokedError(JWTError):
    """Refresh token has been revoked"""
    pass


class TokenIssuer(str, Enum):
    """Value of the iss claim"""
    ACCESS = ACCESS_TOKEN_ISSUER
    REFRESH = REFRESH_TOKEN_ISSUER


@dataclass(frozen=True)
class TokenClaims:
    """Verified token claims"""
    issuer: TokenIssuer
    subject: Any          # sub claim as carried in the token, unparsed
    issued_at: datetime
    expires_at: datetime
    jti: str              # Token id, keeps same-second tokens distinct

    @property
    def account_id(self) -> int:
        """
        Subject parsed as an account id

        Raises:
            MalformedSubjectError: If the subject is not a positive integer
        """
        subject = self.subject
        if not isinstance(subject, str) or not (subject.isascii() and subject.isdigit()):
            raise MalformedSubjectError(f"Subject is not an account id: {subject!r}")
        account_id = int(subject)
        if account_id <= 0:
            raise MalformedSubjectError(f"Subject is not an account id: {subject!r}")
        return account_id


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token pair"""
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    token_type: str = "Bearer"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_authorization_header(header: Optional[str]) -> str:
    """
    Extract the token from an Authorization header

    Args:
        header: Raw header value, e.g. "Bearer eyJ..."

    Returns:
        The token string

    Raises:
        MalformedHeaderError: If the header has no '<scheme> <token>' shape
    """
    if not header:
        raise MalformedHeaderError("Missing Authorization header")

    scheme, sep, token = header.strip().partition(" ")
    token = token.strip()
    if not sep or not scheme or not token:
        raise MalformedHeaderError("Authorization header must be '<scheme> <token>'")
    return token


class JWTHandler:
    """
    Mints and verifies access and refresh tokens.

    Pure functions over the signing key and the clock: no locking, safe
    for concurrent use.
    """

    REQUIRED_CLAIMS = ("iss", "sub", "iat", "exp")

    def __init__(
        self,
        secret_key: str,
        algorithm: str = JWT_ALGORITHM,
        access_token_expire: timedelta = ACCESS_TOKEN_LIFETIME,
        refresh_token_expire: timedelta = REFRESH_TOKEN_LIFETIME,
        max_access_token_expire: timedelta = MAX_ACCESS_TOKEN_LIFETIME,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize JWT handler

        Args:
            secret_key: Secret key for signing (32+ characters)
            algorithm: JWT algorithm (default HS256)
            access_token_expire: Default access token lifetime
            refresh_token_expire: Refresh token lifetime
            max_access_token_expire: Cap on caller-supplied access lifetimes
            clock: Returns the current aware UTC datetime

        Raises:
            ValueError: If secret_key too short
        """
        if len(secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(
                f"Secret key must be at least {MIN_SECRET_KEY_LENGTH} characters"
            )

        self.logger = logging.getLogger("security.jwt_handler")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_expire = access_token_expire
        self.refresh_token_expire = refresh_token_expire
        self.max_access_token_expire = max_access_token_expire
        self.clock = clock

        self.logger.info(
            f"JWT Handler initialized (algo={algorithm}, "
            f"access_expires={access_token_expire}, "
            f"refresh_expires={refresh_token_expire})"
        )

    # ------------------------------------------------------------------
    # Issuing
    # ------------------------------------------------------------------

    def issue_access(
        self,
        subject_id: int,
        expires_in_seconds: Optional[int] = None,
    ) -> str:
        """
        Mint an access token

        Args:
            subject_id: Account id
            expires_in_seconds: Optional lifetime; capped at the maximum,
                ignored when not positive

        Returns:
            Signed JWT string
        """
        lifetime = self._access_lifetime(expires_in_seconds)
        token, _ = self._issue(TokenIssuer.ACCESS, subject_id, lifetime)
        return token

    def issue_refresh(self, subject_id: int) -> str:
        """Mint a refresh token (60 days by default)."""
        token, _ = self._issue(TokenIssuer.REFRESH, subject_id, self.refresh_token_expire)
        return token

    def issue_pair(
        self,
        subject_id: int,
        expires_in_seconds: Optional[int] = None,
    ) -> TokenPair:
        """Mint both tokens, as handed out at login."""
        access_token, access_exp = self._issue(
            TokenIssuer.ACCESS, subject_id, self._access_lifetime(expires_in_seconds)
        )
        refresh_token, refresh_exp = self._issue(
            TokenIssuer.REFRESH, subject_id, self.refresh_token_expire
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_exp,
            refresh_expires_at=refresh_exp,
        )

    def _access_lifetime(self, expires_in_seconds: Optional[int]) -> timedelta:
        if expires_in_seconds is None or expires_in_seconds <= 0:
            return self.access_token_expire
        return min(timedelta(seconds=expires_in_seconds), self.max_access_token_expire)

    def _issue(self, issuer: TokenIssuer, subject_id: int, lifetime: timedelta):
        now = self.clock()
        expires_at = now + lifetime
        claims = {
            "iss": issuer.value,
            "sub": str(subject_id),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": str(uuid.uuid4()),
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self.algorithm)
        self.logger.debug(f"{issuer.value} token issued for account {subject_id}")
        return token, datetime.fromtimestamp(claims["exp"], tz=timezone.utc)

    # ------------------------------------------------------------------
    # Verifying
    # ------------------------------------------------------------------

    def verify(self, token: str, expected_issuer: TokenIssuer) -> TokenClaims:
        """
        Verify signature, expiry and issuer

        The subject is returned as carried; TokenClaims.account_id parses
        it. Revocation is not checked here.

        Args:
            token: JWT token string
            expected_issuer: Issuer the caller requires

        Returns:
            TokenClaims

        Raises:
            JWTInvalidError: If token is malformed or the signature is bad
            JWTExpiredError: If token expired
            WrongTokenTypeError: If the issuer claim is not expected_issuer
            JWTClaimError: If required claims are missing or invalid
        """
        payload = self._decode(token)

        for claim in self.REQUIRED_CLAIMS:
            if claim not in payload:
                raise JWTClaimError(f"Missing claim: {claim}")

        try:
            issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (ValueError, TypeError, OverflowError) as e:
            raise JWTClaimError(f"Invalid timestamp: {e}")

        if self.clock() >= expires_at:
            raise JWTExpiredError(f"Token expired at {expires_at.isoformat()}")

        if payload["iss"] != TokenIssuer(expected_issuer).value:
            raise WrongTokenTypeError(
                f"Expected {TokenIssuer(expected_issuer).value} token, "
                f"got {payload['iss']!r}"
            )

        return TokenClaims(
            issuer=TokenIssuer(payload["iss"]),
            subject=payload["sub"],
            issued_at=issued_at,
            expires_at=expires_at,
            jti=str(payload.get("jti", "")),
        )

    def _decode(self, token: str) -> Dict[str, Any]:
        """
        Signature check only. Time-based claims are checked against
        self.clock, the subject by TokenClaims.account_id.
        """
        if not token or not isinstance(token, str):
            raise JWTInvalidError("Token must be non-empty string")

        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise JWTInvalidError(f"Invalid signature: {e}")
        except jwt.DecodeError as e:
            raise JWTInvalidError(f"Decode error: {e}")
        except jwt.InvalidTokenError as e:
            raise JWTInvalidError(f"Invalid token: {e}")

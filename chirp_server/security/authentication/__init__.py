"""
Authentication module - credentials, JWT and sessions

Provides:
- PasswordHasher: bcrypt secret hashing
- JWTHandler: access / refresh token issuing and verification (HS256)
- SessionManager: login, refresh and revocation flows
"""

from .password_hasher import (
    PasswordHasher,
    PasswordHashError,
    CorruptHashError,
    SecretTooLongError,
)
from .jwt_handler import (
    JWTHandler,
    JWTError,
    MalformedHeaderError,
    JWTInvalidError,
    JWTExpiredError,
    JWTClaimError,
    WrongTokenTypeError,
    MalformedSubjectError,
    TokenRevokedError,
    TokenIssuer,
    TokenClaims,
    TokenPair,
    parse_authorization_header,
)
from .session_manager import SessionManager

__all__ = [
    "PasswordHasher",
    "PasswordHashError",
    "CorruptHashError",
    "SecretTooLongError",
    "JWTHandler",
    "JWTError",
    "MalformedHeaderError",
    "JWTInvalidError",
    "JWTExpiredError",
    "JWTClaimError",
    "WrongTokenTypeError",
    "MalformedSubjectError",
    "TokenRevokedError",
    "TokenIssuer",
    "TokenClaims",
    "TokenPair",
    "parse_authorization_header",
    "SessionManager",
]

"""
Constants for Chirp Server

Module: core.constants
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Token lifecycle constants
  - Access / refresh issuer names
  - Token lifetimes (access fixed 1h, capped at 24h when caller supplied)
[2026-10-05 v0.1.0] Initial constants definition
  - Server configuration defaults
  - Post validation limits

SECURITY NOTES:
- Access tokens are short lived and not revocable
- Refresh tokens are long lived and checked against the revocation ledger
"""

from datetime import timedelta
from typing import Final, FrozenSet

# ============================================================================
# Server Configuration
# ============================================================================

SERVER_NAME: Final[str] = "ChirpServer"
SERVER_VERSION: Final[str] = "0.2.0"

DEFAULT_HTTP_HOST: Final[str] = "0.0.0.0"
DEFAULT_HTTP_PORT: Final[int] = 8080
DEFAULT_DB_PATH: Final[str] = "database.json"
DEFAULT_STATIC_DIR: Final[str] = "static"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"

# ============================================================================
# Authentication
# ============================================================================

JWT_ALGORITHM: Final[str] = "HS256"
MIN_SECRET_KEY_LENGTH: Final[int] = 32

ACCESS_TOKEN_ISSUER: Final[str] = "access"
REFRESH_TOKEN_ISSUER: Final[str] = "refresh"

ACCESS_TOKEN_LIFETIME: Final[timedelta] = timedelta(hours=1)
MAX_ACCESS_TOKEN_LIFETIME: Final[timedelta] = timedelta(hours=24)
REFRESH_TOKEN_LIFETIME: Final[timedelta] = timedelta(days=60)

DEFAULT_BCRYPT_ROUNDS: Final[int] = 10

# ============================================================================
# Posts
# ============================================================================

MAX_POST_LENGTH: Final[int] = 140
CENSORED_WORD: Final[str] = "****"
BANNED_WORDS: Final[FrozenSet[str]] = frozenset({
    "kerfuffle",
    "sharbert",
    "fornax",
})

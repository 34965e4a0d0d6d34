"""
Password Hasher - bcrypt hashing of account secrets

Module: security.authentication.password_hasher
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Extracted from account storage
  - Tunable work factor
  - Malformed hashes reported as CorruptHashError
[2026-10-05 v0.1.0] Initial implementation

SECURITY NOTES:
- Plaintext secrets are never stored or logged
- Fresh salt per hash, comparison done by bcrypt.checkpw
- bcrypt only reads the first 72 bytes; longer secrets are rejected
"""

import logging
from typing import Union

import bcrypt

from ...core.constants import DEFAULT_BCRYPT_ROUNDS

BCRYPT_MAX_SECRET_BYTES = 72


class PasswordHashError(Exception):
    """Base password hashing error"""
    pass


class CorruptHashError(PasswordHashError):
    """Stored hash is not a valid bcrypt hash"""
    pass


class SecretTooLongError(PasswordHashError):
    """Secret exceeds what bcrypt can hash"""
    pass


class PasswordHasher:
    """
    One-way salted hashing of account secrets.

    Hashes are opaque bytes (the bcrypt modular crypt string).
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        """
        Args:
            rounds: bcrypt cost factor (10-12 recommended, 4 for tests)
        """
        self.logger = logging.getLogger("security.password_hasher")
        self.rounds = rounds

    def hash(self, secret: str) -> bytes:
        """
        Hash a secret with a fresh salt

        Raises:
            SecretTooLongError: If the encoded secret exceeds 72 bytes
        """
        encoded = secret.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_SECRET_BYTES:
            raise SecretTooLongError(
                f"Secret exceeds {BCRYPT_MAX_SECRET_BYTES} bytes"
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds))

    def verify(self, secret: str, hashed: Union[bytes, str]) -> bool:
        """
        Check a secret against a stored hash

        Args:
            secret: Plaintext secret
            hashed: bcrypt hash as produced by hash()

        Returns:
            True if the secret matches, False otherwise

        Raises:
            CorruptHashError: If hashed is not a usable bcrypt hash
        """
        if isinstance(hashed, str):
            hashed = hashed.encode("ascii", errors="replace")
        if not hashed:
            raise CorruptHashError("Empty hash")

        encoded = secret.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_SECRET_BYTES:
            # Never hashed, so it cannot match
            return False

        try:
            return bcrypt.checkpw(encoded, hashed)
        except (ValueError, TypeError) as e:
            self.logger.error(f"Stored hash is malformed: {e}")
            raise CorruptHashError(f"Malformed bcrypt hash: {e}")

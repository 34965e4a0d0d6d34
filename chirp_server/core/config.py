"""
Server configuration

Module: core.config
Date: 2026-10-12
Version: 0.2.0

Configuration is read once at startup (environment, optionally seeded from a
.env file) and treated as immutable afterwards. The signing key in particular
is never rotated within a process lifetime.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .constants import (
    DEFAULT_BCRYPT_ROUNDS,
    DEFAULT_DB_PATH,
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_STATIC_DIR,
    MIN_SECRET_KEY_LENGTH,
)


class ConfigError(Exception):
    """Invalid or missing configuration"""
    pass


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServerConfig:
    """Process-wide configuration consumed by the server"""
    jwt_secret: str
    db_path: str = DEFAULT_DB_PATH
    host: str = DEFAULT_HTTP_HOST
    port: int = DEFAULT_HTTP_PORT
    static_dir: str = DEFAULT_STATIC_DIR
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    allow_custom_access_expiry: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "ServerConfig":
        """
        Build configuration from environment variables

        Args:
            environ: Mapping to read from (defaults to os.environ after
                loading .env)
            dotenv_path: Explicit .env file (defaults to dotenv discovery)

        Returns:
            Validated ServerConfig

        Raises:
            ConfigError: If a value is missing or malformed
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        try:
            port = int(environ.get("CHIRP_PORT", DEFAULT_HTTP_PORT))
            rounds = int(environ.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}")

        config = cls(
            jwt_secret=environ.get("JWT_SECRET", ""),
            db_path=environ.get("CHIRP_DB_PATH", DEFAULT_DB_PATH),
            host=environ.get("CHIRP_HOST", DEFAULT_HTTP_HOST),
            port=port,
            static_dir=environ.get("CHIRP_STATIC_DIR", DEFAULT_STATIC_DIR),
            bcrypt_rounds=rounds,
            allow_custom_access_expiry=_as_bool(
                environ.get("ALLOW_CUSTOM_ACCESS_EXPIRY")
            ),
            log_level=environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """
        Fail fast on configuration that would leave the server insecure

        Raises:
            ConfigError: On the first invalid setting found
        """
        if not self.jwt_secret:
            raise ConfigError("JWT_SECRET is not set")
        if len(self.jwt_secret) < MIN_SECRET_KEY_LENGTH:
            raise ConfigError(
                f"JWT_SECRET must be at least {MIN_SECRET_KEY_LENGTH} characters"
            )
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}")
        # bcrypt accepts cost factors 4..31
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ConfigError(f"Invalid bcrypt rounds: {self.bcrypt_rounds}")

"""
Chirp Server

A small multi-user service storing short text posts and accounts in a single
JSON document, guarded by bearer tokens: short-lived access tokens,
long-lived refresh tokens and a revocation ledger for the latter.

CHANGELOG:
[2026-10-12 v0.2.0] Refresh tokens and revocation
[2026-10-05 v0.1.0] Initial project setup

ARCHITECTURE:
- Layer 1 : Transport (aiohttp HTTP API)
- Layer 2 : Security (PasswordHasher, JWTHandler, SessionManager)
- Layer 3 : Persistence (JSONStore, DocumentStore)

SECURITY NOTES:
- Secrets hashed with bcrypt, never stored in plaintext
- Tokens signed (HS256), not encrypted
- Token verification fails closed
"""

__version__ = "0.2.0"

from .core.config import ServerConfig, ConfigError
from .persistence.document_store import DocumentStore, Post, Account
from .security.authentication.jwt_handler import JWTHandler, TokenIssuer
from .security.authentication.password_hasher import PasswordHasher
from .security.authentication.session_manager import SessionManager
from .transport.http_api import HTTPServer, create_app

__all__ = [
    "ServerConfig",
    "ConfigError",
    "DocumentStore",
    "Post",
    "Account",
    "JWTHandler",
    "TokenIssuer",
    "PasswordHasher",
    "SessionManager",
    "HTTPServer",
    "create_app",
]

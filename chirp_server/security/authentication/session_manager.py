"""
Session Manager - Login, refresh and revocation flows

Module: security.authentication.session_manager
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Initial implementation
  - Login: credentials -> access + refresh tokens
  - Refresh: valid, unrevoked refresh token -> new access token
  - Revoke: refresh token -> revocation ledger

ARCHITECTURE:
Inbound token checks run in this order:
  1. Parse the Authorization header ('<scheme> <token>')
  2. Verify signature and expiry
  3. Check the issuer claim against the expected token type
  4. Refresh tokens only: consult the revocation ledger
  5. Parse the subject claim as an account id

authorize() (access tokens) skips step 4: access tokens are not revocable,
their short lifetime is the only mitigation. revoke() runs steps 1-3 only,
so revoking twice is accepted. refresh() never re-issues the refresh
token; it stays valid until revoked or expired.
"""

import logging
from typing import TYPE_CHECKING, Optional, Tuple

from .jwt_handler import (
    JWTHandler,
    TokenClaims,
    TokenIssuer,
    TokenPair,
    TokenRevokedError,
    parse_authorization_header,
)

if TYPE_CHECKING:
    from ...persistence.document_store import Account, DocumentStore


class SessionManager:
    """Ties the token handler to the document store."""

    def __init__(self, store: "DocumentStore", jwt_handler: JWTHandler):
        self.logger = logging.getLogger("security.session_manager")
        self.store = store
        self.jwt_handler = jwt_handler

    def login(
        self,
        email: str,
        secret: str,
        expires_in_seconds: Optional[int] = None,
    ) -> Tuple["Account", TokenPair]:
        """
        Authenticate and hand out a token pair

        Args:
            email: Account email
            secret: Plaintext secret
            expires_in_seconds: Optional access token lifetime (capped)

        Returns:
            (Account, TokenPair)

        Raises:
            AccountNotFoundError: Unknown email
            InvalidCredentialError: Wrong secret
        """
        account = self.store.authenticate(email, secret)
        tokens = self.jwt_handler.issue_pair(account.id, expires_in_seconds)
        self.logger.info(f"Login succeeded for account {account.id}")
        return account, tokens

    def validate(
        self,
        header: Optional[str],
        expected_issuer: TokenIssuer,
    ) -> int:
        """
        Run the full check sequence on an Authorization header

        Args:
            header: Raw Authorization header value
            expected_issuer: TokenIssuer.ACCESS or TokenIssuer.REFRESH

        Returns:
            The account id the token speaks for

        Raises:
            MalformedHeaderError, JWTInvalidError, JWTExpiredError,
            WrongTokenTypeError, TokenRevokedError, MalformedSubjectError
        """
        token, claims = self._verify_header(header, expected_issuer)

        # Access tokens are never looked up in the ledger
        if expected_issuer == TokenIssuer.REFRESH and self.store.is_revoked(token):
            self.logger.warning("Rejected revoked refresh token")
            raise TokenRevokedError("Refresh token has been revoked")

        return claims.account_id

    def authorize(self, header: Optional[str]) -> int:
        """Validate an access token and return the account id it speaks for."""
        return self.validate(header, TokenIssuer.ACCESS)

    def refresh(self, header: Optional[str]) -> str:
        """
        Exchange a refresh token for a new access token

        Raises:
            TokenRevokedError: If the refresh token was revoked
        """
        account_id = self.validate(header, TokenIssuer.REFRESH)
        access_token = self.jwt_handler.issue_access(account_id)
        self.logger.info(f"Access token refreshed for account {account_id}")
        return access_token

    def revoke(self, header: Optional[str]) -> None:
        """Add a refresh token to the revocation ledger (idempotent)."""
        token, claims = self._verify_header(header, TokenIssuer.REFRESH)
        self.store.record_revocation(token, self.jwt_handler.clock())
        self.logger.info(f"Refresh token revoked (jti={claims.jti})")

    def _verify_header(
        self,
        header: Optional[str],
        expected_issuer: TokenIssuer,
    ) -> Tuple[str, TokenClaims]:
        token = parse_authorization_header(header)
        return token, self.jwt_handler.verify(token, expected_issuer)

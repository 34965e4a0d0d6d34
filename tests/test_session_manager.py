"""
Session Manager Tests

Module: tests.test_session_manager
Date: 2026-10-12
Version: 0.2.0

Covers login, access-token authorization, refresh and revocation.
"""

import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from chirp_server.persistence.document_store import (
    AccountNotFoundError,
    DocumentStore,
    InvalidCredentialError,
)
from chirp_server.security.authentication.jwt_handler import (
    JWTExpiredError,
    JWTHandler,
    MalformedHeaderError,
    TokenIssuer,
    TokenRevokedError,
    WrongTokenTypeError,
)
from chirp_server.security.authentication.password_hasher import PasswordHasher
from chirp_server.security.authentication.session_manager import SessionManager

SECRET = "test-secret-key-at-least-32-characters-long!!!!"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def bearer(token: str) -> str:
    return f"Bearer {token}"


class SessionManagerTestCase(unittest.TestCase):
    """Fresh store, handler and fake clock per test"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.clock = FakeClock(T0)
        self.store = DocumentStore(
            str(Path(self.temp_dir) / "database.json"),
            hasher=PasswordHasher(rounds=4),
        )
        self.jwt_handler = JWTHandler(SECRET, clock=self.clock)
        self.sessions = SessionManager(self.store, self.jwt_handler)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestLogin(SessionManagerTestCase):

    def test_login_returns_account_and_tokens(self):
        created = self.store.create_account("walt@breakingbad.com", "123456")

        account, tokens = self.sessions.login("walt@breakingbad.com", "123456")

        self.assertEqual(account.id, created.id)
        self.assertEqual(self.sessions.authorize(bearer(tokens.access_token)), created.id)
        self.assertEqual(
            self.sessions.validate(bearer(tokens.refresh_token), TokenIssuer.REFRESH),
            created.id,
        )

    def test_login_custom_access_lifetime(self):
        self.store.create_account("a@example.com", "pw")
        _, tokens = self.sessions.login("a@example.com", "pw", expires_in_seconds=120)
        self.assertEqual(tokens.access_expires_at, T0 + timedelta(seconds=120))

    def test_login_unknown_email(self):
        with self.assertRaises(AccountNotFoundError):
            self.sessions.login("nobody@example.com", "pw")

    def test_login_wrong_secret(self):
        self.store.create_account("a@example.com", "pw")
        with self.assertRaises(InvalidCredentialError):
            self.sessions.login("a@example.com", "wrong")


class TestAuthorize(SessionManagerTestCase):

    def test_authorize_access_token(self):
        token = self.jwt_handler.issue_access(3)
        self.assertEqual(self.sessions.authorize(bearer(token)), 3)

    def test_authorize_rejects_refresh_token(self):
        token = self.jwt_handler.issue_refresh(3)
        with self.assertRaises(WrongTokenTypeError):
            self.sessions.authorize(bearer(token))

    def test_authorize_missing_header(self):
        with self.assertRaises(MalformedHeaderError):
            self.sessions.authorize(None)

    def test_authorize_expired(self):
        token = self.jwt_handler.issue_access(3)
        self.clock.advance(timedelta(hours=2))
        with self.assertRaises(JWTExpiredError):
            self.sessions.authorize(bearer(token))

    def test_access_tokens_ignore_ledger(self):
        """Access tokens are never looked up in the revocation ledger"""
        token = self.jwt_handler.issue_access(3)
        self.store.record_revocation(token, T0)
        self.assertEqual(self.sessions.authorize(bearer(token)), 3)


class TestRefreshAndRevoke(SessionManagerTestCase):

    def test_refresh_then_revoke(self):
        """
        Refresh token minted at T0 for account 7: refresh at T0+1h yields
        an access token expiring at T0+2h; once revoked, refresh fails.
        """
        refresh_token = self.jwt_handler.issue_refresh(7)

        self.clock.advance(timedelta(hours=1))
        access_token = self.sessions.refresh(bearer(refresh_token))

        claims = self.jwt_handler.verify(access_token, TokenIssuer.ACCESS)
        self.assertEqual(claims.account_id, 7)
        self.assertEqual(claims.expires_at, T0 + timedelta(hours=2))

        self.sessions.revoke(bearer(refresh_token))
        self.assertTrue(self.store.is_revoked(refresh_token))

        with self.assertRaises(TokenRevokedError):
            self.sessions.refresh(bearer(refresh_token))

    def test_refresh_does_not_rotate_refresh_token(self):
        refresh_token = self.jwt_handler.issue_refresh(7)
        self.sessions.refresh(bearer(refresh_token))
        self.sessions.refresh(bearer(refresh_token))
        self.assertFalse(self.store.is_revoked(refresh_token))

    def test_refresh_rejects_access_token(self):
        token = self.jwt_handler.issue_access(7)
        with self.assertRaises(WrongTokenTypeError):
            self.sessions.refresh(bearer(token))

    def test_revocation_timestamp(self):
        refresh_token = self.jwt_handler.issue_refresh(7)
        self.clock.advance(timedelta(minutes=5))
        self.sessions.revoke(bearer(refresh_token))

        snapshot = self.store.load()
        self.assertEqual(snapshot.revocations[refresh_token], T0 + timedelta(minutes=5))

    def test_revoke_twice(self):
        """Revoking an already-revoked token is accepted"""
        refresh_token = self.jwt_handler.issue_refresh(7)
        self.sessions.revoke(bearer(refresh_token))
        self.sessions.revoke(bearer(refresh_token))
        self.assertEqual(len(self.store.load().revocations), 1)

    def test_revoke_access_token_rejected(self):
        """Access tokens cannot be put in the ledger"""
        token = self.jwt_handler.issue_access(7)
        with self.assertRaises(WrongTokenTypeError):
            self.sessions.revoke(bearer(token))
        self.assertEqual(self.store.load().revocations, {})

    def test_revoke_expired_token_rejected(self):
        refresh_token = self.jwt_handler.issue_refresh(7)
        self.clock.advance(timedelta(days=61))
        with self.assertRaises(JWTExpiredError):
            self.sessions.revoke(bearer(refresh_token))

    def test_revocation_survives_reopen(self):
        """The ledger lives in the same file as the other tables"""
        refresh_token = self.jwt_handler.issue_refresh(7)
        self.sessions.revoke(bearer(refresh_token))

        reopened = SessionManager(
            DocumentStore(str(self.store.file_path), hasher=PasswordHasher(rounds=4)),
            self.jwt_handler,
        )
        with self.assertRaises(TokenRevokedError):
            reopened.refresh(bearer(refresh_token))


if __name__ == "__main__":
    unittest.main()

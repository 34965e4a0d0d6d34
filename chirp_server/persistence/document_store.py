"""
Document Store - Posts, accounts and the refresh-token revocation ledger

Module: persistence.document_store
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Revocation ledger
  - record_revocation / is_revoked keyed by the raw token string
  - Account updates keep emails unique
[2026-10-05 v0.1.0] Initial implementation
  - Posts and accounts in a single JSON document
  - bcrypt-hashed account secrets

ARCHITECTURE:
DocumentStore keeps every table in one JSON file:

    {
      "posts":       {"<id>": {"id": 1, "body": "..."}},
      "accounts":    {"<id>": {"id": 1, "email": "...", "secret_hash": "<b64>"}},
      "revocations": {"<token>": "<ISO-8601 timestamp>"}
    }

Every operation is a full load -> mutate -> save cycle run inside the
JSONStore lock. Identifiers are assigned as count + 1 under that lock; rows
are never deleted, so ids stay unique and monotonic.

Email uniqueness is checked by a full scan of the accounts table (O(n), no
index).

SECURITY NOTES:
- Secrets are hashed by PasswordHasher before they reach the document
- Identity checks (who may update which account) belong to the caller
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .json_store import JSONStore, JSONStoreFormatError
from ..security.authentication.password_hasher import PasswordHasher


class DocumentStoreError(Exception):
    """Base document store error"""
    pass


class NotFoundError(DocumentStoreError):
    """Requested row does not exist"""
    pass


class PostNotFoundError(NotFoundError):
    """Post not found"""
    pass


class AccountNotFoundError(NotFoundError):
    """Account not found"""
    pass


class DuplicateEmailError(DocumentStoreError):
    """Another account already uses this email"""
    pass


class InvalidCredentialError(DocumentStoreError):
    """Secret does not match the stored hash"""
    pass


@dataclass(frozen=True)
class Post:
    """A short text post"""
    id: int
    body: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "body": self.body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        try:
            return cls(id=int(data["id"]), body=data["body"])
        except (KeyError, ValueError, TypeError) as e:
            raise JSONStoreFormatError(f"Malformed post row: {e!r}")


@dataclass(frozen=True)
class Account:
    """A user account. secret_hash is the opaque bcrypt hash."""
    id: int
    email: str
    secret_hash: bytes = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        return {
            "id": self.id,
            "email": self.email,
            "secret_hash": base64.b64encode(self.secret_hash).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        """Create from dictionary (from JSON)"""
        try:
            secret_hash = base64.b64decode(data["secret_hash"], validate=True)
            return cls(id=int(data["id"]), email=data["email"], secret_hash=secret_hash)
        except (binascii.Error, KeyError, ValueError, TypeError) as e:
            raise JSONStoreFormatError(f"Malformed account row: {e!r}")


@dataclass
class DocumentSnapshot:
    """All persisted tables at one instant"""
    posts: Dict[int, Post] = field(default_factory=dict)
    accounts: Dict[int, Account] = field(default_factory=dict)
    revocations: Dict[str, datetime] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "posts": {str(pid): p.to_dict() for pid, p in self.posts.items()},
            "accounts": {str(aid): a.to_dict() for aid, a in self.accounts.items()},
            "revocations": {
                token: when.isoformat() for token, when in self.revocations.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentSnapshot":
        try:
            posts = {
                int(pid): Post.from_dict(p)
                for pid, p in data.get("posts", {}).items()
            }
            accounts = {
                int(aid): Account.from_dict(a)
                for aid, a in data.get("accounts", {}).items()
            }
            revocations = {
                token: datetime.fromisoformat(when)
                for token, when in data.get("revocations", {}).items()
            }
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise JSONStoreFormatError(f"Malformed document: {e}")
        return cls(posts=posts, accounts=accounts, revocations=revocations)


def _empty_document() -> Dict[str, Any]:
    return DocumentSnapshot().to_dict()


class DocumentStore:
    """
    Posts, accounts and revoked refresh tokens in one JSON file.

    All public methods serialize on the underlying JSONStore lock. Two
    concurrent create_account calls with the same email cannot both
    succeed because the uniqueness scan and the insert share one
    critical section.
    """

    TABLES = ("posts", "accounts", "revocations")

    def __init__(self, file_path: str, hasher: Optional[PasswordHasher] = None):
        """
        Open (or create) the document store

        Args:
            file_path: Path of the backing JSON file
            hasher: Credential hasher (default cost factor if None)

        Raises:
            JSONStoreIOError: If the file cannot be created
        """
        self.logger = logging.getLogger("persistence.document_store")
        self.hasher = hasher or PasswordHasher()
        self.store = JSONStore(file_path, _empty_document())
        self.logger.info(f"DocumentStore initialized (file={self.store.file_path})")

    @classmethod
    def open(cls, file_path: str, hasher: Optional[PasswordHasher] = None) -> "DocumentStore":
        """Alias of the constructor, reads better at call sites."""
        return cls(file_path, hasher)

    @property
    def file_path(self):
        return self.store.file_path

    # ------------------------------------------------------------------
    # Snapshot primitives
    # ------------------------------------------------------------------

    def load(self) -> DocumentSnapshot:
        """Load the whole document as typed tables."""
        with self.store.snapshot() as data:
            return DocumentSnapshot.from_dict(data)

    def persist(self, snapshot: DocumentSnapshot) -> None:
        """Replace the whole document."""
        self.store.save(snapshot.to_dict())

    def _ensure_tables(self, data: Dict[str, Any]) -> None:
        for table in self.TABLES:
            data.setdefault(table, {})

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, body: str) -> Post:
        """
        Store a new post. Body content is not validated here.

        Returns:
            The created Post with its assigned id
        """
        with self.store.transaction() as data:
            self._ensure_tables(data)
            post = Post(id=len(data["posts"]) + 1, body=body)
            data["posts"][str(post.id)] = post.to_dict()

        self.logger.info(f"Post created: {post.id}")
        return post

    def list_posts(self) -> List[Post]:
        """All posts, ascending by id."""
        snapshot = self.load()
        return [snapshot.posts[pid] for pid in sorted(snapshot.posts)]

    def get_post(self, post_id: int) -> Post:
        """
        Raises:
            PostNotFoundError: If no post has this id
        """
        with self.store.snapshot() as data:
            post = data.get("posts", {}).get(str(post_id))
        if post is None:
            raise PostNotFoundError(f"Post {post_id} not found")
        return Post.from_dict(post)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, email: str, secret: str) -> Account:
        """
        Create an account with a hashed secret

        Args:
            email: Email address (must be unique)
            secret: Plaintext secret (hashed before storage)

        Returns:
            The created Account

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        with self.store.transaction() as data:
            self._ensure_tables(data)
            if self._find_by_email(data, email) is not None:
                raise DuplicateEmailError(f"An account already exists for {email}")

            account = Account(
                id=len(data["accounts"]) + 1,
                email=email,
                secret_hash=self.hasher.hash(secret),
            )
            data["accounts"][str(account.id)] = account.to_dict()

        self.logger.info(f"Account created: {email} ({account.id})")
        return account

    def update_account(self, account_id: int, email: str, secret: str) -> Account:
        """
        Overwrite an account's email and secret

        Raises:
            AccountNotFoundError: If no account has this id
            DuplicateEmailError: If another account already uses the email
        """
        with self.store.transaction() as data:
            self._ensure_tables(data)
            if str(account_id) not in data["accounts"]:
                raise AccountNotFoundError(f"Account {account_id} not found")

            holder = self._find_by_email(data, email)
            if holder is not None and holder.id != account_id:
                raise DuplicateEmailError(f"An account already exists for {email}")

            account = Account(
                id=account_id,
                email=email,
                secret_hash=self.hasher.hash(secret),
            )
            data["accounts"][str(account_id)] = account.to_dict()

        self.logger.info(f"Account updated: {account_id}")
        return account

    def get_account(self, account_id: int) -> Account:
        """
        Raises:
            AccountNotFoundError: If no account has this id
        """
        with self.store.snapshot() as data:
            account = data.get("accounts", {}).get(str(account_id))
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return Account.from_dict(account)

    def authenticate(self, email: str, secret: str) -> Account:
        """
        Check an email/secret pair

        Returns:
            The matching Account

        Raises:
            AccountNotFoundError: If no account has this email
            InvalidCredentialError: If the secret does not match
            CorruptHashError: If the stored hash is unusable
        """
        with self.store.snapshot() as data:
            account = self._find_by_email(data, email)

        if account is None:
            raise AccountNotFoundError(f"No account for {email}")

        if not self.hasher.verify(secret, account.secret_hash):
            self.logger.warning(f"Authentication failed for account {account.id}")
            raise InvalidCredentialError("Invalid credentials")

        return account

    @staticmethod
    def _find_by_email(data: Dict[str, Any], email: str) -> Optional[Account]:
        """Full scan of the accounts table"""
        for account in data.get("accounts", {}).values():
            if not isinstance(account, dict) or "email" not in account:
                raise JSONStoreFormatError("Malformed account row: missing email")
            if account["email"] == email:
                return Account.from_dict(account)
        return None

    # ------------------------------------------------------------------
    # Revocation ledger
    # ------------------------------------------------------------------

    def record_revocation(self, token: str, when: datetime) -> None:
        """Add (or refresh the timestamp of) a revoked token."""
        with self.store.transaction() as data:
            self._ensure_tables(data)
            data["revocations"][token] = when.isoformat()

        self.logger.info(f"Revocation recorded ({len(data['revocations'])} total)")

    def is_revoked(self, token: str) -> bool:
        with self.store.snapshot() as data:
            return token in data.get("revocations", {})

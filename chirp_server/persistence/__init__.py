"""
Persistence module - JSON-based data storage

Provides:
- JSONStore: Lock-guarded, atomically written JSON file
- DocumentStore: Posts, accounts and the revocation ledger
"""

from .json_store import (
    JSONStore,
    JSONStoreError,
    JSONStoreIOError,
    JSONStoreFormatError,
)
from .document_store import (
    DocumentStore,
    DocumentSnapshot,
    Post,
    Account,
    DocumentStoreError,
    NotFoundError,
    PostNotFoundError,
    AccountNotFoundError,
    DuplicateEmailError,
    InvalidCredentialError,
)

__all__ = [
    "JSONStore",
    "JSONStoreError",
    "JSONStoreIOError",
    "JSONStoreFormatError",
    "DocumentStore",
    "DocumentSnapshot",
    "Post",
    "Account",
    "DocumentStoreError",
    "NotFoundError",
    "PostNotFoundError",
    "AccountNotFoundError",
    "DuplicateEmailError",
    "InvalidCredentialError",
]

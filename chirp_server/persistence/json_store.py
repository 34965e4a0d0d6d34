"""
JSON Store - Single-file JSON persistence with a coarse lock

Module: persistence.json_store
Date: 2026-10-12
Version: 0.2.0

CHANGELOG:
[2026-10-12 v0.2.0] Transactions
  - One re-entrant lock per store
  - transaction(): load -> mutate -> save inside one critical section
  - snapshot(): locked read-only load
[2026-10-05 v0.1.0] Initial implementation
  - Automatic directory creation
  - Atomic writes

ARCHITECTURE:
JSONStore provides:
  - JSON serialization/deserialization of the whole document
  - Atomic writes (write to temp file, then rename)
  - Serialized access: every load/save and every transaction holds the
    same lock, so at most one writer runs at a time within the process

SECURITY NOTES:
- File written with 0600 permissions
- Two processes sharing the same file are NOT coordinated
"""

import copy
import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator


class JSONStoreError(Exception):
    """Base JSON store error"""
    pass


class JSONStoreIOError(JSONStoreError):
    """File I/O error"""
    pass


class JSONStoreFormatError(JSONStoreError):
    """JSON format error"""
    pass


class JSONStore:
    """
    Base class for JSON-based persistence.

    Handles:
    - File creation and permissions
    - Atomic writes (temp file + rename)
    - Lock-guarded read-modify-write cycles
    - Automatic directory creation
    """

    def __init__(self, file_path: str, default_data: Dict[str, Any] = None):
        """
        Initialize JSON store

        Args:
            file_path: Path to JSON file
            default_data: Default data structure if file doesn't exist

        Raises:
            JSONStoreIOError: If the file cannot be created
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.file_path = Path(file_path)
        self.default_data = copy.deepcopy(default_data) if default_data else {}
        self._lock = threading.RLock()

        with self._lock:
            try:
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise JSONStoreIOError(f"Cannot create {self.file_path.parent}: {e}")

            # Existing files are left untouched
            if not self.file_path.exists():
                self._write_atomic(self.default_data)
                self.logger.info(f"Created new store: {self.file_path}")

    def load(self) -> Dict[str, Any]:
        """
        Load data from JSON file

        Returns:
            Parsed JSON data

        Raises:
            JSONStoreIOError: If file cannot be read
            JSONStoreFormatError: If JSON is invalid
        """
        with self._lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                raise JSONStoreFormatError(f"Invalid JSON in {self.file_path}: {e}")
            except OSError as e:
                raise JSONStoreIOError(f"Failed to read {self.file_path}: {e}")

    def save(self, data: Dict[str, Any]) -> None:
        """
        Save data to JSON file (atomic write)

        Args:
            data: Data to save

        Raises:
            JSONStoreIOError: If write fails
        """
        with self._lock:
            self._write_atomic(data)

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, Any]]:
        """
        Lock, load, let the caller mutate, then save.

        The yielded dict is the whole document. If the block raises, the
        file is not written and the exception propagates.

        Raises:
            JSONStoreIOError: If the file cannot be read or written
            JSONStoreFormatError: If the file holds invalid JSON
        """
        with self._lock:
            data = self.load()
            yield data
            self._write_atomic(data)

    @contextmanager
    def snapshot(self) -> Iterator[Dict[str, Any]]:
        """Lock and load for a read-only view of the document."""
        with self._lock:
            yield self.load()

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        """
        Atomic write: write to temp file, then rename

        Args:
            data: Data to write

        Raises:
            JSONStoreIOError: If write fails
        """
        temp_path = self.file_path.with_suffix(self.file_path.suffix + '.tmp')
        try:
            # Serialize fully before touching disk
            payload = json.dumps(data, indent=2)

            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(payload)

            temp_path.chmod(0o600)
            temp_path.replace(self.file_path)

        except (OSError, TypeError, ValueError) as e:
            try:
                temp_path.unlink()
            except OSError:
                pass
            raise JSONStoreIOError(f"Failed to write {self.file_path}: {e}")


# ============================================================================
# Unit Tests
# ============================================================================

if __name__ == "__main__":
    import unittest
    import tempfile
    import shutil
    import os

    class TestJSONStore(unittest.TestCase):
        """Test suite for JSONStore"""

        def setUp(self):
            """Setup before each test"""
            self.test_dir = tempfile.mkdtemp()
            self.store_path = os.path.join(self.test_dir, "test.json")

        def tearDown(self):
            """Cleanup after each test"""
            if os.path.exists(self.test_dir):
                shutil.rmtree(self.test_dir)

        def test_initialization_with_default_data(self):
            """Test initialization with default data"""
            default = {"key": "value"}
            store = JSONStore(self.store_path, default)
            self.assertEqual(store.load(), default)

        def test_transaction_saves(self):
            """Test transaction persists mutations"""
            store = JSONStore(self.store_path, {"items": []})
            with store.transaction() as data:
                data["items"].append(1)
            self.assertEqual(store.load(), {"items": [1]})

    unittest.main()

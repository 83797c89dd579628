"""Unit tests for encrypted session storage.

This module tests that the token and user entries are stored encrypted,
with secure permissions, and that unreadable entries read as absent.
"""

import os

import pytest
from cryptography.fernet import Fernet

from microlend.session.storage import (
    TOKEN_KEY,
    USER_KEY,
    FileSessionStore,
    MemorySessionStore,
    SessionStorageError,
)


@pytest.fixture
def session_dir(tmp_path):
    return tmp_path / "session"


class TestFileSessionStore:
    """Test encrypted file storage."""

    def test_set_and_get_roundtrip(self, session_dir):
        store = FileSessionStore(session_dir)

        store.set(TOKEN_KEY, "abc")

        assert store.get(TOKEN_KEY) == "abc"
        assert FileSessionStore(session_dir).get(TOKEN_KEY) == "abc"

    def test_entry_is_encrypted_on_disk(self, session_dir):
        store = FileSessionStore(session_dir)

        store.set(TOKEN_KEY, "very-secret-token")

        raw = (session_dir / "token.enc").read_bytes()
        assert b"very-secret-token" not in raw

    def test_files_have_secure_permissions(self, session_dir):
        store = FileSessionStore(session_dir)

        store.set(USER_KEY, '{"id": 7, "role": "customer"}')

        assert os.stat(session_dir / "user.enc").st_mode & 0o777 == 0o600
        assert os.stat(session_dir / "encryption.key").st_mode & 0o777 == 0o600
        assert os.stat(session_dir).st_mode & 0o777 == 0o700

    def test_missing_entry_reads_none(self, session_dir):
        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_remove_deletes_entry(self, session_dir):
        store = FileSessionStore(session_dir)
        store.set(TOKEN_KEY, "abc")

        store.remove(TOKEN_KEY)
        store.remove(TOKEN_KEY)

        assert store.get(TOKEN_KEY) is None
        assert not (session_dir / "token.enc").exists()

    def test_overwrite_leaves_no_temp_file(self, session_dir):
        store = FileSessionStore(session_dir)
        store.set(TOKEN_KEY, "first")
        store.set(TOKEN_KEY, "second")

        assert store.get(TOKEN_KEY) == "second"
        assert not (session_dir / "token.tmp").exists()

    def test_entry_from_other_key_reads_none(self, session_dir):
        """An entry encrypted with a different key is treated as absent."""
        store = FileSessionStore(session_dir)
        store.set(USER_KEY, "placeholder")
        foreign = Fernet(Fernet.generate_key()).encrypt(b"forged")
        (session_dir / "token.enc").write_bytes(foreign)

        assert store.get(TOKEN_KEY) is None

    def test_corrupt_entry_reads_none(self, session_dir):
        store = FileSessionStore(session_dir)
        store.set(TOKEN_KEY, "abc")
        (session_dir / "token.enc").write_bytes(b"not encrypted at all")

        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_entry_without_key_file_reads_none(self, session_dir):
        store = FileSessionStore(session_dir)
        store.set(TOKEN_KEY, "abc")
        (session_dir / "encryption.key").unlink()

        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_invalid_key_file_reads_none(self, session_dir):
        store = FileSessionStore(session_dir)
        store.set(TOKEN_KEY, "abc")
        (session_dir / "encryption.key").write_bytes(b"garbage")

        assert FileSessionStore(session_dir).get(TOKEN_KEY) is None

    def test_write_with_invalid_key_file_raises(self, session_dir):
        session_dir.mkdir()
        (session_dir / "encryption.key").write_bytes(b"garbage")

        with pytest.raises(
            SessionStorageError, match="Invalid session encryption key"
        ):
            FileSessionStore(session_dir).set(TOKEN_KEY, "abc")

    def test_write_without_usable_key_raises(self, session_dir, monkeypatch):
        store = FileSessionStore(session_dir)
        monkeypatch.setattr(store, "_get_fernet", lambda create: None)

        with pytest.raises(SessionStorageError, match="No encryption key"):
            store.set(TOKEN_KEY, "abc")

        assert not (session_dir / "token.enc").exists()


class TestMemorySessionStore:
    def test_initial_entries_and_remove(self):
        store = MemorySessionStore({TOKEN_KEY: "abc"})

        assert store.get(TOKEN_KEY) == "abc"
        store.remove(TOKEN_KEY)
        store.remove(TOKEN_KEY)
        assert store.keys() == []

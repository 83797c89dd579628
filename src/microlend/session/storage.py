"""Client-local storage for the session entries.

The session is persisted as two string entries, the opaque token and the
JSON-serialized user record. FileSessionStore keeps each entry in its own
Fernet-encrypted file with secure file permissions (600).
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"

ENCRYPTION_KEY_FILE = "encryption.key"


class SessionStorageError(Exception):
    """Raised when the session store cannot be written."""

    pass


class SessionStore:
    """Key/value store for string entries."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """In-process store, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        self._entries[key] = value

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self):
        return list(self._entries)


class FileSessionStore(SessionStore):
    """Encrypted one-file-per-entry store.

    Args:
        directory: Directory holding the entries and the encryption key
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()
        self._fernet: Optional[Fernet] = None

    def _entry_path(self, key: str) -> Path:
        return self.directory / f"{key}.enc"

    def _get_fernet(self, create: bool) -> Optional[Fernet]:
        """Load the encryption key, generating it on first write."""
        if self._fernet is not None:
            return self._fernet

        key_file = self.directory / ENCRYPTION_KEY_FILE
        if key_file.exists():
            with open(key_file, "rb") as f:
                key = f.read()
        elif create:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            key = Fernet.generate_key()
            with open(key_file, "wb") as f:
                f.write(key)
            os.chmod(key_file, 0o600)
        else:
            return None

        try:
            self._fernet = Fernet(key)
        except ValueError as e:
            raise SessionStorageError(f"Invalid session encryption key: {e}") from e
        return self._fernet

    def get(self, key: str) -> Optional[str]:
        entry_path = self._entry_path(key)
        if not entry_path.exists():
            return None

        try:
            fernet = self._get_fernet(create=False)
        except SessionStorageError as e:
            logger.warning(f"Ignoring stored {key}: {e}")
            return None
        if fernet is None:
            return None

        with open(entry_path, "rb") as f:
            encrypted_data = f.read()

        try:
            return fernet.decrypt(encrypted_data).decode("utf-8")
        except (InvalidToken, UnicodeDecodeError):
            logger.warning(f"Stored {key} could not be decrypted, treating as absent")
            return None

    def set(self, key: str, value: str) -> None:
        fernet = self._get_fernet(create=True)
        if fernet is None:
            raise SessionStorageError(f"No encryption key in {self.directory}")
        entry_path = self._entry_path(key)
        temp_path = entry_path.with_suffix(".tmp")

        try:
            with open(temp_path, "wb") as f:
                f.write(fernet.encrypt(value.encode("utf-8")))
            temp_path.chmod(0o600)
            temp_path.replace(entry_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise SessionStorageError(f"Failed to write {key}: {e}") from e

    def remove(self, key: str) -> None:
        entry_path = self._entry_path(key)
        if entry_path.exists():
            entry_path.unlink()

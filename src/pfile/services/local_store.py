"""Namespace-keyed durable storage for pfile.

Each namespace key maps to one file under the data directory holding a
single string value. Writes go to a temporary file in the same directory
and are moved into place with os.replace, so a reader always sees either
the previous value or the new one.
"""

import os
import tempfile
from pathlib import Path

from pfile.errors import PersistenceError
from ..logging_config import get_logger

logger = get_logger(__name__)

PHOTOS_KEY = "pfile_photos"
ENCRYPTION_KEY_KEY = "pfile_encryption_key"
SETTINGS_KEY = "pfile_settings"
THEME_KEY = "pfile_theme"
ACCENT_COLOR_KEY = "pfile_accent_color"
ENCRYPTION_METHOD_KEY = "pfile_encryption_method"


class LocalStore:
    """Durable string values addressed by fixed namespace keys."""

    def __init__(self, data_dir: str | Path) -> None:
        """
        Initialize the local store.

        Args:
            data_dir: Directory holding one file per namespace key (created on first write)
        """
        self.data_dir = Path(data_dir)

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        """
        Read the value stored under `key`.

        Returns:
            The stored string, or None if nothing has been written

        Raises:
            PersistenceError: If the value exists but cannot be read
        """
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read '{key}' from local storage: {e}",
                code="storage_read_failed",
                details={"key": key, "path": str(path)},
                original_exception=e,
            ) from e

    def set_item(self, key: str, value: str, private: bool = False) -> None:
        """
        Replace the value stored under `key`.

        Args:
            key: Namespace key
            value: New value
            private: Restrict the file to owner read/write (key material)

        Raises:
            PersistenceError: If the value could not be durably written
        """
        path = self._path_for(key)
        tmp_name: str | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            if private:
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.debug("storage_item_written", key=key, size=len(value))
        except OSError as e:
            raise PersistenceError(
                f"Failed to write '{key}' to local storage: {e}",
                code="storage_write_failed",
                details={"key": key, "path": str(path)},
                original_exception=e,
            ) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def remove_item(self, key: str) -> None:
        """
        Delete the value stored under `key`; missing values are ignored.

        Raises:
            PersistenceError: If the value exists but cannot be removed
        """
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"Failed to remove '{key}' from local storage: {e}",
                code="storage_remove_failed",
                details={"key": key, "path": str(path)},
                original_exception=e,
            ) from e

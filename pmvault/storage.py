'''
storage.py - Handles all data storage operations
This is the data core of pmvault
'''
import os
import logging
import tempfile
from typing import Optional

from .errors import IOFailure

logger = logging.getLogger(__name__)

VAULT_FILE_NAME = "vault.pmvault"


class Storage:
    """Manages persistent storage of the encrypted vault payload"""

    def __init__(self, filename: str = VAULT_FILE_NAME):
        """
        Initialize storage with a filename.

        Args:
            filename: Path of the file holding the encrypted vault
        """
        self.filename = filename

    def save(self, payload: bytes) -> None:
        """
        Atomically replace the stored payload.

        The bytes go to a temporary file in the same directory which then
        replaces the old file, so a failed write leaves the previous vault
        in place.

        Raises:
            IOFailure: If the write fails
        """
        directory = os.path.dirname(os.path.abspath(self.filename))
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".pmvault-", suffix=".tmp")
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())

                # Owner read/write only (600) on Unix-like systems
                if os.name == 'posix':
                    os.chmod(tmp_path, 0o600)

                os.replace(tmp_path, self.filename)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            logger.warning("could not write vault file %s: %s", self.filename, e)
            raise IOFailure(f"Could not write vault file: {e}") from e

        logger.debug("wrote %d bytes to %s", len(payload), self.filename)

    def load(self) -> Optional[bytes]:
        """
        Load the stored payload.

        Returns:
            The raw file bytes, or None if nothing has been stored yet

        Raises:
            IOFailure: If the file exists but cannot be read
        """
        if not self.exists():
            return None

        try:
            with open(self.filename, 'rb') as f:
                return f.read()
        except OSError as e:
            logger.warning("could not read vault file %s: %s", self.filename, e)
            raise IOFailure(f"Could not read vault file: {e}") from e

    def exists(self) -> bool:
        """
        Check if the vault file exists.

        Returns:
            True if vault file exists, False otherwise
        """
        return os.path.exists(self.filename)

    def delete(self) -> bool:
        """
        Delete the vault file (use with caution!).

        Returns:
            True if file was deleted, False if it didn't exist
        """
        if not self.exists():
            return False
        try:
            os.remove(self.filename)
        except OSError as e:
            raise IOFailure(f"Could not delete vault file: {e}") from e
        return True

    def get_file_info(self) -> Optional[dict]:
        """
        Get information about the storage file.

        Returns:
            Dictionary with file info, or None if file doesn't exist
        """
        if not self.exists():
            return None

        stat = os.stat(self.filename)
        return {
            'size': stat.st_size,
            'modified': stat.st_mtime,
            'permissions': oct(stat.st_mode)[-3:] if os.name == 'posix' else 'N/A'
        }

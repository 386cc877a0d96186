"""
manager.py - Main password manager class that orchestrates all functionality

A PasswordManager is one vault session. It owns the decrypted vault while
unlocked and re-encrypts the whole vault after every change. Master
passwords are passed into each call that needs one and are never kept.
"""
import base64
import hashlib
import hmac
import json
import logging
import os
from typing import Dict, List, Optional

import argon2
from argon2.exceptions import InvalidHashError, VerificationError

from . import crypto
from .errors import (
    AuthenticationFailure,
    MalformedBlobError,
    NoVaultLoadedError,
    VaultExistsError,
)
from .generator import GeneratorOptions, generate_password
from .models import EntryUpdate, PasswordEntry, VaultData
from .settings import SETTINGS_FILE_NAME, AppSettings, load_settings, save_settings
from .storage import VAULT_FILE_NAME, Storage
from .strength import StrengthResult, calculate_password_strength

logger = logging.getLogger(__name__)

# Static salt used by vault files from the original web client
LEGACY_HASH_SALT = "password_manager_salt"

_hasher = argon2.PasswordHasher()


def hash_master_password(master_password: str) -> str:
    """Salted one-way hash of the master password (Argon2id, encoded form)."""
    return _hasher.hash(master_password)


def check_master_password(master_password: str, password_hash: str) -> bool:
    """
    Check a master password against a stored hash.

    Argon2 hashes are verified by argon2-cffi. Anything else is treated as
    the legacy base64(SHA-256(password + salt)) form and compared in
    constant time.
    """
    if password_hash.startswith("$argon2"):
        try:
            return _hasher.verify(password_hash, master_password)
        except (VerificationError, InvalidHashError):
            return False

    digest = hashlib.sha256((master_password + LEGACY_HASH_SALT).encode("utf-8")).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected.encode("ascii"), password_hash.encode("utf-8"))


class PasswordManager:
    """Main class that combines crypto, storage, and password management"""

    def __init__(self, storage_file: str = VAULT_FILE_NAME, settings_file: Optional[str] = None):
        """
        Initialize the password manager.

        Args:
            storage_file: Path of the encrypted vault file
            settings_file: Path of the settings file (default: settings.json
                next to the vault file)
        """
        self.storage = Storage(storage_file)
        if settings_file is None:
            settings_file = os.path.join(
                os.path.dirname(os.path.abspath(storage_file)), SETTINGS_FILE_NAME
            )
        self.settings_file = settings_file
        self._vault: Optional[VaultData] = None

    @property
    def vault(self) -> VaultData:
        """The loaded vault. Raises NoVaultLoadedError when locked."""
        if self._vault is None:
            raise NoVaultLoadedError()
        return self._vault

    @property
    def is_unlocked(self) -> bool:
        return self._vault is not None

    def has_vault(self) -> bool:
        """True if a vault is loaded or persisted."""
        return self._vault is not None or self.storage.exists()

    # -- setup / load / verify ---------------------------------------------

    def setup_master_password(self, master_password: str) -> VaultData:
        """
        Create a new, empty vault protected by the master password.

        The vault is persisted straight away.

        Raises:
            VaultExistsError: If a vault is loaded or already on disk
            IOFailure: If the vault cannot be written
        """
        if self.has_vault():
            raise VaultExistsError()

        vault = VaultData(master_password_hash=hash_master_password(master_password))
        self._write(vault, master_password)
        self._vault = vault

        logger.info("created new vault at %s", self.storage.filename)
        return vault

    def load_vault(self, master_password: str, raw_blob: Optional[bytes] = None) -> VaultData:
        """
        Decrypt a vault and make it the session's vault.

        Args:
            master_password: The master password
            raw_blob: Payload bytes to decrypt (default: the persisted vault)

        Returns:
            The decrypted vault

        Raises:
            NoVaultLoadedError: If raw_blob is omitted and nothing is persisted
            AuthenticationFailure: Wrong password or tampered data
            MalformedBlobError: The payload is not a valid vault file
        """
        if raw_blob is None:
            raw_blob = self.storage.load()
            if raw_blob is None:
                raise NoVaultLoadedError("No vault exists! Set one up first.")

        # Only replace the session vault once everything has parsed
        vault = self._read(raw_blob, master_password)
        self._vault = vault

        logger.info("loaded vault with %d entries", len(vault.entries))
        return vault

    def verify_master_password(self, master_password: str) -> bool:
        """
        Quick check of a master password against the loaded vault's hash.

        Decrypting remains the authoritative check for unfamiliar files.

        Raises:
            NoVaultLoadedError: If no vault is loaded
        """
        return check_master_password(master_password, self.vault.master_password_hash)

    def save_vault(self, master_password: str) -> None:
        """Re-encrypt and persist the loaded vault."""
        self._write(self._writable_vault(master_password), master_password)

    def lock(self) -> None:
        """Drop the decrypted vault from the session"""
        self._vault = None

    # -- entries -----------------------------------------------------------

    def add_entry(
        self,
        website: str,
        username: str,
        password: str,
        notes: str = "",
        *,
        master_password: str,
    ) -> PasswordEntry:
        """
        Add a new entry and persist the vault.

        Returns:
            The stored entry, with a fresh id and timestamps

        Raises:
            NoVaultLoadedError: If no vault is loaded
            AuthenticationFailure: If master_password is not the vault's
            IOFailure: If persisting fails (the entry stays in memory)
        """
        vault = self._writable_vault(master_password)
        entry = PasswordEntry(website=website, username=username, password=password, notes=notes)
        vault.entries.append(entry)
        vault.touch()

        self._write(vault, master_password)
        return entry

    def update_entry(self, entry_id: str, changes: EntryUpdate, *, master_password: str) -> bool:
        """
        Apply changes to an entry and persist the vault.

        Returns:
            True if updated, False if no entry has that id
        """
        vault = self._writable_vault(master_password)
        entry = vault.find(entry_id)
        if entry is None:
            return False

        changes.apply(entry)
        vault.touch()

        self._write(vault, master_password)
        return True

    def delete_entry(self, entry_id: str, *, master_password: str) -> bool:
        """
        Delete an entry and persist the vault.

        Returns:
            True if deleted, False if no entry has that id
        """
        vault = self._writable_vault(master_password)
        entry = vault.find(entry_id)
        if entry is None:
            return False

        vault.entries.remove(entry)
        vault.touch()

        self._write(vault, master_password)
        return True

    def get_entry(self, entry_id: str) -> Optional[PasswordEntry]:
        return self.vault.find(entry_id)

    def list_entries(self) -> List[PasswordEntry]:
        """All entries, in insertion order"""
        return list(self.vault.entries)

    def search_entries(self, query: str) -> List[PasswordEntry]:
        """
        Search entries by website, username or notes.

        Args:
            query: Search string (case-insensitive); blank returns everything

        Returns:
            Matching entries in insertion order
        """
        entries = self.vault.entries
        if not query.strip():
            return list(entries)
        return [entry for entry in entries if entry.matches(query)]

    # -- file exchange -----------------------------------------------------

    def export_vault_file(self, master_password: str, path: Optional[str] = None) -> bytes:
        """
        Encrypt the loaded vault into a .pmvault payload.

        Args:
            master_password: The vault's master password
            path: Where to write the file (optional)

        Returns:
            The payload bytes, identical in format to the local vault file
        """
        payload = self._seal(self._writable_vault(master_password), master_password)
        if path is not None:
            Storage(path).save(payload)
            logger.info("exported vault to %s", path)
        return payload

    def import_vault_file(self, data: bytes, master_password: str) -> VaultData:
        """
        Replace the session vault with an imported .pmvault payload.

        The imported payload also becomes the persisted vault.

        Raises:
            AuthenticationFailure: Wrong password or tampered data
            MalformedBlobError: The payload is not a valid vault file
            IOFailure: If the imported vault cannot be persisted
        """
        vault = self._read(data, master_password)
        self.storage.save(data)
        self._vault = vault

        logger.info("imported vault with %d entries", len(vault.entries))
        return vault

    def clear_all_data(self) -> None:
        """Delete the persisted vault and settings and lock the session"""
        self._vault = None
        self.storage.delete()
        Storage(self.settings_file).delete()
        logger.info("cleared all vault data")

    # -- settings ----------------------------------------------------------

    def load_settings(self) -> AppSettings:
        return load_settings(self.settings_file)

    def save_settings(self, settings: AppSettings) -> None:
        save_settings(settings, self.settings_file)

    # -- stateless helpers -------------------------------------------------

    @staticmethod
    def generate_password(options: Optional[GeneratorOptions] = None, **overrides) -> str:
        return generate_password(options, **overrides)

    @staticmethod
    def calculate_password_strength(password: str) -> StrengthResult:
        return calculate_password_strength(password)

    def get_vault_info(self) -> Dict:
        """
        Get information about the vault.

        Returns:
            Dictionary with vault metadata
        """
        vault = self.vault
        return {
            "version": vault.version,
            "entry_count": len(vault.entries),
            "last_modified": vault.last_modified.isoformat(),
            "file_info": self.storage.get_file_info(),
        }

    # -- internals ---------------------------------------------------------

    def _writable_vault(self, master_password: str) -> VaultData:
        """
        The loaded vault, once master_password is confirmed to be its own.

        Re-encrypting under any other password would silently change the
        vault's password.
        """
        vault = self.vault
        if not check_master_password(master_password, vault.master_password_hash):
            raise AuthenticationFailure()
        return vault

    def _write(self, vault: VaultData, master_password: str) -> None:
        """Save the whole vault under a fresh salt and IV"""
        self.storage.save(self._seal(vault, master_password))
        logger.debug("persisted vault (%d entries)", len(vault.entries))

    @staticmethod
    def _seal(vault: VaultData, master_password: str) -> bytes:
        plaintext = json.dumps(vault.to_dict()).encode("utf-8")
        return crypto.encrypt(plaintext, master_password).to_bytes()

    @staticmethod
    def _read(raw_blob: bytes, master_password: str) -> VaultData:
        blob = crypto.EncryptedBlob.from_json(raw_blob)
        plaintext = crypto.decrypt(blob, master_password)
        try:
            document = json.loads(plaintext)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedBlobError("Decrypted payload is not valid JSON") from e
        return VaultData.from_dict(document)

"""
pmvault - Local password manager with a single encrypted vault file.

Features:
- PBKDF2-SHA256 key derivation (100,000 iterations)
- AES-256-GCM authenticated encryption of the whole vault
- Fresh salt and IV on every save
- Portable .pmvault export/import
- Secure password generation and strength scoring
"""

from .crypto import EncryptedBlob, decrypt, derive_key, encrypt
from .errors import (
    AuthenticationFailure,
    EmptyCharsetError,
    IOFailure,
    MalformedBlobError,
    NoVaultLoadedError,
    PMVaultError,
    VaultExistsError,
)
from .generator import GeneratorOptions, generate_password
from .manager import PasswordManager
from .models import EntryUpdate, PasswordEntry, VaultData
from .settings import AppSettings
from .strength import StrengthResult, calculate_password_strength

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = [
    "AppSettings",
    "AuthenticationFailure",
    "EmptyCharsetError",
    "EncryptedBlob",
    "EntryUpdate",
    "GeneratorOptions",
    "IOFailure",
    "MalformedBlobError",
    "NoVaultLoadedError",
    "PMVaultError",
    "PasswordEntry",
    "PasswordManager",
    "StrengthResult",
    "VaultData",
    "VaultExistsError",
    "calculate_password_strength",
    "decrypt",
    "derive_key",
    "encrypt",
    "generate_password",
]


def get_version():
    """Get the current version string."""
    return __version__

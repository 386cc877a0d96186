"""
crypto.py - Handles all encryption and decryption operations
This is the security core of pmvault

Every encryption derives a fresh key from the master password and a new
random salt, so the vault file carries everything needed to decrypt it
except the password itself.
"""
import os
import json
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import AuthenticationFailure, MalformedBlobError

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100000
KEY_LENGTH = 32   # 256 bits for AES-256
SALT_LENGTH = 16
IV_LENGTH = 12    # 96-bit nonce for GCM


@dataclass(frozen=True)
class EncryptedBlob:
    """An AES-256-GCM ciphertext (with tag) plus the iv and salt it needs"""
    ciphertext: bytes
    iv: bytes
    salt: bytes

    def to_dict(self) -> dict:
        """Convert to the JSON-serializable storage/exchange layout."""
        return {
            "encryptedData": base64.b64encode(self.ciphertext).decode("ascii"),
            "iv": base64.b64encode(self.iv).decode("ascii"),
            "salt": base64.b64encode(self.salt).decode("ascii"),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_bytes(self) -> bytes:
        """The exact bytes written to a .pmvault file."""
        return self.to_json().encode("utf-8")

    @classmethod
    def from_dict(cls, data: dict) -> "EncryptedBlob":
        """
        Reconstruct a blob from its storage layout.

        Raises:
            MalformedBlobError: If a field is missing, is not valid base64,
                or the iv/salt have the wrong length
        """
        if not isinstance(data, dict):
            raise MalformedBlobError("Vault payload must be a JSON object")

        fields = {}
        for name in ("encryptedData", "iv", "salt"):
            value = data.get(name)
            if not isinstance(value, str):
                raise MalformedBlobError(f"Vault payload is missing '{name}'")
            try:
                fields[name] = base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as e:
                raise MalformedBlobError(f"Vault field '{name}' is not valid base64") from e

        if len(fields["iv"]) != IV_LENGTH:
            raise MalformedBlobError(f"IV must be {IV_LENGTH} bytes")
        if len(fields["salt"]) != SALT_LENGTH:
            raise MalformedBlobError(f"Salt must be {SALT_LENGTH} bytes")

        return cls(
            ciphertext=fields["encryptedData"],
            iv=fields["iv"],
            salt=fields["salt"],
        )

    @classmethod
    def from_json(cls, payload: Union[str, bytes]) -> "EncryptedBlob":
        """Parse a .pmvault payload (str or raw file bytes)."""
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedBlobError("Vault payload is not valid JSON") from e
        return cls.from_dict(data)


def derive_key(master_password: str, salt: bytes) -> bytes:
    """
    Derive a 256-bit encryption key from the master password.

    PBKDF2-HMAC-SHA256 with 100,000 iterations. The same password and salt
    always give the same key; a different salt gives an unrelated key.

    Raises:
        ValueError: If the salt is not 16 bytes
    """
    if len(salt) != SALT_LENGTH:
        raise ValueError(f"Salt must be {SALT_LENGTH} bytes, got {len(salt)}")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(master_password.encode("utf-8"))


def encrypt(plaintext: bytes, master_password: str) -> EncryptedBlob:
    """
    Encrypt bytes under the master password with AES-256-GCM.

    A new salt and IV are drawn on every call, so encrypting the same
    plaintext twice gives two unrelated blobs.
    """
    # Step 1: fresh salt and nonce
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)

    # Step 2: per-operation key
    key = derive_key(master_password, salt)

    # Step 3: authenticated encryption, tag appended to the ciphertext
    ciphertext = AESGCM(key).encrypt(iv, plaintext, None)

    logger.debug("encrypted %d bytes", len(plaintext))
    return EncryptedBlob(ciphertext=ciphertext, iv=iv, salt=salt)


def decrypt(blob: EncryptedBlob, master_password: str) -> bytes:
    """
    Decrypt a blob and return the original bytes.

    Raises:
        AuthenticationFailure: If the password is wrong or the data has
            been tampered with (GCM tag does not verify)
    """
    key = derive_key(master_password, blob.salt)
    try:
        return AESGCM(key).decrypt(blob.iv, blob.ciphertext, None)
    except InvalidTag:
        logger.info("vault authentication failed")
        raise AuthenticationFailure() from None

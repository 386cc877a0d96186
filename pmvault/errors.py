"""
errors.py - Exceptions raised by the pmvault core
"""


class PMVaultError(Exception):
    """Base class for every error raised by pmvault"""


class AuthenticationFailure(PMVaultError):
    """
    The vault could not be decrypted.

    Raised for a wrong master password and for a tampered or corrupted
    ciphertext alike. The two cases cannot be told apart.
    """

    def __init__(self, message: str = "Invalid master password or corrupted data"):
        super().__init__(message)


class EmptyCharsetError(PMVaultError, ValueError):
    """Password generation was requested with no character class enabled"""

    def __init__(self, message: str = "At least one character type must be selected"):
        super().__init__(message)


class NoVaultLoadedError(PMVaultError):
    """An operation needs a vault but none is loaded (or persisted)"""

    def __init__(self, message: str = "No vault is loaded. Set up or load a vault first."):
        super().__init__(message)


class VaultExistsError(PMVaultError):
    """First-time setup was attempted over an existing vault"""

    def __init__(self, message: str = "Vault already exists! Load it instead."):
        super().__init__(message)


class MalformedBlobError(PMVaultError):
    """Stored or imported bytes are not a structurally valid vault payload"""


class IOFailure(PMVaultError):
    """Reading or writing the persisted vault bytes failed"""

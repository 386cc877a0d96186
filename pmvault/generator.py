"""
generator.py - Secure password generation using cryptographically secure randomness
"""
import secrets
import string
from dataclasses import dataclass, replace
from typing import List, Optional

from .errors import EmptyCharsetError

LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
NUMBERS = string.digits
SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


@dataclass
class GeneratorOptions:
    """
    Options for generate_password.

    numbers_count / symbols_count are minimums; when left as None they
    default to 20% and 15% of the length.
    """
    length: int = 16
    include_uppercase: bool = True
    include_lowercase: bool = True
    include_numbers: bool = True
    include_symbols: bool = True
    numbers_count: Optional[int] = None
    symbols_count: Optional[int] = None

    @property
    def required_numbers(self) -> int:
        if self.numbers_count is None:
            return int(self.length * 0.2)
        return self.numbers_count

    @property
    def required_symbols(self) -> int:
        if self.symbols_count is None:
            return int(self.length * 0.15)
        return self.symbols_count

    def charset(self) -> str:
        """Every character the enabled classes allow."""
        characters = ""
        if self.include_lowercase:
            characters += LOWERCASE
        if self.include_uppercase:
            characters += UPPERCASE
        if self.include_numbers:
            characters += NUMBERS
        if self.include_symbols:
            characters += SYMBOLS
        return characters


def generate_password(options: Optional[GeneratorOptions] = None, **overrides) -> str:
    """
    Generate a cryptographically secure random password.

    Args:
        options: GeneratorOptions (default: 16 chars, every class enabled)
        **overrides: Individual GeneratorOptions fields to change

    Returns:
        A password of exactly options.length characters holding at least
        the requested number of digits and symbols

    Raises:
        EmptyCharsetError: If no character class is enabled
        ValueError: If length < 1 or a minimum count is negative
    """
    options = replace(options or GeneratorOptions(), **overrides)

    if options.length < 1:
        raise ValueError("Password length must be at least 1")
    if (options.numbers_count or 0) < 0 or (options.symbols_count or 0) < 0:
        raise ValueError("Character counts cannot be negative")

    characters = options.charset()
    if not characters:
        raise EmptyCharsetError()

    password: List[str] = []

    # Required characters first, never more than the length allows
    requirements = []
    if options.include_numbers and options.required_numbers > 0:
        requirements.append((NUMBERS, options.required_numbers))
    if options.include_symbols and options.required_symbols > 0:
        requirements.append((SYMBOLS, options.required_symbols))

    for chars, count in requirements:
        count = min(count, options.length - len(password))
        password.extend(secrets.choice(chars) for _ in range(count))

    # Fill the rest from the full charset
    while len(password) < options.length:
        password.append(secrets.choice(characters))

    _shuffle(password)
    return "".join(password)


def _shuffle(chars: List[str]) -> None:
    """Fisher-Yates shuffle in place with a secure random source."""
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]

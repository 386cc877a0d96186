"""Test password generation."""

import string

import hypothesis
import pytest
from hypothesis import strategies

from pmvault.errors import EmptyCharsetError
from pmvault.generator import SYMBOLS, GeneratorOptions, generate_password


def count_in(password, chars):
    return sum(1 for c in password if c in chars)


@hypothesis.given(
    length=strategies.integers(min_value=1, max_value=64),
    flags=strategies.tuples(*[strategies.booleans()] * 4).filter(any),
    numbers_count=strategies.one_of(strategies.none(), strategies.integers(0, 80)),
    symbols_count=strategies.one_of(strategies.none(), strategies.integers(0, 80)),
)
def test_length_is_exact(length, flags, numbers_count, symbols_count):
    upper, lower, numbers, symbols = flags
    options = GeneratorOptions(
        length=length,
        include_uppercase=upper,
        include_lowercase=lower,
        include_numbers=numbers,
        include_symbols=symbols,
        numbers_count=numbers_count,
        symbols_count=symbols_count,
    )
    assert len(generate_password(options)) == length


@hypothesis.given(length=strategies.integers(min_value=1, max_value=64))
def test_only_enabled_classes_appear(length):
    password = generate_password(
        length=length, include_uppercase=False, include_symbols=False,
    )
    assert all(c in string.ascii_lowercase + string.digits for c in password)


def test_digits_only():
    password = generate_password(
        GeneratorOptions(
            length=32,
            include_uppercase=False,
            include_lowercase=False,
            include_numbers=True,
            include_symbols=False,
        )
    )
    assert len(password) == 32
    assert password.isdigit()


def test_no_class_enabled():
    options = GeneratorOptions(
        length=10,
        include_uppercase=False,
        include_lowercase=False,
        include_numbers=False,
        include_symbols=False,
    )
    with pytest.raises(EmptyCharsetError):
        generate_password(options)


def test_empty_charset_is_a_value_error():
    with pytest.raises(ValueError, match="character type"):
        generate_password(include_uppercase=False, include_lowercase=False,
                          include_numbers=False, include_symbols=False)


@pytest.mark.parametrize("length", [0, -1])
def test_rejects_non_positive_length(length):
    with pytest.raises(ValueError):
        generate_password(length=length)


def test_rejects_negative_counts():
    with pytest.raises(ValueError):
        generate_password(numbers_count=-1)


def test_defaults():
    password = generate_password()
    assert len(password) == 16
    # 20% of 16 digits, 15% of 16 symbols
    assert count_in(password, string.digits) >= 3
    assert count_in(password, SYMBOLS) >= 2


@pytest.mark.parametrize("length,numbers,symbols", [
    (20, 4, 3),
    (10, 2, 1),
    (5, 1, 0),
])
def test_default_minimums_scale_with_length(length, numbers, symbols):
    options = GeneratorOptions(length=length)
    assert options.required_numbers == numbers
    assert options.required_symbols == symbols
    for _ in range(20):
        password = generate_password(options)
        assert count_in(password, string.digits) >= numbers
        assert count_in(password, SYMBOLS) >= symbols


def test_explicit_minimums_are_lower_bounds():
    options = GeneratorOptions(length=12, numbers_count=5, symbols_count=4)
    for _ in range(20):
        password = generate_password(options)
        assert count_in(password, string.digits) >= 5
        assert count_in(password, SYMBOLS) >= 4


def test_minimums_larger_than_length_are_capped():
    options = GeneratorOptions(length=4, numbers_count=10, symbols_count=10)
    password = generate_password(options)
    assert len(password) == 4
    # digits are placed first and fill the whole length
    assert password.isdigit()


def test_minimum_ignored_for_disabled_class():
    password = generate_password(
        length=20, include_numbers=False, numbers_count=10,
    )
    assert count_in(password, string.digits) == 0


def test_required_characters_are_shuffled():
    options = GeneratorOptions(
        length=10, include_uppercase=False, include_symbols=False, numbers_count=2,
    )
    first_chars = {generate_password(options)[0] for _ in range(60)}
    assert any(c in string.ascii_lowercase for c in first_chars)


def test_passwords_differ():
    passwords = {generate_password(length=16) for _ in range(20)}
    assert len(passwords) == 20

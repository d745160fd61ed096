"""
Public identifier generation.

IBO numbers and sponsor numbers are short uppercase base36 codes that
distributors share as referral codes (e.g. IBO-4K2J9QXA, SP-7ZK3PQ).
"""

import secrets
import string
import time

_BASE36_ALPHABET = string.digits + string.ascii_uppercase


def random_base36(length: int) -> str:
    """Return a random uppercase base36 string of the given length."""
    return "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(length))


def to_base36(number: int) -> str:
    """Encode a non-negative integer in uppercase base36."""
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"

    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def make_identifier(prefix: str, length: int) -> str:
    """Build a random identifier like 'IBO-4K2J9QXA'."""
    return f"{prefix}-{random_base36(length)}"


def make_fallback_identifier(prefix: str) -> str:
    """Build a timestamp-based identifier once random attempts are exhausted."""
    return f"{prefix}-{to_base36(time.time_ns() // 1_000_000)}"


def normalize_referral_code(code: str) -> str:
    """Strip whitespace and uppercase a referral code."""
    return code.strip().upper()

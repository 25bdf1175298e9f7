"""
Random string generator for vanity slugs and bot tokens.

Uses the secrets module so tokens are safe to hand out as credentials.
"""

import secrets
import string

ALPHABET = string.ascii_letters + string.digits


def rand_string(length: int) -> str:
    """
    Generate a random alphanumeric string.

    Args:
        length: Number of characters

    Returns:
        A fresh random string; never cached or reused
    """
    if length < 0:
        raise ValueError("length must not be negative")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

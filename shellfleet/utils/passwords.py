"""Random password generation for new accounts."""

import secrets
import string

SYMBOLS = "!@#$%^&*"


def generate_password(length: int = 12) -> str:
    """Generate a password with at least one lower, upper, digit and symbol.

    Args:
        length: Total length, minimum 4

    Returns:
        Randomly shuffled password
    """
    if length < 4:
        raise ValueError(f"length must be >= 4, got {length}")

    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS]
    alphabet = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)

"""ULID identifiers used for primary keys, lock tokens and request ids."""

import ulid


def generate_ulid() -> str:
    return str(ulid.ULID())


def is_valid_ulid(value: str) -> bool:
    """True for a 26-character Crockford base32 ULID string."""
    try:
        ulid.ULID.from_str(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True

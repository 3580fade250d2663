import uuid
from typing import Optional

from linkguard.core.config import settings

# Base36 alphabet (lowercase only for case-insensitive URLs)
ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(ALPHABET)


def generate_short_code(length: Optional[int] = None) -> str:
    """Fixed-length lowercase code cut from a random UUID4 (122 random bits).

    Uniqueness is not guaranteed; callers retry on an insert conflict.
    """
    length = length or settings.SHORT_CODE_LENGTH
    encoded = encode_base36(uuid.uuid4().int)
    # low-order digits, left-padded in the (unlikely) case of a short encoding
    return encoded[-length:].rjust(length, ALPHABET[0])


def normalize_short_code(code: str) -> str:
    """Normalize short code to lowercase for case-insensitive lookups."""
    return code.lower().strip()


def encode_base36(num: int) -> str:
    if num == 0:
        return ALPHABET[0]
    out = []
    while num:
        num, rem = divmod(num, BASE)
        out.append(ALPHABET[rem])
    return ''.join(reversed(out))

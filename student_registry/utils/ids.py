import secrets
import time
from typing import Optional

_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, rem = divmod(n, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_unique_id(prefix: str = "STU", now_ms: Optional[int] = None) -> str:
    """`<prefix><base36 ms timestamp><5 random base36 chars>`, e.g. STUM3X9K2QF7A2BC."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    random_part = "".join(secrets.choice(_ALPHABET) for _ in range(5))
    return f"{prefix}{_base36(now_ms)}{random_part}"

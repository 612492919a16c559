# webauth/domain/services.py
from __future__ import annotations

import hmac
import secrets

# secrets draws from a single module-level SystemRandom (OS entropy); it is
# never reseeded and is safe to share between tasks and threads.


def generate_key() -> str:
    """128-bit random token, hex-encoded without separators."""
    return secrets.token_hex(16)


def generate_code() -> str:
    """Zero-padded 6-digit numeric code."""
    return f"{secrets.randbelow(1_000_000):06d}"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        # hmac.compare_digest supports str if types match
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))

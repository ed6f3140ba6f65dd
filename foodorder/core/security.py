"""
Secret hashing helpers.

Customer passwords and payment-method secrets are stored only as one-way
hashes produced by werkzeug; verification goes through check_password_hash,
which compares in constant time.
"""

from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


def hash_secret(secret: str) -> str:
    """Hash a plain-text secret for storage."""
    if secret is None:
        raise ValueError("Secret cannot be None")
    return generate_password_hash(secret)


def verify_secret(secret: Optional[str], stored_hash: Optional[str]) -> bool:
    """Check a plain-text secret against a stored hash."""
    if secret is None or not stored_hash:
        return False
    return check_password_hash(stored_hash, secret)

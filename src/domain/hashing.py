"""
Hashing primitive - salted password hashes and token material.

Passwords are hashed with bcrypt against an explicitly stored salt, so
hash_password(password, salt) is deterministic and verification is a
recompute-and-compare. Token material is a SHA-256 digest over the
identity, the issue time and 128 bits from the OS CSPRNG.
"""

import hashlib
import secrets

import bcrypt

from .exceptions import Fatal

BCRYPT_MAX_PASSWORD_BYTES = 72


def generate_salt(rounds: int = 10) -> str:
    """
    Generate a fresh bcrypt salt.

    Raises:
        Fatal: the operating system could not provide randomness
    """
    try:
        return bcrypt.gensalt(rounds=rounds).decode()
    except OSError as exc:
        raise Fatal("Unable to generate salt") from exc


def hash_password(password: str, salt: str) -> str:
    """
    Hash a password with the given bcrypt salt.

    Raises:
        ValueError: password longer than BCRYPT_MAX_PASSWORD_BYTES, or a
            malformed salt
    """
    encoded = password.encode()
    # Older bcrypt releases truncate silently instead of raising
    if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
        raise ValueError(f"Password exceeds {BCRYPT_MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(encoded, salt.encode()).decode()



def verify_password(password: str, password_hash: str, salt: str) -> bool:
    """
    Recompute the salted hash and compare it in constant time.

    A hash produced under a different salt never verifies, even when the
    password matches.
    """
    if not password_hash or not salt:
        return False
    try:
        candidate = hash_password(password, salt)
    except ValueError:
        # Malformed salt or over-long password
        return False
    return secrets.compare_digest(candidate.encode(), password_hash.encode())


def derive_token(identity: str, issued_at: int) -> str:
    """
    Derive an opaque, URL-safe token for the given identity.

    Raises:
        Fatal: the operating system could not provide randomness
    """
    try:
        salt = secrets.token_hex(16)
    except OSError as exc:
        raise Fatal("Unable to generate token") from exc
    material = f"{identity}:{issued_at}:{salt}"
    return hashlib.sha256(material.encode()).hexdigest()

"""
Key Derivation Functions
========================

Turns a human-chosen master secret into a fixed-size cipher key.

Implements:
    - Argon2id for memory-hard derivation (default provider)
    - PBKDF2-HMAC-SHA256 (ChaCha20 provider)
"""

from __future__ import annotations

from typing import Final

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# Argon2id parameters (OWASP recommended)
ARGON2_TIME_COST: Final[int] = 3
ARGON2_MEMORY_COST: Final[int] = 65536  # 64 MB
ARGON2_PARALLELISM: Final[int] = 4

# Lower bounds accepted from configuration
ARGON2_MIN_MEMORY_COST: Final[int] = 8192  # 8 MB
ARGON2_MIN_TIME_COST: Final[int] = 1

PBKDF2_ITERATIONS: Final[int] = 600_000
PBKDF2_MIN_ITERATIONS: Final[int] = 100_000

SALT_SIZE: Final[int] = 16


def derive_key_argon2(
    secret: bytes,
    salt: bytes,
    length: int = 32,
    time_cost: int = ARGON2_TIME_COST,
    memory_cost: int = ARGON2_MEMORY_COST,
    parallelism: int = ARGON2_PARALLELISM,
) -> bytes:
    """
    Derive a key from a secret using Argon2id.

    Args:
        secret: Master secret bytes
        salt: Random salt (at least 8 bytes)
        length: Output key length
        time_cost: Number of iterations
        memory_cost: Memory usage in KiB
        parallelism: Degree of parallelism

    Returns:
        Derived key bytes
    """
    return hash_secret_raw(
        secret=secret,
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=length,
        type=Type.ID,
    )


def derive_key_pbkdf2(
    secret: bytes,
    salt: bytes,
    length: int = 32,
    iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """
    Derive a key from a secret using PBKDF2-HMAC-SHA256.

    Args:
        secret: Master secret bytes
        salt: Random salt
        length: Output key length
        iterations: PBKDF2 iteration count

    Returns:
        Derived key bytes
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(secret)

"""
AES-256-GCM Provider
====================

Default crypto provider: Argon2id key derivation + AES-256-GCM.

NIST SP 800-38D Compliance:
    - GCM mode with 96-bit IV
    - Unique nonce for each encryption under same key
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from argon2.exceptions import HashingError
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from passvault.core.crypto.base import CryptoProvider
from passvault.core.crypto.kdf import (
    ARGON2_MEMORY_COST,
    ARGON2_MIN_MEMORY_COST,
    ARGON2_MIN_TIME_COST,
    ARGON2_PARALLELISM,
    ARGON2_TIME_COST,
    derive_key_argon2,
)
from passvault.errors import DecryptionError

if TYPE_CHECKING:
    from passvault.core.config import SecuritySettings


class AesGcmProvider(CryptoProvider):
    """
    AES-256-GCM authenticated encryption keyed by Argon2id.

    Usage:
        provider = AesGcmProvider()
        key = provider.derive_key("master secret")
        blob = provider.encrypt(key, plaintext)
        plaintext = provider.decrypt(key, blob)
    """

    identifier = "aes"
    algorithm_code = 1

    __slots__ = ("_time_cost", "_memory_cost", "_parallelism")

    def __init__(
        self,
        time_cost: int = ARGON2_TIME_COST,
        memory_cost: int = ARGON2_MEMORY_COST,
        parallelism: int = ARGON2_PARALLELISM,
    ) -> None:
        if memory_cost < ARGON2_MIN_MEMORY_COST:
            raise ValueError(f"memory_cost must be at least {ARGON2_MIN_MEMORY_COST} KiB")
        if time_cost < ARGON2_MIN_TIME_COST:
            raise ValueError(f"time_cost must be at least {ARGON2_MIN_TIME_COST}")
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")

        self._time_cost = time_cost
        self._memory_cost = memory_cost
        self._parallelism = parallelism

    @classmethod
    def from_settings(cls, settings: "SecuritySettings") -> "AesGcmProvider":
        return cls(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def kdf(self, secret: bytes, salt: bytes) -> bytes:
        try:
            return derive_key_argon2(
                secret,
                salt,
                length=self.key_size,
                time_cost=self._time_cost,
                memory_cost=self._memory_cost,
                parallelism=self._parallelism,
            )
        except HashingError as e:
            # Argon2 rejects salts shorter than 8 bytes
            raise DecryptionError() from e

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes, aad: bytes) -> bytes:
        return AESGCM(key).encrypt(nonce, plaintext, aad)

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes, aad: bytes) -> bytes:
        # Raises InvalidTag before any plaintext is returned
        return AESGCM(key).decrypt(nonce, ciphertext, aad)

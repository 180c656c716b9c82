"""
ChaCha20-Poly1305 Provider
==========================

Alternative crypto provider: PBKDF2-HMAC-SHA256 key derivation +
ChaCha20-Poly1305 (RFC 8439).

Useful where AES-NI is unavailable; ChaCha20 is constant-time in
software.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from passvault.core.crypto.base import CryptoProvider
from passvault.core.crypto.kdf import (
    PBKDF2_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
    derive_key_pbkdf2,
)

if TYPE_CHECKING:
    from passvault.core.config import SecuritySettings


class ChaCha20Provider(CryptoProvider):
    """ChaCha20-Poly1305 AEAD keyed by PBKDF2."""

    identifier = "chacha20"
    algorithm_code = 2

    __slots__ = ("_iterations",)

    def __init__(self, iterations: int = PBKDF2_ITERATIONS) -> None:
        if iterations < PBKDF2_MIN_ITERATIONS:
            raise ValueError(f"iterations must be at least {PBKDF2_MIN_ITERATIONS:,}")
        self._iterations = iterations

    @classmethod
    def from_settings(cls, settings: "SecuritySettings") -> "ChaCha20Provider":
        return cls(iterations=settings.pbkdf2_iterations)

    def kdf(self, secret: bytes, salt: bytes) -> bytes:
        return derive_key_pbkdf2(secret, salt, length=self.key_size, iterations=self._iterations)

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes, aad: bytes) -> bytes:
        return ChaCha20Poly1305(key).encrypt(nonce, plaintext, aad)

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes, aad: bytes) -> bytes:
        return ChaCha20Poly1305(key).decrypt(nonce, ciphertext, aad)

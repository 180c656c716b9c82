"""
PassVault Cryptographic Core
============================

Pluggable authenticated encryption of the password database.

Providers:
    1. "aes": Argon2id + AES-256-GCM (default)
    2. "chacha20": PBKDF2-HMAC-SHA256 + ChaCha20-Poly1305

Security Properties:
    - All encryption is authenticated (AEAD)
    - Keys never touch disk (memory-only)
    - Fresh random nonce per encryption
"""

from passvault.core.crypto.base import CryptoProvider, MasterKey
from passvault.core.crypto.aes_gcm import AesGcmProvider
from passvault.core.crypto.chacha20 import ChaCha20Provider

DEFAULT_CRYPTO_ID = AesGcmProvider.identifier

__all__ = [
    "CryptoProvider",
    "MasterKey",
    "AesGcmProvider",
    "ChaCha20Provider",
    "DEFAULT_CRYPTO_ID",
]

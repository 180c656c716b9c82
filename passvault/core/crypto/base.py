"""
Crypto Provider Contract
========================

A crypto provider derives a key from the master secret and performs
authenticated encryption of the serialized password database.

Blob Format:
    MAGIC (4) | VERSION (1) | ALGORITHM (1) | SALT_LEN (1) |
    SALT | NONCE (12) | CIPHERTEXT + TAG

The whole header (everything before the ciphertext) is bound as
associated data, so any header modification fails authentication.

Security Properties:
    - Fresh random nonce per encryption call
    - KDF salt travels with the blob so the key can be re-derived on load
    - Wrong key, wrong provider or tampering all raise DecryptionError
"""

from __future__ import annotations

import hmac
import secrets
import struct
from abc import ABC, abstractmethod
from typing import ClassVar, Final

from cryptography.exceptions import InvalidTag

from passvault.core.crypto.kdf import SALT_SIZE
from passvault.core.memory import secure_zero
from passvault.errors import CryptoError, DecryptionError, InvalidMasterSecretError

MAGIC_BYTES: Final[bytes] = b"PVDB"  # PassVault DataBase
BLOB_VERSION: Final[int] = 1
NONCE_SIZE: Final[int] = 12  # 96 bits
TAG_SIZE: Final[int] = 16  # 128 bits
_HEADER: Final[struct.Struct] = struct.Struct("<4sBBB")


class MasterKey:
    """
    Key material derived from a master secret.

    Holds the derived key for the salt it was created with. The master
    secret is retained in a wipeable buffer so a blob written under a
    different salt can still be opened with the same ``MasterKey``.

    Call ``wipe()`` once the key is no longer needed.
    """

    __slots__ = ("_provider", "_secret", "_salt", "_key", "_wiped")

    def __init__(
        self,
        provider: "CryptoProvider",
        secret: bytearray,
        salt: bytes,
        key: bytearray,
    ) -> None:
        self._provider = provider
        self._secret = secret
        self._salt = salt
        self._key = key
        self._wiped = False

    @property
    def provider_id(self) -> str:
        return self._provider.identifier

    @property
    def salt(self) -> bytes:
        return self._salt

    def key_for_salt(self, salt: bytes) -> bytes:
        """Return the key for ``salt``, re-deriving when it differs."""
        if self._wiped:
            raise CryptoError("key material has been wiped")
        if hmac.compare_digest(salt, self._salt):
            return bytes(self._key)
        return self._provider.kdf(bytes(self._secret), salt)

    def wipe(self) -> None:
        if not self._wiped:
            secure_zero(self._secret)
            secure_zero(self._key)
            self._wiped = True

    def __repr__(self) -> str:
        """Safe representation without exposing key material."""
        state = "WIPED" if self._wiped else f"salt_len={len(self._salt)}"
        return f"MasterKey(provider={self.provider_id!r}, {state})"


class CryptoProvider(ABC):
    """
    Base class for authenticated password-database encryption.

    Subclasses supply the KDF and the AEAD primitive; the blob layout and
    nonce handling live here.
    """

    __slots__ = ()

    identifier: ClassVar[str]
    algorithm_code: ClassVar[int]
    key_size: ClassVar[int] = 32

    def derive_key(self, master_secret: str, salt: bytes | None = None) -> MasterKey:
        """
        Derive a key from the master secret.

        Args:
            master_secret: Human-chosen secret
            salt: Salt to derive with; a fresh random salt if None

        Returns:
            MasterKey bound to this provider

        Raises:
            InvalidMasterSecretError: If the master secret is empty
        """
        if not master_secret:
            raise InvalidMasterSecretError("must not be empty")
        if salt is None:
            salt = secrets.token_bytes(SALT_SIZE)

        secret = bytearray(master_secret.encode("utf-8"))
        key = bytearray(self.kdf(bytes(secret), salt))
        return MasterKey(self, secret, salt, key)

    def encrypt(self, key: MasterKey, plaintext: bytes) -> bytes:
        """
        Encrypt plaintext into a self-contained blob.

        A new random nonce is generated for every call.
        """
        self._check_key(key)
        salt = key.salt
        nonce = secrets.token_bytes(NONCE_SIZE)
        header = (
            _HEADER.pack(MAGIC_BYTES, BLOB_VERSION, self.algorithm_code, len(salt))
            + salt
            + nonce
        )
        ciphertext = self.seal(key.key_for_salt(salt), nonce, plaintext, header)
        return header + ciphertext

    def decrypt(self, key: MasterKey, blob: bytes) -> bytes:
        """
        Verify and decrypt a blob produced by ``encrypt``.

        Raises:
            DecryptionError: On malformed blob, wrong key or tampering
        """
        self._check_key(key)
        salt, nonce, header_len = self._parse_header(blob)
        try:
            return self.open(key.key_for_salt(salt), nonce, blob[header_len:], blob[:header_len])
        except InvalidTag as e:
            raise DecryptionError() from e

    def read_salt(self, blob: bytes) -> bytes:
        """Return the KDF salt stored in a blob header."""
        salt, _, _ = self._parse_header(blob)
        return salt

    def _parse_header(self, blob: bytes) -> tuple[bytes, bytes, int]:
        if len(blob) < _HEADER.size:
            raise DecryptionError()
        magic, version, algorithm, salt_len = _HEADER.unpack_from(blob)
        if magic != MAGIC_BYTES or version != BLOB_VERSION:
            raise DecryptionError()
        if algorithm != self.algorithm_code or salt_len != SALT_SIZE:
            raise DecryptionError()

        salt_end = _HEADER.size + salt_len
        nonce_end = salt_end + NONCE_SIZE
        if len(blob) < nonce_end + TAG_SIZE:
            raise DecryptionError()
        return blob[_HEADER.size:salt_end], blob[salt_end:nonce_end], nonce_end

    def _check_key(self, key: MasterKey) -> None:
        if key.provider_id != self.identifier:
            raise CryptoError(
                f"key derived by {key.provider_id!r} used with {self.identifier!r}"
            )

    @abstractmethod
    def kdf(self, secret: bytes, salt: bytes) -> bytes:
        """Derive ``key_size`` bytes from ``secret`` and ``salt``."""

    @abstractmethod
    def seal(self, key: bytes, nonce: bytes, plaintext: bytes, aad: bytes) -> bytes:
        """AEAD-encrypt; returns ciphertext with appended tag."""

    @abstractmethod
    def open(self, key: bytes, nonce: bytes, ciphertext: bytes, aad: bytes) -> bytes:
        """AEAD-decrypt; raises ``InvalidTag`` on failure."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r})"

"""
In-Memory Storage Backend
=========================

Keeps the encrypted blob in process memory. Nothing survives the
process; intended for ephemeral stores and tests.
"""

from __future__ import annotations

from typing import Mapping, Optional

from passvault.core.storage.base import StorageBackend
from passvault.errors import ConfigurationError, StorageNotFoundError


class MemoryStorage(StorageBackend):
    """Process-local whole-blob storage."""

    identifier = "memory"

    def __init__(self, name: str = "memory") -> None:
        self._name = name
        self._blob: Optional[bytes] = None

    @classmethod
    def from_options(cls, options: Mapping[str, str]) -> "MemoryStorage":
        unknown = set(options) - {"name"}
        if unknown:
            raise ConfigurationError("storage", f"unknown memory storage options: {sorted(unknown)}")
        return cls(name=options.get("name", "memory"))

    @property
    def location(self) -> str:
        return f"memory:{self._name}"

    def exists(self) -> bool:
        return self._blob is not None

    def read(self) -> bytes:
        if self._blob is None:
            raise StorageNotFoundError(self.location)
        return self._blob

    def write(self, blob: bytes) -> None:
        self._blob = bytes(blob)

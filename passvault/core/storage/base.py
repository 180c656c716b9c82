"""
Storage Backend Contract
========================

A storage backend reads and writes one opaque encrypted blob.

Rules:
- ``read`` on a never-written medium raises StorageNotFoundError
- ``write`` replaces the whole blob; there is no append or patch
- Only ciphertext is ever handed to ``write``

Remote backends receive their options under the ``OPTION_*`` keys below:
the remote directory, the remote file name and a local token-cache path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Final, Mapping

OPTION_DIRECTORY: Final[str] = "directory"
OPTION_PASSWORD_DB_FILE: Final[str] = "password_db_file"
OPTION_TOKEN_FILE_PATH: Final[str] = "token_file_path"


class StorageBackend(ABC):
    """Base class for whole-blob storage media."""

    identifier: ClassVar[str]

    @classmethod
    @abstractmethod
    def from_options(cls, options: Mapping[str, str]) -> "StorageBackend":
        """
        Construct from a resolved string-to-string option mapping.

        Raises:
            ConfigurationError: On missing, unknown or invalid options
        """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location of the medium (no secrets)."""

    @abstractmethod
    def exists(self) -> bool:
        """Whether the medium holds a blob."""

    @abstractmethod
    def read(self) -> bytes:
        """
        Read the stored blob.

        Raises:
            StorageNotFoundError: If nothing has been written yet
            StorageError: If the medium cannot be read
        """

    @abstractmethod
    def write(self, blob: bytes) -> None:
        """
        Replace the stored blob.

        Raises:
            StorageError: If the medium cannot be written
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(location={self.location!r})"

"""
File Storage Backend
====================

Stores the encrypted password database in a single local file.

Security Features:
- Atomic replace: data is written to a temporary file in the same
  directory, fsync'd, then renamed over the target
- Configurable permission bits (default 0640)
- Parent directory created owner-only
"""

from __future__ import annotations

import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Final, Mapping

from passvault.core.storage.base import StorageBackend
from passvault.errors import ConfigurationError, StorageError, StorageNotFoundError

logger = logging.getLogger(__name__)

OPTION_PATH: Final[str] = "path"
OPTION_PERMISSION: Final[str] = "permission"
DEFAULT_PERMISSION: Final[str] = "0640"

_IS_WINDOWS: Final[bool] = platform.system().lower() == "windows"


def parse_permission(value: str) -> int:
    """
    Parse an octal permission string such as ``"0640"``.

    Raises:
        ConfigurationError: If the value is not a valid octal mode
    """
    try:
        mode = int(value, 8)
    except (TypeError, ValueError):
        raise ConfigurationError(OPTION_PERMISSION, f"not an octal mode: {value!r}") from None
    if not 0 <= mode <= 0o777:
        raise ConfigurationError(OPTION_PERMISSION, f"out of range: {value!r}")
    return mode


class FileStorage(StorageBackend):
    """
    Local file storage with atomic whole-file replacement.

    Usage:
        storage = FileStorage(path="/home/me/password-manager/password-db")
        storage.write(blob)
        blob = storage.read()
    """

    identifier = "file"

    def __init__(self, path: str | Path | None = None, permission: str = DEFAULT_PERMISSION) -> None:
        if not path:
            raise ConfigurationError(OPTION_PATH, "file storage requires a path")
        self._path = Path(path).expanduser()
        self._mode = parse_permission(permission)

    @classmethod
    def from_options(cls, options: Mapping[str, str]) -> "FileStorage":
        unknown = set(options) - {OPTION_PATH, OPTION_PERMISSION}
        if unknown:
            raise ConfigurationError("storage", f"unknown file storage options: {sorted(unknown)}")
        return cls(
            path=options.get(OPTION_PATH),
            permission=options.get(OPTION_PERMISSION, DEFAULT_PERMISSION),
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def mode(self) -> int:
        return self._mode

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.is_file()

    def read(self) -> bytes:
        try:
            return self._path.read_bytes()
        except FileNotFoundError as e:
            raise StorageNotFoundError(self.location) from e
        except OSError as e:
            raise StorageError("read", self.location) from e

    def write(self, blob: bytes) -> None:
        directory = self._path.parent
        tmp_name = None
        try:
            directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(blob)
                handle.flush()
                os.fsync(handle.fileno())
            if not _IS_WINDOWS:
                os.chmod(tmp_name, self._mode)
            os.replace(tmp_name, self._path)
            tmp_name = None
            self._sync_directory(directory)
        except OSError as e:
            raise StorageError("write", self.location) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass

        logger.debug("Wrote %d bytes to %s", len(blob), self.location)

    @staticmethod
    def _sync_directory(directory: Path) -> None:
        """Persist the rename itself (POSIX only)."""
        if _IS_WINDOWS:
            return
        fd = os.open(directory, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

"""
PassVault Error Taxonomy
========================

Structured exceptions raised by the password repository and its
pluggable components.

Errors carry the offending identifiers as attributes rather than
pre-formatted messages. Human-readable text is produced at the
presentation boundary (see ``passvault.cli.describe_error``), so callers
and tests can match on kind + payload.

Security Notes:
- No error ever carries a master secret, password or key material
- Integrity failures never reveal whether the cause was a wrong
  master secret or a corrupted blob
"""

from __future__ import annotations

from typing import Optional, Sequence


class PassVaultError(Exception):
    """Base class for every error raised by PassVault."""
    pass


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(PassVaultError):
    """Raised when configuration values are missing or invalid."""

    def __init__(self, setting: str, reason: str = "") -> None:
        super().__init__(setting, reason)
        self.setting = setting
        self.reason = reason


class UnknownComponentError(ConfigurationError):
    """
    Raised when a crypto provider, storage backend or importer identifier
    is not registered.

    Attributes:
        kind: Component family ("crypto", "storage" or "importer")
        identifier: The identifier that could not be resolved
    """

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(kind, f"unknown identifier {identifier!r}")
        self.args = (kind, identifier)
        self.kind = kind
        self.identifier = identifier


# ---------------------------------------------------------------------------
# Repository state
# ---------------------------------------------------------------------------


class RepositoryError(PassVaultError):
    """Base class for repository lifecycle errors."""
    pass


class RepositoryNotInitializedError(RepositoryError):
    """The storage medium has never been written; ``init`` is required."""
    pass


class RepositoryExistsError(RepositoryError):
    """``init`` was called against a medium that already holds a store."""
    pass


class RepositoryOpenError(RepositoryError):
    """
    The persisted store could not be opened.

    Wrong master secret, corrupted blob and unreadable plaintext all
    surface as this single error. The underlying cause is chained on
    ``__cause__`` for logging only.
    """
    pass


class InvalidMasterSecretError(PassVaultError):
    """The master secret was rejected before any key was derived."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class RepositoryStateError(RepositoryError):
    """An operation was invoked while the repository was in the wrong state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(operation, state)
        self.operation = operation
        self.state = state


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


class EntryError(PassVaultError):
    """Base class for errors about individual entries."""
    pass


class EntryNotFoundError(EntryError):
    """No entry exists with the given ID."""

    def __init__(self, entry_id: str, operation: str = "get") -> None:
        super().__init__(entry_id, operation)
        self.entry_id = entry_id
        self.operation = operation


class EntryExistsError(EntryError):
    """An entry with the given ID already exists."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(entry_id)
        self.entry_id = entry_id


class ImportConflictError(EntryError):
    """
    One or more imported entries collide with existing entries or with
    each other. Nothing from the batch was applied.
    """

    def __init__(self, entry_ids: Sequence[str]) -> None:
        ids = tuple(entry_ids)
        super().__init__(ids)
        self.entry_ids = ids


class NoMatchError(EntryError):
    """A search returned no entries."""

    def __init__(self, query: str) -> None:
        super().__init__(query)
        self.query = query


class InvalidEntryError(EntryError):
    """An entry field failed validation."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(field, reason)
        self.field = field
        self.reason = reason


# ---------------------------------------------------------------------------
# Crypto / serialization
# ---------------------------------------------------------------------------


class CryptoError(PassVaultError):
    """Base class for crypto provider failures."""
    pass


class DecryptionError(CryptoError):
    """
    Raised when decryption fails.

    This is a generic error that doesn't reveal the cause
    (to prevent information leakage).
    """
    pass


class SerializationError(PassVaultError):
    """Decrypted bytes are not a structurally valid password database."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


# ---------------------------------------------------------------------------
# Storage / import
# ---------------------------------------------------------------------------


class StorageError(PassVaultError):
    """
    The storage medium could not be read or written.

    The originating exception is chained on ``__cause__``.
    """

    def __init__(self, operation: str, location: str) -> None:
        super().__init__(operation, location)
        self.operation = operation
        self.location = location


class StorageNotFoundError(StorageError):
    """The storage medium has never been written."""

    def __init__(self, location: str) -> None:
        super().__init__("read", location)


class ImporterError(PassVaultError):
    """An external data source could not be translated into entries."""

    def __init__(self, source: str, reason: str, row: Optional[int] = None) -> None:
        super().__init__(source, reason, row)
        self.source = source
        self.reason = reason
        self.row = row

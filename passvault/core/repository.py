"""
Password Repository
===================

Owns the decrypted password database and exposes CRUD, search and
import on top of a crypto provider and a storage backend.

States:
    UNINITIALIZED  nothing loaded; ``init`` (fresh medium) or ``load``
                   (existing medium) are the only legal calls
    READY          a database is loaded; every operation is legal

Persistence Discipline:
- Every mutation is applied to a copy of the database, encrypted and
  written, and only then swapped in. A failed write leaves the
  in-memory state equal to the last persisted state.
- Every write replaces the whole encrypted snapshot.

Security Notes:
- The master secret is never stored; only the derived MasterKey is held
- Open failures never reveal wrong-secret vs. corruption
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Mapping, Optional

from passvault.core.config import PasswordManagerConfig
from passvault.core.crypto import CryptoProvider, MasterKey
from passvault.core.importers import Importer
from passvault.core.models import Database, Entry, EntryUpdate
from passvault.core.registry import ComponentRegistry, Registry, default_registry
from passvault.core.storage import StorageBackend
from passvault.errors import (
    CryptoError,
    EntryExistsError,
    EntryNotFoundError,
    ImportConflictError,
    NoMatchError,
    RepositoryExistsError,
    RepositoryNotInitializedError,
    RepositoryOpenError,
    RepositoryStateError,
    SerializationError,
    StorageError,
    StorageNotFoundError,
)

logger = logging.getLogger(__name__)


class RepositoryState(Enum):
    """Repository lifecycle states."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class Repository:
    """
    Encrypted password repository.

    Usage:
        repo = build_repository(load_config())
        repo.load("master secret")
        repo.add("me@example.com", "me", "s3cret", "mail", ["email"])
        entry = repo.get_password_entry("me@example.com")

    Not thread-safe; assumes exclusive ownership of the storage medium.
    """

    def __init__(
        self,
        crypto: CryptoProvider,
        storage: StorageBackend,
        importers: Optional[Registry[Importer]] = None,
    ) -> None:
        self._crypto = crypto
        self._storage = storage
        self._importers = importers if importers is not None else default_registry().importers
        self._key: Optional[MasterKey] = None
        self._db: Optional[Database] = None

    def __repr__(self) -> str:
        return (
            f"Repository(crypto={self._crypto.identifier!r}, "
            f"storage={self._storage.location!r}, state={self.state.value})"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> RepositoryState:
        return RepositoryState.READY if self._db is not None else RepositoryState.UNINITIALIZED

    def exists(self) -> bool:
        """Whether the storage medium already holds a password store."""
        return self._storage.exists()

    def init(self, master_secret: str) -> None:
        """
        Create and persist an empty store on a fresh medium.

        Raises:
            RepositoryExistsError: If the medium already holds data
            InvalidMasterSecretError: If the master secret is empty
            StorageError: If the empty store cannot be written
        """
        if self._storage.exists():
            raise RepositoryExistsError(self._storage.location)

        key = self._crypto.derive_key(master_secret)
        db = Database()
        try:
            self._write(key, db)
        except (StorageError, CryptoError):
            key.wipe()
            raise

        self._replace_key(key)
        self._db = db
        logger.info("Initialized password store at %s", self._storage.location)

    def load(self, master_secret: str) -> None:
        """
        Open the persisted store.

        Raises:
            RepositoryNotInitializedError: If the medium was never written
            RepositoryOpenError: On any read, decrypt or parse failure
            InvalidMasterSecretError: If the master secret is empty
        """
        try:
            blob = self._storage.read()
        except StorageNotFoundError as e:
            raise RepositoryNotInitializedError(self._storage.location) from e
        except StorageError as e:
            logger.warning("Cannot read password store at %s", self._storage.location)
            raise RepositoryOpenError(self._storage.location) from e

        key = None
        try:
            key = self._crypto.derive_key(master_secret, self._crypto.read_salt(blob))
            db = Database.from_bytes(self._crypto.decrypt(key, blob))
        except (CryptoError, SerializationError) as e:
            if key is not None:
                key.wipe()
            logger.warning("Cannot open password store at %s", self._storage.location)
            raise RepositoryOpenError(self._storage.location) from e

        self._replace_key(key)
        self._db = db
        logger.info("Loaded %d entries from %s", len(db), self._storage.location)

    def close(self) -> None:
        """Drop the in-memory database and wipe the key."""
        self._replace_key(None)
        self._db = None

    def change_master_secret(self, new_master_secret: str) -> None:
        """Re-encrypt the store under a new master secret and fresh salt."""
        db = self._require_ready("change_master_secret")
        key = self._crypto.derive_key(new_master_secret)
        try:
            self._write(key, db)
        except (StorageError, CryptoError):
            key.wipe()
            raise
        self._replace_key(key)
        logger.info("Master secret changed for %s", self._storage.location)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_password_entry(self, entry_id: str) -> Entry:
        """
        Exact-ID lookup.

        Raises:
            EntryNotFoundError: If no entry has this ID
        """
        db = self._require_ready("get")
        entry = db.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id, "get")
        return entry

    def search_entries_by_id(self, substring: str) -> list[Entry]:
        """
        Entries whose ID contains ``substring``, sorted by ID.

        An empty result is an error.

        Raises:
            NoMatchError: If nothing matches
        """
        db = self._require_ready("search_id")
        matches = [entry for entry in db if substring in entry.id]
        if not matches:
            raise NoMatchError(substring)
        return matches

    def search_label(self, label: str) -> list[Entry]:
        """
        Entries carrying exactly ``label``, sorted by ID.

        An empty result is a valid outcome and returns ``[]``.
        """
        db = self._require_ready("search_label")
        return [entry for entry in db if label in entry.labels]

    def list_entries(self) -> list[Entry]:
        """All entries sorted by ID."""
        return list(self._require_ready("list"))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(
        self,
        entry_id: str,
        username: str,
        password: str,
        description: str = "",
        labels: Iterable[str] = (),
    ) -> Entry:
        """
        Insert a new entry and persist.

        Raises:
            InvalidEntryError: If the ID is empty
            EntryExistsError: If the ID is taken
        """
        db = self._require_ready("add")
        entry = Entry(
            id=entry_id,
            username=username,
            password=password,
            description=description,
            labels=labels,
        )
        if entry.id in db:
            raise EntryExistsError(entry.id)

        candidate = db.copy()
        candidate.add(entry)
        self._commit(candidate)
        logger.info("Added entry %s", entry.id)
        return entry

    def remove(self, entry_id: str) -> None:
        """
        Delete an entry and persist.

        Raises:
            EntryNotFoundError: If no entry has this ID
        """
        db = self._require_ready("remove")
        if entry_id not in db:
            raise EntryNotFoundError(entry_id, "remove")

        candidate = db.copy()
        candidate.remove(entry_id)
        self._commit(candidate)
        logger.info("Removed entry %s", entry_id)

    def change_password_entry(self, entry_id: str, update: EntryUpdate) -> Entry:
        """
        Overwrite the fields set in ``update`` and persist.

        Fields left as ``None`` keep their current value.

        Raises:
            EntryNotFoundError: If no entry has this ID
        """
        db = self._require_ready("change")
        current = db.get(entry_id)
        if current is None:
            raise EntryNotFoundError(entry_id, "change")

        changed = current.updated(update)
        if changed == current:
            return current

        candidate = db.copy()
        candidate.add(changed)
        self._commit(candidate)
        logger.info("Changed entry %s", entry_id)
        return changed

    def import_entries(self, importer_id: str, config: Mapping[str, str]) -> list[Entry]:
        """
        Add every entry produced by an importer, persisting once.

        The batch is all-or-nothing: IDs that already exist or repeat
        within the batch are reported together and nothing is added.

        Raises:
            UnknownComponentError: If ``importer_id`` is not registered
            ImporterError: If the source cannot be read
            ImportConflictError: On any ID collision
        """
        db = self._require_ready("import")
        importer = self._importers.create(importer_id)
        entries = importer.import_entries(config)

        seen: set[str] = set()
        conflicts: set[str] = set()
        for entry in entries:
            if entry.id in db or entry.id in seen:
                conflicts.add(entry.id)
            seen.add(entry.id)
        if conflicts:
            raise ImportConflictError(sorted(conflicts))
        if not entries:
            return []

        candidate = db.copy()
        for entry in entries:
            candidate.add(entry)
        self._commit(candidate)
        logger.info("Imported %d entries via %s", len(entries), importer_id)
        return sorted(entries, key=lambda entry: entry.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_ready(self, operation: str) -> Database:
        if self._db is None:
            raise RepositoryStateError(operation, self.state.value)
        return self._db

    def _commit(self, candidate: Database) -> None:
        # Swap only after the write succeeded
        self._write(self._key, candidate)
        self._db = candidate

    def _write(self, key: MasterKey, db: Database) -> None:
        self._storage.write(self._crypto.encrypt(key, db.to_bytes()))

    def _replace_key(self, key: Optional[MasterKey]) -> None:
        if self._key is not None and self._key is not key:
            self._key.wipe()
        self._key = key


def build_repository(
    config: PasswordManagerConfig,
    registry: Optional[ComponentRegistry] = None,
) -> Repository:
    """
    Resolve the configured components and construct a repository.

    Raises:
        UnknownComponentError: If a configured identifier is not registered
        ConfigurationError: If the storage options are invalid
    """
    if registry is None:
        registry = default_registry()

    crypto = registry.crypto.create(config.crypto_id, config.security)
    storage = registry.storage.create(config.storage_id, config.storage_options)
    logger.debug(
        "Built repository crypto=%s storage=%s", crypto.identifier, storage.location
    )
    return Repository(crypto, storage, registry.importers)

"""
Password Entry Model
====================

In-memory entry and database types plus their deterministic
serialization.

Serialized Format (UTF-8 JSON, sorted keys, no insignificant whitespace):
    {
        "format": "passvault-db",
        "version": 1,
        "entries": {
            "<id>": {
                "id": "<id>",
                "username": "...",
                "password": "...",
                "description": "...",
                "labels": ["a", "b"]       # sorted, unique
            },
            ...
        }
    }

The format marker and the per-entry shape are checked on load, so a
plaintext that decodes but is not a password database is rejected
independently of the cipher's own authentication.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Final, Iterable, Iterator, Mapping, Optional

from passvault.errors import InvalidEntryError, SerializationError

DB_FORMAT: Final[str] = "passvault-db"
DB_FORMAT_VERSION: Final[int] = 1

_ENTRY_FIELDS: Final[frozenset[str]] = frozenset(
    {"id", "username", "password", "description", "labels"}
)


@dataclass(frozen=True)
class Entry:
    """
    One credential record.

    Attributes:
        id: Primary key (commonly an email address or service name)
        username: Login name
        password: Secret value
        description: Free text
        labels: Categories used by label search
    """

    id: str
    username: str = ""
    password: str = ""
    description: str = ""
    labels: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise InvalidEntryError("id", "must be a non-empty string")
        for name in ("username", "password", "description"):
            if not isinstance(getattr(self, name), str):
                raise InvalidEntryError(name, "must be a string")
        if isinstance(self.labels, str):
            raise InvalidEntryError("labels", "must be a collection of strings")
        object.__setattr__(self, "labels", frozenset(self.labels))
        if any(not isinstance(label, str) for label in self.labels):
            raise InvalidEntryError("labels", "must be strings")

    def __repr__(self) -> str:
        """Safe representation without the password."""
        return (
            f"Entry(id={self.id!r}, username={self.username!r}, "
            f"labels={sorted(self.labels)!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
            "description": self.description,
            "labels": sorted(self.labels),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Entry":
        if not isinstance(data, Mapping):
            raise SerializationError("entry is not an object")
        missing = _ENTRY_FIELDS - data.keys()
        if missing:
            raise SerializationError(f"entry missing fields: {sorted(missing)}")
        labels = data["labels"]
        if not isinstance(labels, list) or not all(isinstance(label, str) for label in labels):
            raise SerializationError("entry labels must be a list of strings")
        try:
            return cls(
                id=data["id"],
                username=data["username"],
                password=data["password"],
                description=data["description"],
                labels=frozenset(labels),
            )
        except InvalidEntryError as e:
            raise SerializationError(f"invalid entry field {e.field!r}") from e

    def updated(self, update: "EntryUpdate") -> "Entry":
        """Return a copy with every field set in ``update`` overwritten."""
        changes = {
            name: value
            for name, value in (
                ("username", update.username),
                ("password", update.password),
                ("description", update.description),
                ("labels", update.labels),
            )
            if value is not None
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class EntryUpdate:
    """
    Field changes for an existing entry.

    ``None`` means "leave unchanged"; an empty string or empty label set
    is an explicit new value.
    """

    username: Optional[str] = None
    password: Optional[str] = None
    description: Optional[str] = None
    labels: Optional[frozenset[str]] = None

    def __post_init__(self) -> None:
        if isinstance(self.labels, str):
            raise InvalidEntryError("labels", "must be a collection of strings")
        if self.labels is not None:
            object.__setattr__(self, "labels", frozenset(self.labels))

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.username, self.password, self.description, self.labels)
        )


class Database:
    """
    The complete decrypted state: a mapping from entry ID to Entry.

    Instances are treated as values by the repository: every mutation is
    applied to a ``copy()`` which replaces the original only once it has
    been persisted.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Iterable[Entry]] = None) -> None:
        self._entries: dict[str, Entry] = {}
        for entry in entries or ():
            self.add(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    def __iter__(self) -> Iterator[Entry]:
        """Iterate entries in ID order."""
        for entry_id in sorted(self._entries):
            yield self._entries[entry_id]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Database):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Database(entries={len(self._entries)})"

    def get(self, entry_id: str) -> Optional[Entry]:
        return self._entries.get(entry_id)

    def ids(self) -> list[str]:
        return sorted(self._entries)

    def add(self, entry: Entry) -> None:
        """Insert an entry. Caller checks for collisions."""
        self._entries[entry.id] = entry

    def remove(self, entry_id: str) -> None:
        del self._entries[entry_id]

    def copy(self) -> "Database":
        # Entries are frozen, a shallow copy is enough
        clone = Database()
        clone._entries = dict(self._entries)
        return clone

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        """Serialize to deterministic UTF-8 JSON."""
        document = {
            "format": DB_FORMAT,
            "version": DB_FORMAT_VERSION,
            "entries": {entry.id: entry.to_dict() for entry in self},
        }
        return json.dumps(
            document,
            sort_keys=True,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "Database":
        """
        Deserialize a database.

        Raises:
            SerializationError: If data is not a well-formed database
        """
        try:
            document = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError("not a JSON document") from e

        if not isinstance(document, dict):
            raise SerializationError("top level is not an object")
        if document.get("format") != DB_FORMAT:
            raise SerializationError("bad format marker")
        if document.get("version") != DB_FORMAT_VERSION:
            raise SerializationError(f"unsupported version: {document.get('version')!r}")

        raw_entries = document.get("entries")
        if not isinstance(raw_entries, dict):
            raise SerializationError("entries is not an object")

        db = cls()
        for key, raw in raw_entries.items():
            entry = Entry.from_dict(raw)
            if entry.id != key:
                raise SerializationError(f"entry key does not match its id: {key!r}")
            db.add(entry)
        return db

"""
Component Registry
==================

Identifier-keyed factories for crypto providers, storage backends and
importers.

A registry is an immutable value built once at startup and handed to
``build_repository``; there is no process-wide registration. Extending
a registry returns a new one.

Usage:
    registry = default_registry()
    storage = registry.storage.create("file", {"path": "/tmp/db"})
    custom = registry.with_storage("s3", MyS3Storage.from_options)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Generic, Mapping, TypeVar

from passvault.core.crypto import AesGcmProvider, ChaCha20Provider, CryptoProvider
from passvault.core.importers import CsvImporter, Importer
from passvault.core.storage import FileStorage, MemoryStorage, StorageBackend
from passvault.errors import UnknownComponentError

T = TypeVar("T")


class Registry(Generic[T]):
    """Immutable mapping from identifier to component factory."""

    __slots__ = ("_kind", "_factories")

    def __init__(self, kind: str, factories: Mapping[str, Callable[..., T]]) -> None:
        self._kind = kind
        self._factories = MappingProxyType(dict(factories))

    @property
    def kind(self) -> str:
        return self._kind

    def identifiers(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._factories

    def resolve(self, identifier: str) -> Callable[..., T]:
        """
        Look up the factory for ``identifier``.

        Raises:
            UnknownComponentError: If nothing is registered under it
        """
        try:
            return self._factories[identifier]
        except KeyError:
            raise UnknownComponentError(self._kind, identifier) from None

    def create(self, identifier: str, *args: Any, **kwargs: Any) -> T:
        return self.resolve(identifier)(*args, **kwargs)

    def with_factory(self, identifier: str, factory: Callable[..., T]) -> "Registry[T]":
        factories = dict(self._factories)
        factories[identifier] = factory
        return Registry(self._kind, factories)

    def __repr__(self) -> str:
        return f"Registry(kind={self._kind!r}, identifiers={self.identifiers()!r})"


@dataclass(frozen=True)
class ComponentRegistry:
    """The three component registries the repository is built from."""

    crypto: Registry[CryptoProvider]
    storage: Registry[StorageBackend]
    importers: Registry[Importer]

    def with_crypto(self, identifier: str, factory: Callable[..., CryptoProvider]) -> "ComponentRegistry":
        return replace(self, crypto=self.crypto.with_factory(identifier, factory))

    def with_storage(self, identifier: str, factory: Callable[..., StorageBackend]) -> "ComponentRegistry":
        return replace(self, storage=self.storage.with_factory(identifier, factory))

    def with_importer(self, identifier: str, factory: Callable[..., Importer]) -> "ComponentRegistry":
        return replace(self, importers=self.importers.with_factory(identifier, factory))


def default_registry() -> ComponentRegistry:
    """
    Build the registry of built-in components.

    Factory signatures:
        crypto:   (SecuritySettings) -> CryptoProvider
        storage:  (Mapping[str, str]) -> StorageBackend
        importer: () -> Importer
    """
    return ComponentRegistry(
        crypto=Registry("crypto", {
            AesGcmProvider.identifier: AesGcmProvider.from_settings,
            ChaCha20Provider.identifier: ChaCha20Provider.from_settings,
        }),
        storage=Registry("storage", {
            FileStorage.identifier: FileStorage.from_options,
            MemoryStorage.identifier: MemoryStorage.from_options,
        }),
        importers=Registry("importer", {
            CsvImporter.identifier: CsvImporter,
        }),
    )

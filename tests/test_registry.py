"""Tests for the component registry."""

import pytest

from passvault.core.crypto import AesGcmProvider, ChaCha20Provider
from passvault.core.importers import CsvImporter
from passvault.core.registry import Registry, default_registry
from passvault.core.storage import FileStorage, MemoryStorage
from passvault.errors import ConfigurationError, UnknownComponentError


class TestDefaultRegistry:

    def test_builtin_identifiers(self):
        registry = default_registry()
        assert registry.crypto.identifiers() == ["aes", "chacha20"]
        assert registry.storage.identifiers() == ["file", "memory"]
        assert registry.importers.identifiers() == ["csv"]

    def test_create_components(self, fast_settings, tmp_path):
        registry = default_registry()
        assert isinstance(registry.crypto.create("aes", fast_settings), AesGcmProvider)
        assert isinstance(registry.crypto.create("chacha20", fast_settings), ChaCha20Provider)
        assert isinstance(registry.storage.create("file", {"path": str(tmp_path / "db")}), FileStorage)
        assert isinstance(registry.storage.create("memory", {}), MemoryStorage)
        assert isinstance(registry.importers.create("csv"), CsvImporter)

    @pytest.mark.parametrize("kind", ["crypto", "storage", "importers"])
    def test_unknown_identifier(self, kind):
        registry = getattr(default_registry(), kind)
        with pytest.raises(UnknownComponentError) as exc:
            registry.resolve("rot13")
        assert exc.value.identifier == "rot13"
        assert exc.value.kind == registry.kind
        assert isinstance(exc.value, ConfigurationError)


class TestExtension:

    def test_with_factory_returns_new_registry(self):
        base = Registry("storage", {"memory": MemoryStorage.from_options})
        extended = base.with_factory("other", MemoryStorage.from_options)
        assert "other" in extended
        assert "other" not in base

    def test_component_registry_extension(self):
        registry = default_registry()
        extended = registry.with_storage("scratch", lambda options: MemoryStorage("scratch"))
        assert extended.storage.create("scratch", {}).location == "memory:scratch"
        assert "scratch" not in registry.storage
        assert extended.crypto is registry.crypto

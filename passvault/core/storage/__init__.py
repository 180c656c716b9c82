"""
PassVault Storage Module
========================

Pluggable whole-blob storage for the encrypted password database.

Components:
- file_storage.py: Local file with atomic replace
- memory.py: Process-local blob (ephemeral stores, tests)
"""

from passvault.core.storage.base import StorageBackend
from passvault.core.storage.file_storage import FileStorage
from passvault.core.storage.memory import MemoryStorage

__all__ = [
    "StorageBackend",
    "FileStorage",
    "MemoryStorage",
]

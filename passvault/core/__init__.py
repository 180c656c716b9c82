"""
Core module - Repository engine, entry model and pluggable components.
"""

from passvault.core.models import Database, Entry, EntryUpdate
from passvault.core.repository import Repository, RepositoryState, build_repository

__all__ = [
    "Database",
    "Entry",
    "EntryUpdate",
    "Repository",
    "RepositoryState",
    "build_repository",
]

"""
Importer Contract
=================

An importer translates an external data source into candidate entries.
It never touches storage or crypto; the repository routes the entries
through its normal add path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Mapping

from passvault.core.models import Entry


class Importer(ABC):
    """Base class for external data source importers."""

    identifier: ClassVar[str]

    @abstractmethod
    def import_entries(self, config: Mapping[str, str]) -> list[Entry]:
        """
        Read the source described by ``config`` into entries.

        Raises:
            ImporterError: If the source is unreadable or malformed
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifier={self.identifier!r})"

"""
PassVault Importers
===================

Pluggable translation of external data sources into entries.
"""

from passvault.core.importers.base import Importer
from passvault.core.importers.csv_importer import CONF_KEY_FILE_PATH, CsvImporter

__all__ = [
    "Importer",
    "CsvImporter",
    "CONF_KEY_FILE_PATH",
]

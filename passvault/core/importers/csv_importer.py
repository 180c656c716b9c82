"""
CSV Importer
============

Maps delimited rows to entries by fixed column order:

    id, username, password, description, labels

Labels are a single field, itself delimited (comma by default), e.g.

    a@x.com,alice,s3cret,Mail account,"work,email"

A first row whose first cell is ``id`` is treated as a header and
skipped. Blank rows are ignored. Any other row without exactly five
columns fails the whole import.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Final, Iterable, Mapping

from passvault.core.importers.base import Importer
from passvault.core.models import Entry
from passvault.errors import ConfigurationError, ImporterError, InvalidEntryError

logger = logging.getLogger(__name__)

CONF_KEY_FILE_PATH: Final[str] = "path"
CONF_KEY_DELIMITER: Final[str] = "delimiter"
CONF_KEY_LABEL_DELIMITER: Final[str] = "label_delimiter"

COLUMNS: Final[tuple[str, ...]] = ("id", "username", "password", "description", "labels")

# The quote character and line breaks cannot double as field separators
_RESERVED_DELIMITERS: Final[frozenset[str]] = frozenset({'"', "\r", "\n"})


def parse_labels(field: str, delimiter: str = ",") -> frozenset[str]:
    """Split a label field into a set, dropping empty tokens."""
    return frozenset(token.strip() for token in field.split(delimiter) if token.strip())


class CsvImporter(Importer):
    """Imports entries from a CSV file."""

    identifier = "csv"

    def import_entries(self, config: Mapping[str, str]) -> list[Entry]:
        path_value = config.get(CONF_KEY_FILE_PATH)
        if not path_value:
            raise ConfigurationError(CONF_KEY_FILE_PATH, "CSV import requires a file path")
        delimiter = config.get(CONF_KEY_DELIMITER, ",")
        if not isinstance(delimiter, str) or len(delimiter) != 1 or delimiter in _RESERVED_DELIMITERS:
            raise ConfigurationError(CONF_KEY_DELIMITER, f"must be a single character: {delimiter!r}")
        label_delimiter = config.get(CONF_KEY_LABEL_DELIMITER, ",")
        if not isinstance(label_delimiter, str) or not label_delimiter:
            raise ConfigurationError(CONF_KEY_LABEL_DELIMITER, "must not be empty")

        path = Path(path_value).expanduser()
        try:
            with path.open("r", encoding="utf-8-sig", newline="") as handle:
                entries = self._map_rows(
                    str(path), csv.reader(handle, delimiter=delimiter), label_delimiter
                )
        except OSError as e:
            raise ImporterError(str(path), "cannot read file") from e
        except UnicodeDecodeError as e:
            raise ImporterError(str(path), "not valid UTF-8") from e
        except csv.Error as e:
            raise ImporterError(str(path), f"malformed CSV: {e}") from e

        logger.info("Read %d entries from %s", len(entries), path)
        return entries

    def _map_rows(
        self,
        source: str,
        rows: Iterable[list[str]],
        label_delimiter: str,
    ) -> list[Entry]:
        entries: list[Entry] = []
        for line_no, row in enumerate(rows, start=1):
            if not row or all(not cell.strip() for cell in row):
                continue
            if line_no == 1 and row[0].strip().lower() == "id":
                continue
            if len(row) != len(COLUMNS):
                raise ImporterError(
                    source,
                    f"expected {len(COLUMNS)} columns, found {len(row)}",
                    row=line_no,
                )
            entry_id, username, password, description, labels = row
            try:
                entries.append(
                    Entry(
                        id=entry_id.strip(),
                        username=username,
                        password=password,
                        description=description,
                        labels=parse_labels(labels, label_delimiter),
                    )
                )
            except InvalidEntryError as e:
                raise ImporterError(source, f"invalid {e.field}: {e.reason}", row=line_no) from e
        return entries

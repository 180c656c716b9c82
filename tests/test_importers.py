"""Tests for the CSV importer."""

import pytest

from passvault.core.importers import CONF_KEY_FILE_PATH, CsvImporter
from passvault.core.importers.csv_importer import (
    CONF_KEY_DELIMITER,
    CONF_KEY_LABEL_DELIMITER,
    parse_labels,
)
from passvault.core.models import Entry
from passvault.errors import ConfigurationError, ImporterError


def _write(tmp_path, text, name="in.csv"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return {CONF_KEY_FILE_PATH: str(path)}


class TestCsvImporter:

    def test_fixture_rows(self, csv_file):
        entries = CsvImporter().import_entries({CONF_KEY_FILE_PATH: str(csv_file)})
        assert entries == [
            Entry("a@x.com", "alice", "pw-a", "Alice mail", {"work", "email"}),
            Entry("b@x.com", "bob", "pw-b", "Bob mail", {"email"}),
            Entry("c@x.com", "carol", "pw-c", "", set()),
        ]

    def test_header_row_skipped(self, tmp_path):
        config = _write(tmp_path, "id,username,password,description,labels\nu1,bob,p1,,\n")
        entries = CsvImporter().import_entries(config)
        assert [e.id for e in entries] == ["u1"]

    def test_blank_rows_skipped(self, tmp_path):
        config = _write(tmp_path, "u1,bob,p1,,\n\n,,,,\nu2,eve,p2,,\n")
        entries = CsvImporter().import_entries(config)
        assert [e.id for e in entries] == ["u1", "u2"]

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufeffid,username,password,description,labels\nü,bob,p1,,\n".encode("utf-8"))
        entries = CsvImporter().import_entries({CONF_KEY_FILE_PATH: str(path)})
        assert [e.id for e in entries] == ["ü"]

    def test_custom_delimiters(self, tmp_path):
        config = _write(tmp_path, "u1;bob;p1;desc;work|home\n")
        config.update({"delimiter": ";", "label_delimiter": "|"})
        (entry,) = CsvImporter().import_entries(config)
        assert entry.labels == frozenset({"work", "home"})

    def test_wrong_column_count(self, tmp_path):
        config = _write(tmp_path, "u1,bob,p1,,\nu2,eve,p2\n")
        with pytest.raises(ImporterError) as exc:
            CsvImporter().import_entries(config)
        assert exc.value.row == 2

    def test_empty_id(self, tmp_path):
        config = _write(tmp_path, "  ,bob,p1,,\n")
        with pytest.raises(ImporterError) as exc:
            CsvImporter().import_entries(config)
        assert exc.value.row == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImporterError) as exc:
            CsvImporter().import_entries({CONF_KEY_FILE_PATH: str(tmp_path / "missing.csv")})
        assert isinstance(exc.value.__cause__, OSError)

    def test_missing_path_option(self):
        with pytest.raises(ConfigurationError):
            CsvImporter().import_entries({})

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"a@x.com,alice,\xff\xfe\xfa,desc,work\n")
        with pytest.raises(ImporterError) as exc:
            CsvImporter().import_entries({CONF_KEY_FILE_PATH: str(path)})
        assert "UTF-8" in exc.value.reason
        assert isinstance(exc.value.__cause__, UnicodeDecodeError)

    @pytest.mark.parametrize("delimiter", ["", ";;", '"', "\n"])
    def test_invalid_delimiter(self, tmp_path, delimiter):
        config = _write(tmp_path, "u1,bob,p1,,\n")
        config[CONF_KEY_DELIMITER] = delimiter
        with pytest.raises(ConfigurationError) as exc:
            CsvImporter().import_entries(config)
        assert exc.value.setting == CONF_KEY_DELIMITER

    def test_empty_label_delimiter(self, tmp_path):
        config = _write(tmp_path, "u1,bob,p1,,work\n")
        config[CONF_KEY_LABEL_DELIMITER] = ""
        with pytest.raises(ConfigurationError) as exc:
            CsvImporter().import_entries(config)
        assert exc.value.setting == CONF_KEY_LABEL_DELIMITER


class TestParseLabels:

    @pytest.mark.parametrize("field, expected", [
        ("", frozenset()),
        ("work", frozenset({"work"})),
        (" work , email ,", frozenset({"work", "email"})),
        ("a,,a", frozenset({"a"})),
    ])
    def test_parse(self, field, expected):
        assert parse_labels(field) == expected

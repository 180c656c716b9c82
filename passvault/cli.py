"""PassVault command-line interface

Usage:
    passvault init
    passvault add ID --username U --password P [--description D] [--labels a,b]
    passvault get ID
    passvault change ID [--username U] [--password P] [--description D] [--labels a,b]
    passvault remove ID
    passvault search-id SUBSTRING
    passvault search-label LABEL
    passvault list [--page N]
    passvault import --csv-file PATH
    passvault change-master

The master password comes from ``-m/--master-password`` or an
interactive prompt. Exit status is 0 on success and 1 on any PassVault
error, with a one-line message on stderr.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence, TextIO

from passvault import __version__
from passvault.core.config import PasswordManagerConfig, load_config
from passvault.core.importers import CONF_KEY_FILE_PATH, CsvImporter
from passvault.core.importers.csv_importer import parse_labels
from passvault.core.logging import configure_logging
from passvault.core.models import Entry, EntryUpdate
from passvault.core.repository import Repository, build_repository
from passvault.errors import (
    ConfigurationError,
    DecryptionError,
    EntryExistsError,
    EntryNotFoundError,
    ImportConflictError,
    ImporterError,
    InvalidEntryError,
    InvalidMasterSecretError,
    NoMatchError,
    PassVaultError,
    RepositoryExistsError,
    RepositoryNotInitializedError,
    RepositoryOpenError,
    RepositoryStateError,
    SerializationError,
    StorageError,
    UnknownComponentError,
)

logger = logging.getLogger(__name__)

PasswordPrompt = Callable[[str], str]


def describe_error(error: PassVaultError) -> str:
    """Render a PassVault error as a one-line human-readable message."""
    if isinstance(error, UnknownComponentError):
        return f"unknown {error.kind} identifier: {error.identifier}"
    if isinstance(error, ConfigurationError):
        return f"invalid configuration for {error.setting}: {error.reason}"
    if isinstance(error, RepositoryNotInitializedError):
        return "password store not found; run 'passvault init' first"
    if isinstance(error, RepositoryExistsError):
        return "password store already exists; refusing to overwrite it"
    if isinstance(error, RepositoryOpenError):
        return "cannot open password store: wrong master password or corrupted data"
    if isinstance(error, RepositoryStateError):
        return f"cannot {error.operation}: repository is {error.state}"
    if isinstance(error, EntryNotFoundError):
        if error.operation == "get":
            return f"invalid ID: {error.entry_id}"
        return f"unknown ID: {error.entry_id}"
    if isinstance(error, InvalidMasterSecretError):
        return f"invalid master password: {error.reason}"
    if isinstance(error, EntryExistsError):
        return f"ID already exists: {error.entry_id}"
    if isinstance(error, ImportConflictError):
        return f"import aborted, IDs already exist or repeat: {', '.join(error.entry_ids)}"
    if isinstance(error, NoMatchError):
        return f"cannot find a match for: {error.query}"
    if isinstance(error, InvalidEntryError):
        return f"invalid {error.field}: {error.reason}"
    if isinstance(error, ImporterError):
        where = f" (row {error.row})" if error.row is not None else ""
        return f"cannot import {error.source}{where}: {error.reason}"
    if isinstance(error, StorageError):
        cause = f": {error.__cause__}" if error.__cause__ else ""
        return f"storage {error.operation} failed for {error.location}{cause}"
    if isinstance(error, (DecryptionError, SerializationError)):
        return "cannot open password store: wrong master password or corrupted data"
    return f"error: {type(error).__name__}"


def _format_entry(entry: Entry, show_password: bool = True) -> str:
    lines = [
        f"ID:          {entry.id}",
        f"Username:    {entry.username}",
    ]
    if show_password:
        lines.append(f"Password:    {entry.password}")
    lines.extend([
        f"Description: {entry.description}",
        f"Labels:      {', '.join(sorted(entry.labels))}",
    ])
    return "\n".join(lines)


def _labels(value: Optional[str]) -> Optional[frozenset[str]]:
    return None if value is None else parse_labels(value)


class CommandRunner:
    """Dispatches parsed arguments to repository operations."""

    def __init__(
        self,
        repo: Repository,
        config: PasswordManagerConfig,
        out: TextIO,
        prompt: PasswordPrompt,
    ) -> None:
        self._repo = repo
        self._config = config
        self._out = out
        self._prompt = prompt

    def master_password(self, args: argparse.Namespace, confirm: bool = False) -> str:
        if args.master_password:
            return args.master_password
        secret = self._prompt("Master password: ")
        if confirm and self._prompt("Confirm master password: ") != secret:
            raise InvalidMasterSecretError("confirmation does not match")
        if not secret:
            raise InvalidMasterSecretError("must not be empty")
        return secret

    def _open(self, args: argparse.Namespace) -> None:
        self._repo.load(self.master_password(args))

    def _print(self, text: str = "") -> None:
        print(text, file=self._out)

    def _print_ids(self, entries: Sequence[Entry]) -> None:
        for entry in entries:
            self._print(entry.id)

    def init(self, args: argparse.Namespace) -> None:
        self._repo.init(self.master_password(args, confirm=True))
        self._print("Password store initialized.")

    def get(self, args: argparse.Namespace) -> None:
        self._open(args)
        self._print(_format_entry(self._repo.get_password_entry(args.id), args.show_password))

    def add(self, args: argparse.Namespace) -> None:
        self._open(args)
        password = args.password
        if password is None:
            password = self._prompt(f"Password for {args.id}: ")
        self._repo.add(
            args.id,
            args.username,
            password,
            args.description,
            _labels(args.labels) or frozenset(),
        )
        self._print(f"Added {args.id}.")

    def change(self, args: argparse.Namespace) -> None:
        update = EntryUpdate(
            username=args.username,
            password=args.password,
            description=args.description,
            labels=_labels(args.labels),
        )
        if update.is_empty():
            raise InvalidEntryError("fields", "nothing to change")
        self._open(args)
        self._repo.change_password_entry(args.id, update)
        self._print(f"Changed {args.id}.")

    def remove(self, args: argparse.Namespace) -> None:
        self._open(args)
        self._repo.remove(args.id)
        self._print(f"Removed {args.id}.")

    def search_id(self, args: argparse.Namespace) -> None:
        self._open(args)
        self._print_ids(self._repo.search_entries_by_id(args.substring))

    def search_label(self, args: argparse.Namespace) -> None:
        self._open(args)
        entries = self._repo.search_label(args.label)
        if not entries:
            self._print(f"No entries labelled {args.label!r}.")
        self._print_ids(entries)

    def list_entries(self, args: argparse.Namespace) -> None:
        self._open(args)
        entries = self._repo.list_entries()
        size = self._config.select_list_size
        pages = max(1, -(-len(entries) // size))
        page = min(max(args.page, 1), pages)
        self._print_ids(entries[(page - 1) * size:page * size])
        self._print(f"-- page {page}/{pages} ({len(entries)} entries) --")

    def import_(self, args: argparse.Namespace) -> None:
        self._open(args)
        imported = self._repo.import_entries(
            CsvImporter.identifier, {CONF_KEY_FILE_PATH: str(args.csv_file)}
        )
        self._print(f"Imported {len(imported)} entries.")

    def change_master(self, args: argparse.Namespace) -> None:
        self._open(args)
        new_secret = self._prompt("New master password: ")
        if not new_secret:
            raise InvalidMasterSecretError("must not be empty")
        if self._prompt("Confirm new master password: ") != new_secret:
            raise InvalidMasterSecretError("confirmation does not match")
        self._repo.change_master_secret(new_secret)
        self._print("Master password changed.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passvault",
        description="PassVault - encrypted local password store",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-m", "--master-password", help="Master password (prompted if omitted)")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sub = subparsers.add_parser("init", help="Create a new password store")
    sub.set_defaults(handler=CommandRunner.init)

    sub = subparsers.add_parser("get", help="Show an entry")
    sub.add_argument("id")
    sub.add_argument("--hide-password", dest="show_password", action="store_false")
    sub.set_defaults(handler=CommandRunner.get)

    sub = subparsers.add_parser("add", help="Add an entry")
    sub.add_argument("id")
    sub.add_argument("-u", "--username", default="")
    sub.add_argument("-p", "--password", help="Entry password (prompted if omitted)")
    sub.add_argument("-d", "--description", default="")
    sub.add_argument("-l", "--labels", help="Comma-separated labels")
    sub.set_defaults(handler=CommandRunner.add)

    sub = subparsers.add_parser("change", help="Change fields of an entry")
    sub.add_argument("id")
    sub.add_argument("-u", "--username")
    sub.add_argument("-p", "--password")
    sub.add_argument("-d", "--description")
    sub.add_argument("-l", "--labels", help="Comma-separated labels (replaces all)")
    sub.set_defaults(handler=CommandRunner.change)

    sub = subparsers.add_parser("remove", help="Remove an entry")
    sub.add_argument("id")
    sub.set_defaults(handler=CommandRunner.remove)

    sub = subparsers.add_parser("search-id", help="Find entries whose ID contains a substring")
    sub.add_argument("substring")
    sub.set_defaults(handler=CommandRunner.search_id)

    sub = subparsers.add_parser("search-label", help="Find entries carrying a label")
    sub.add_argument("label")
    sub.set_defaults(handler=CommandRunner.search_label)

    sub = subparsers.add_parser("list", help="List entry IDs")
    sub.add_argument("--page", type=int, default=1)
    sub.set_defaults(handler=CommandRunner.list_entries)

    sub = subparsers.add_parser("import", help="Import entries from a CSV file")
    sub.add_argument("-c", "--csv-file", type=Path, required=True)
    sub.set_defaults(handler=CommandRunner.import_)

    sub = subparsers.add_parser("change-master", help="Change the master password")
    sub.set_defaults(handler=CommandRunner.change_master)

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
    prompt: PasswordPrompt = getpass.getpass,
) -> int:
    args = build_parser().parse_args(argv)
    out = out or sys.stdout
    err = err or sys.stderr

    repo = None
    try:
        config = load_config(environ, config_file=args.config)
        configure_logging(config.logging, stream=err)
        repo = build_repository(config)
        runner = CommandRunner(repo, config, out, prompt)
        args.handler(runner, args)
    except PassVaultError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(describe_error(e), file=err)
        return 1
    finally:
        if repo is not None:
            repo.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Configuration Module
====================

Immutable configuration assembled once, before any repository is built.

Sources (later wins):
    1. Built-in defaults
    2. YAML file: ``$PASSVAULT_CONF_PATH`` or ``<config dir>/config.yaml``
    3. Environment variables prefixed ``PASSVAULT_``, with double
       underscores for nested values

Examples:
    PASSVAULT_DIRECTORY_PATH=/custom/path
    PASSVAULT_STORAGE__FILE__PERMISSION=0600
    PASSVAULT_STORAGE__REMOTE__DIRECTORY=vaults
    PASSVAULT_SECURITY__CRYPTO_ID=chacha20
    PASSVAULT_LOGGING__LEVEL=DEBUG

Security Features:
- Immutable after construction
- No secrets in defaults
- Secret-looking environment keys are never read
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final, Mapping, Optional

import yaml

from passvault.core.crypto import DEFAULT_CRYPTO_ID
from passvault.core.crypto.kdf import (
    ARGON2_MEMORY_COST,
    ARGON2_MIN_MEMORY_COST,
    ARGON2_MIN_TIME_COST,
    ARGON2_PARALLELISM,
    ARGON2_TIME_COST,
    PBKDF2_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
)
from passvault.core.storage.base import (
    OPTION_DIRECTORY,
    OPTION_PASSWORD_DB_FILE,
    OPTION_TOKEN_FILE_PATH,
)
from passvault.core.storage.file_storage import (
    DEFAULT_PERMISSION,
    OPTION_PATH,
    OPTION_PERMISSION,
    parse_permission,
)
from passvault.core.storage.memory import MemoryStorage
from passvault.errors import ConfigurationError

APP_NAME: Final[str] = "PassVault"
ENV_PREFIX: Final[str] = "PASSVAULT"
CONF_PATH_ENV: Final[str] = "CONF_PATH"
CONFIG_FILE_NAME: Final[str] = "config.yaml"

DEFAULT_DIRECTORY_NAME: Final[str] = "password-manager"
DEFAULT_PASSWORD_DB_FILE: Final[str] = "password-db"
DEFAULT_STORAGE_ID: Final[str] = "file"
DEFAULT_TOKEN_FILE_NAME: Final[str] = "remote-token"
DEFAULT_SELECT_LIST_SIZE: Final[int] = 5

_SENSITIVE_KEYS: Final[frozenset[str]] = frozenset({
    "password", "master_password", "master_secret", "secret", "token", "api_key",
})

_VALID_LOG_LEVELS: Final[frozenset[str]] = frozenset({
    "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL",
})


def _is_sensitive_key(key: str) -> bool:
    """Check if a dotted configuration key names a secret."""
    return key.rsplit(".", 1)[-1] in _SENSITIVE_KEYS


def _get_default_config_dir() -> Path:
    """Get OS-appropriate default config directory."""
    system = platform.system().lower()

    if system == "windows":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif system == "darwin":
        base = Path.home() / "Library" / "Preferences"
    else:  # Linux and others
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

    return base / APP_NAME


def _get_default_directory_path() -> Path:
    return Path.home() / DEFAULT_DIRECTORY_NAME


@dataclass(frozen=True, slots=True)
class StorageSettings:
    """
    Storage backend selection plus file and remote backend settings.

    The ``remote_*`` values configure any backend other than ``file`` and
    ``memory``; the token file lives under ``directory_path``.
    """

    backend: str = DEFAULT_STORAGE_ID
    password_db_file: str = DEFAULT_PASSWORD_DB_FILE
    permission: str = DEFAULT_PERMISSION
    remote_directory: str = DEFAULT_DIRECTORY_NAME
    remote_password_db_file: str = DEFAULT_PASSWORD_DB_FILE
    remote_token_file: str = DEFAULT_TOKEN_FILE_NAME

    def __post_init__(self) -> None:
        if not self.backend:
            raise ConfigurationError("storage.backend", "must not be empty")
        if not self.password_db_file:
            raise ConfigurationError("storage.file.password_db_file", "must not be empty")
        parse_permission(self.permission)
        for key, value in (
            ("storage.remote.directory", self.remote_directory),
            ("storage.remote.password_db_file", self.remote_password_db_file),
            ("storage.remote.token_file", self.remote_token_file),
        ):
            if not value:
                raise ConfigurationError(key, "must not be empty")


@dataclass(frozen=True, slots=True)
class SecuritySettings:
    """Crypto provider selection and key derivation cost."""

    crypto_id: str = DEFAULT_CRYPTO_ID
    argon2_time_cost: int = ARGON2_TIME_COST
    argon2_memory_cost: int = ARGON2_MEMORY_COST
    argon2_parallelism: int = ARGON2_PARALLELISM
    pbkdf2_iterations: int = PBKDF2_ITERATIONS

    def __post_init__(self) -> None:
        if not self.crypto_id:
            raise ConfigurationError("security.crypto_id", "must not be empty")
        if self.argon2_time_cost < ARGON2_MIN_TIME_COST:
            raise ConfigurationError("security.argon2_time_cost", f"must be at least {ARGON2_MIN_TIME_COST}")
        if self.argon2_memory_cost < ARGON2_MIN_MEMORY_COST:
            raise ConfigurationError("security.argon2_memory_cost", f"must be at least {ARGON2_MIN_MEMORY_COST}")
        if self.argon2_parallelism < 1:
            raise ConfigurationError("security.argon2_parallelism", "must be at least 1")
        if self.pbkdf2_iterations < PBKDF2_MIN_ITERATIONS:
            raise ConfigurationError("security.pbkdf2_iterations", f"must be at least {PBKDF2_MIN_ITERATIONS}")


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Immutable logging configuration."""

    level: str = "WARNING"
    enable_console: bool = True
    enable_file: bool = False
    log_dir: Optional[Path] = None
    max_file_size_bytes: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5

    def __post_init__(self) -> None:
        if self.level.upper() not in _VALID_LOG_LEVELS:
            raise ConfigurationError("logging.level", f"invalid log level: {self.level}")


@dataclass(frozen=True, slots=True)
class PasswordManagerConfig:
    """
    Complete resolved configuration.

    Usage:
        config = load_config()
        repo = build_repository(config)
    """

    directory_path: Path = field(default_factory=_get_default_directory_path)
    select_list_size: int = DEFAULT_SELECT_LIST_SIZE
    storage: StorageSettings = field(default_factory=StorageSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if not self.directory_path.is_absolute():
            raise ConfigurationError("directory_path", f"must be an absolute path: {self.directory_path}")
        if self.select_list_size < 1:
            raise ConfigurationError("select_list_size", "must be positive")

    @property
    def storage_id(self) -> str:
        return self.storage.backend

    @property
    def crypto_id(self) -> str:
        return self.security.crypto_id

    @property
    def password_db_path(self) -> Path:
        return self.directory_path / self.storage.password_db_file

    @property
    def storage_options(self) -> Mapping[str, str]:
        """String options handed to the selected storage backend."""
        if self.storage.backend == DEFAULT_STORAGE_ID:
            options = {
                OPTION_PATH: str(self.password_db_path),
                OPTION_PERMISSION: self.storage.permission,
            }
        elif self.storage.backend == MemoryStorage.identifier:
            options = {}
        else:
            options = {
                OPTION_DIRECTORY: self.storage.remote_directory,
                OPTION_PASSWORD_DB_FILE: self.storage.remote_password_db_file,
                OPTION_TOKEN_FILE_PATH: str(self.directory_path / self.storage.remote_token_file),
            }
        return MappingProxyType(options)


# Dotted key -> (section, field name, type)
_SCHEMA: Final[dict[str, tuple[Optional[str], str, type]]] = {
    "directory_path": (None, "directory_path", Path),
    "select_list_size": (None, "select_list_size", int),
    "storage.backend": ("storage", "backend", str),
    "storage.file.password_db_file": ("storage", "password_db_file", str),
    "storage.file.permission": ("storage", "permission", str),
    "storage.remote.directory": ("storage", "remote_directory", str),
    "storage.remote.password_db_file": ("storage", "remote_password_db_file", str),
    "storage.remote.token_file": ("storage", "remote_token_file", str),
    "security.crypto_id": ("security", "crypto_id", str),
    "security.argon2_time_cost": ("security", "argon2_time_cost", int),
    "security.argon2_memory_cost": ("security", "argon2_memory_cost", int),
    "security.argon2_parallelism": ("security", "argon2_parallelism", int),
    "security.pbkdf2_iterations": ("security", "pbkdf2_iterations", int),
    "logging.level": ("logging", "level", str),
    "logging.enable_console": ("logging", "enable_console", bool),
    "logging.enable_file": ("logging", "enable_file", bool),
    "logging.log_dir": ("logging", "log_dir", Path),
}


def _coerce(key: str, value: Any, target: type) -> Any:
    if target is bool:
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in {"1", "true", "yes", "on"}:
            return True
        if text in {"0", "false", "no", "off"}:
            return False
        raise ConfigurationError(key, f"not a boolean: {value!r}")
    if target is int:
        if isinstance(value, bool):
            raise ConfigurationError(key, f"not an integer: {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(key, f"not an integer: {value!r}") from None
    if target is Path:
        return Path(str(value)).expanduser().resolve()
    if key == "storage.file.permission" and isinstance(value, int):
        # YAML 1.1 reads an unquoted 0640 as an octal integer
        return f"{value:04o}"
    return str(value)


def _flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{str(key).lower()}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as e:
        raise ConfigurationError("config_file", f"unable to load configuration file {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError("config_file", f"invalid YAML in {path}") from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigurationError("config_file", f"top level of {path} must be a mapping")

    flat = _flatten(data)
    unknown = sorted(key for key in flat if key not in _SCHEMA)
    if unknown:
        raise ConfigurationError("config_file", f"unknown keys in {path}: {unknown}")
    return flat


def _parse_env_overrides(environ: Mapping[str, str], prefix: str) -> dict[str, str]:
    """Parse environment variables with the given prefix."""
    overrides: dict[str, str] = {}
    prefix_upper = f"{prefix.upper()}_"

    for key, value in environ.items():
        if not key.startswith(prefix_upper):
            continue
        # Convert PASSVAULT_SECTION__KEY to section.key
        config_key = key[len(prefix_upper):].lower().replace("__", ".")

        if _is_sensitive_key(config_key):
            continue
        if config_key in _SCHEMA:
            overrides[config_key] = value

    return overrides


def resolve_config_file(
    environ: Mapping[str, str],
    config_file: Optional[Path] = None,
    prefix: str = ENV_PREFIX,
) -> Optional[Path]:
    """Locate the YAML configuration file, if any."""
    if config_file is not None:
        return Path(config_file).expanduser()
    explicit = environ.get(f"{prefix}_{CONF_PATH_ENV}")
    if explicit:
        return Path(explicit).expanduser()
    default = _get_default_config_dir() / CONFIG_FILE_NAME
    return default if default.is_file() else None


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    config_file: Optional[Path] = None,
    prefix: str = ENV_PREFIX,
) -> PasswordManagerConfig:
    """
    Load configuration from defaults, a YAML file and the environment.

    Args:
        environ: Environment mapping (default: ``os.environ``)
        config_file: Explicit YAML file, overriding discovery
        prefix: Environment variable prefix

    Returns:
        Immutable PasswordManagerConfig

    Raises:
        ConfigurationError: If any value is missing or invalid
    """
    if environ is None:
        environ = os.environ

    values: dict[str, Any] = {}
    path = resolve_config_file(environ, config_file, prefix)
    if path is not None:
        values.update(_read_config_file(path))
    values.update(_parse_env_overrides(environ, prefix))

    sections: dict[Optional[str], dict[str, Any]] = {
        None: {}, "storage": {}, "security": {}, "logging": {},
    }
    for key, raw in values.items():
        section, name, target = _SCHEMA[key]
        sections[section][name] = _coerce(key, raw, target)

    return PasswordManagerConfig(
        storage=StorageSettings(**sections["storage"]),
        security=SecuritySettings(**sections["security"]),
        logging=LoggingConfig(**sections["logging"]),
        **sections[None],
    )

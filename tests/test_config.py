"""Tests for configuration loading: defaults, YAML file, environment overrides."""

from pathlib import Path

import pytest

from passvault.core.config import (
    LoggingConfig,
    PasswordManagerConfig,
    SecuritySettings,
    StorageSettings,
    load_config,
    resolve_config_file,
)
from passvault.errors import ConfigurationError


def _yaml(tmp_path, text, name="config.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


# ── Defaults ────────────────────────────────────────────────────────


class TestDefaults:

    def test_defaults(self):
        config = load_config(environ={})
        assert config.directory_path == Path.home() / "password-manager"
        assert config.select_list_size == 5
        assert config.storage_id == "file"
        assert config.crypto_id == "aes"
        assert config.password_db_path == Path.home() / "password-manager" / "password-db"
        assert config.storage.permission == "0640"
        assert config.logging.level == "WARNING"

    def test_storage_options_for_file_backend(self, tmp_path):
        config = PasswordManagerConfig(directory_path=tmp_path)
        assert dict(config.storage_options) == {
            "path": str(tmp_path / "password-db"),
            "permission": "0640",
        }

    def test_storage_options_for_memory_backend(self, tmp_path):
        config = PasswordManagerConfig(
            directory_path=tmp_path, storage=StorageSettings(backend="memory")
        )
        assert dict(config.storage_options) == {}

    def test_storage_options_for_other_backend(self, tmp_path):
        config = PasswordManagerConfig(
            directory_path=tmp_path, storage=StorageSettings(backend="remote")
        )
        assert dict(config.storage_options) == {
            "directory": "password-manager",
            "password_db_file": "password-db",
            "token_file_path": str(tmp_path / "remote-token"),
        }

    def test_config_is_immutable(self):
        config = load_config(environ={})
        with pytest.raises(AttributeError):
            config.select_list_size = 10


# ── Environment ─────────────────────────────────────────────────────


class TestEnvironment:

    def test_env_overrides(self, tmp_path):
        config = load_config(environ={
            "PASSVAULT_DIRECTORY_PATH": str(tmp_path),
            "PASSVAULT_SELECT_LIST_SIZE": "10",
            "PASSVAULT_STORAGE__FILE__PASSWORD_DB_FILE": "vault.bin",
            "PASSVAULT_STORAGE__FILE__PERMISSION": "0600",
            "PASSVAULT_SECURITY__CRYPTO_ID": "chacha20",
            "PASSVAULT_LOGGING__ENABLE_CONSOLE": "false",
        })
        assert config.directory_path == tmp_path.resolve()
        assert config.select_list_size == 10
        assert config.password_db_path == tmp_path.resolve() / "vault.bin"
        assert config.storage.permission == "0600"
        assert config.crypto_id == "chacha20"
        assert config.logging.enable_console is False

    def test_remote_storage_overrides(self, tmp_path):
        config = load_config(environ={
            "PASSVAULT_DIRECTORY_PATH": str(tmp_path),
            "PASSVAULT_STORAGE__BACKEND": "remote",
            "PASSVAULT_STORAGE__REMOTE__DIRECTORY": "vaults",
            "PASSVAULT_STORAGE__REMOTE__PASSWORD_DB_FILE": "team-db",
            "PASSVAULT_STORAGE__REMOTE__TOKEN_FILE": "token.json",
        })
        assert dict(config.storage_options) == {
            "directory": "vaults",
            "password_db_file": "team-db",
            "token_file_path": str(tmp_path.resolve() / "token.json"),
        }

    def test_unrelated_and_unknown_keys_ignored(self):
        config = load_config(environ={
            "HOME_PATH": "/elsewhere",
            "PASSVAULT_NOT_A_SETTING": "x",
        })
        assert config == load_config(environ={})

    def test_sensitive_keys_ignored(self):
        config = load_config(environ={
            "PASSVAULT_MASTER_PASSWORD": "hunter2",
            "PASSVAULT_SECURITY__SECRET": "hunter2",
        })
        assert "hunter2" not in repr(config)

    def test_relative_directory_is_resolved(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={"PASSVAULT_DIRECTORY_PATH": "store"})
        assert config.directory_path == tmp_path.resolve() / "store"

    @pytest.mark.parametrize("key, value", [
        ("PASSVAULT_SELECT_LIST_SIZE", "many"),
        ("PASSVAULT_SELECT_LIST_SIZE", "0"),
        ("PASSVAULT_STORAGE__FILE__PERMISSION", "rw-r-----"),
        ("PASSVAULT_LOGGING__LEVEL", "CHATTY"),
        ("PASSVAULT_LOGGING__ENABLE_FILE", "maybe"),
        ("PASSVAULT_SECURITY__ARGON2_MEMORY_COST", "1024"),
        ("PASSVAULT_SECURITY__PBKDF2_ITERATIONS", "10"),
        ("PASSVAULT_STORAGE__BACKEND", ""),
        ("PASSVAULT_STORAGE__REMOTE__DIRECTORY", ""),
        ("PASSVAULT_STORAGE__REMOTE__TOKEN_FILE", ""),
    ])
    def test_invalid_values(self, key, value):
        with pytest.raises(ConfigurationError):
            load_config(environ={key: value})


# ── YAML file ───────────────────────────────────────────────────────


class TestConfigFile:

    def test_yaml_file(self, tmp_path):
        path = _yaml(tmp_path, (
            f"directory_path: {tmp_path / 'vault'}\n"
            "select_list_size: 3\n"
            "storage:\n"
            "  backend: memory\n"
            "security:\n"
            "  crypto_id: chacha20\n"
            "logging:\n"
            "  level: debug\n"
        ))
        config = load_config(environ={}, config_file=path)
        assert config.directory_path == (tmp_path / "vault").resolve()
        assert config.select_list_size == 3
        assert config.storage_id == "memory"
        assert config.crypto_id == "chacha20"
        assert config.logging.level == "debug"

    def test_remote_section(self, tmp_path):
        path = _yaml(tmp_path, (
            "storage:\n"
            "  backend: remote\n"
            "  remote:\n"
            "    directory: shared\n"
            "    password_db_file: vault\n"
        ))
        config = load_config(environ={}, config_file=path)
        assert config.storage.remote_directory == "shared"
        assert config.storage.remote_password_db_file == "vault"
        assert config.storage.remote_token_file == "remote-token"

    def test_env_beats_file(self, tmp_path):
        path = _yaml(tmp_path, "select_list_size: 3\n")
        config = load_config(environ={"PASSVAULT_SELECT_LIST_SIZE": "7"}, config_file=path)
        assert config.select_list_size == 7

    def test_conf_path_env(self, tmp_path):
        path = _yaml(tmp_path, "select_list_size: 9\n", name="elsewhere.yaml")
        config = load_config(environ={"PASSVAULT_CONF_PATH": str(path)})
        assert config.select_list_size == 9

    def test_default_location_discovered(self, tmp_path):
        config_dir = tmp_path / "no-config"
        config_dir.mkdir()
        _yaml(config_dir, "select_list_size: 4\n")
        assert resolve_config_file({}) == config_dir / "config.yaml"
        assert load_config(environ={}).select_list_size == 4

    def test_no_file_found(self):
        assert resolve_config_file({}) is None

    def test_unquoted_octal_permission(self, tmp_path):
        path = _yaml(tmp_path, "storage:\n  file:\n    permission: 0600\n")
        config = load_config(environ={}, config_file=path)
        assert config.storage.permission == "0600"

    def test_quoted_permission(self, tmp_path):
        path = _yaml(tmp_path, 'storage:\n  file:\n    permission: "0600"\n')
        assert load_config(environ={}, config_file=path).storage.permission == "0600"

    def test_empty_file(self, tmp_path):
        path = _yaml(tmp_path, "")
        assert load_config(environ={}, config_file=path) == load_config(environ={})

    @pytest.mark.parametrize("text", [
        "colour: blue\n",
        "storage:\n  gdrive:\n    token: abc\n",
        "- just\n- a list\n",
        "select_list_size: [1, 2\n",
    ])
    def test_rejected_files(self, tmp_path, text):
        path = _yaml(tmp_path, text)
        with pytest.raises(ConfigurationError):
            load_config(environ={}, config_file=path)

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(environ={}, config_file=tmp_path / "missing.yaml")


# ── Section validation ──────────────────────────────────────────────


class TestSections:

    def test_security_minimums(self):
        with pytest.raises(ConfigurationError) as exc:
            SecuritySettings(argon2_time_cost=0)
        assert exc.value.setting == "security.argon2_time_cost"

    def test_logging_level(self):
        with pytest.raises(ConfigurationError):
            LoggingConfig(level="LOUD")

    def test_relative_directory_rejected(self):
        with pytest.raises(ConfigurationError):
            PasswordManagerConfig(directory_path=Path("relative"))

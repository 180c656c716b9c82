"""
Shared pytest fixtures for the PassVault test suite.

Key derivation runs at the lowest accepted cost so the suite stays fast;
production defaults are exercised separately in test_crypto.
"""

from pathlib import Path

import pytest

from passvault.core.config import SecuritySettings
from passvault.core.crypto import AesGcmProvider, ChaCha20Provider
from passvault.core.repository import Repository
from passvault.core.storage import FileStorage, MemoryStorage

MASTER = "correct horse battery staple"

FAST_ENV = {
    "PASSVAULT_SECURITY__ARGON2_TIME_COST": "1",
    "PASSVAULT_SECURITY__ARGON2_MEMORY_COST": "8192",
    "PASSVAULT_SECURITY__ARGON2_PARALLELISM": "1",
    "PASSVAULT_SECURITY__PBKDF2_ITERATIONS": "100000",
}

CSV_ROWS = (
    'a@x.com,alice,pw-a,Alice mail,"work,email"\n'
    'b@x.com,bob,pw-b,Bob mail,email\n'
    'c@x.com,carol,pw-c,,\n'
)


@pytest.fixture
def fast_settings():
    return SecuritySettings(
        argon2_time_cost=1,
        argon2_memory_cost=8192,
        argon2_parallelism=1,
        pbkdf2_iterations=100_000,
    )


@pytest.fixture
def aes_provider(fast_settings):
    return AesGcmProvider.from_settings(fast_settings)


@pytest.fixture
def chacha_provider(fast_settings):
    return ChaCha20Provider.from_settings(fast_settings)


@pytest.fixture(params=["aes_provider", "chacha_provider"])
def provider(request):
    """Every registered crypto provider."""
    return request.getfixturevalue(request.param)


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def repo(aes_provider, memory_storage):
    """An initialized, empty repository on in-memory storage."""
    repository = Repository(aes_provider, memory_storage)
    repository.init(MASTER)
    return repository


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(path=tmp_path / "password-manager" / "password-db")


@pytest.fixture
def csv_file(tmp_path) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(CSV_ROWS, encoding="utf-8")
    return path


@pytest.fixture
def fast_env(tmp_path):
    """Environment for load_config pointing at a temp directory."""
    env = dict(FAST_ENV)
    env["PASSVAULT_DIRECTORY_PATH"] = str(tmp_path / "store")
    return env


@pytest.fixture(autouse=True)
def _isolate_config_dir(tmp_path, monkeypatch):
    """Keep load_config from discovering a real user config file."""
    import passvault.core.config as config_mod

    monkeypatch.setattr(config_mod, "_get_default_config_dir", lambda: tmp_path / "no-config")

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from upload_manager.exceptions import ConfigurationError
from upload_manager.settings import Settings
from upload_manager.storage.factory import create_storage
from upload_manager.storage.local import LocalStorage
from upload_manager.storage.s3 import S3Storage

CONFIG = """
backend: s3
s3:
  bucket: uploads/
  prefix: /media/
  public_url: https://cdn.example.com
local:
  root: {root}
  prefix: files
logging:
  level: debug
reclaim_cycles: true
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings(tmp_path):
    settings = Settings.load(_write(tmp_path, CONFIG.format(root=tmp_path / "store")))

    assert settings.backend == "s3"
    assert settings.s3.bucket == "uploads"
    assert settings.s3.prefix == "media"
    assert settings.s3.acl == "public-read"
    assert settings.s3.storage_class == "REDUCED_REDUNDANCY"
    assert settings.local.prefix == "files"
    assert settings.logging.level == "DEBUG"
    assert settings.reclaim_cycles is True


def test_load_from_environment(tmp_path, monkeypatch):
    path = _write(tmp_path, "backend: local\nlocal:\n  root: store\n")
    monkeypatch.setenv("UPLOAD_MANAGER_CONFIG", str(path))

    settings = Settings.load()

    assert settings.backend == "local"
    assert settings.local.root == Path("store")


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        Settings.load(tmp_path / "missing.yaml")
    assert excinfo.value.details["path"].endswith("missing.yaml")


@pytest.mark.parametrize(
    "text",
    [
        "backend: ftp\n",
        "s3:\n  prefix: media\n",
        "s3:\n  bucket: ''\n",
    ],
)
def test_invalid_configuration(tmp_path, text):
    with pytest.raises(ConfigurationError):
        Settings.load(_write(tmp_path, text))


def test_create_s3_storage(tmp_path, s3_client):
    settings = Settings.load(_write(tmp_path, CONFIG.format(root=tmp_path / "store")))

    storage = create_storage(settings, client=s3_client)

    assert isinstance(storage, S3Storage)
    assert storage.client is s3_client
    assert storage.bucket == "uploads"
    assert storage.prefix == "media"
    assert storage.reclaim_cycles is True
    assert storage.object_url("media/a.jpg") == "https://cdn.example.com/media/a.jpg"


def test_create_local_storage(tmp_path):
    settings = Settings(backend="local", local={"root": tmp_path / "store", "prefix": "files"})

    storage = create_storage(settings)

    assert isinstance(storage, LocalStorage)
    assert storage.location.relative_path == "files"
    assert (tmp_path / "store").is_dir()


@pytest.mark.parametrize("backend", ["s3", "local"])
def test_create_storage_requires_section(backend):
    with pytest.raises(ConfigurationError):
        create_storage(Settings(backend=backend))


def test_get_storage_from_environment(tmp_path, monkeypatch):
    from loguru import logger

    from upload_manager.settings import get_settings
    from upload_manager.storage.factory import get_storage

    log_file = tmp_path / "upload.log"
    path = _write(
        tmp_path,
        f"backend: local\nlocal:\n  root: {tmp_path / 'store'}\nlogging:\n  level: info\n  log_file: {log_file}\n",
    )
    monkeypatch.setenv("UPLOAD_MANAGER_CONFIG", str(path))
    get_settings.cache_clear()
    get_storage.cache_clear()
    try:
        storage = get_storage()
        assert get_storage() is storage
        assert isinstance(storage, LocalStorage)
        logger.remove()
        assert "Using local storage" in log_file.read_text(encoding="utf-8")
    finally:
        get_settings.cache_clear()
        get_storage.cache_clear()
        logger.remove()
        logger.add(sys.stderr)

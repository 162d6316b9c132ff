"""Build a storage backend from settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

import boto3

from upload_manager.exceptions import ConfigurationError
from upload_manager.logging_config import get_logger, setup_logging
from upload_manager.settings import S3Settings, Settings, get_settings
from upload_manager.storage import FileStorage
from upload_manager.storage.local import LocalStorage
from upload_manager.storage.s3 import S3Storage

logger = get_logger(__name__)


def create_s3_client(config: S3Settings) -> Any:
    session = boto3.session.Session(profile_name=config.profile, region_name=config.region)
    return session.client("s3", endpoint_url=config.endpoint_url)


def create_storage(settings: Settings, client: Optional[Any] = None) -> FileStorage:
    """Create the backend selected by ``settings.backend``.

    Args:
        settings: Loaded settings.
        client: Ready S3 client. Built from ``settings.s3`` when omitted.

    Raises:
        ConfigurationError: If the selected backend has no settings section.
    """
    if settings.backend == "local":
        if settings.local is None:
            raise ConfigurationError("backend 'local' requires a 'local' section", {"backend": "local"})
        logger.info("Using local storage at {}", settings.local.root)
        return LocalStorage(
            settings.local.root,
            prefix=settings.local.prefix,
            base_url=settings.local.base_url,
        )

    config = settings.s3
    if config is None:
        raise ConfigurationError("backend 's3' requires an 's3' section", {"backend": "s3"})
    logger.info("Using S3 storage s3://{}/{}", config.bucket, config.prefix)
    return S3Storage(
        config.bucket,
        config.prefix,
        client=client if client is not None else create_s3_client(config),
        acl=config.acl,
        storage_class=config.storage_class,
        public_url=config.public_url,
        reclaim_cycles=settings.reclaim_cycles,
    )


@lru_cache(maxsize=1)
def get_storage() -> FileStorage:
    settings = get_settings()
    setup_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.log_file,
    )
    return create_storage(settings)


__all__ = ["create_s3_client", "create_storage", "get_storage"]

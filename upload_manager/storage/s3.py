from __future__ import annotations

import asyncio
import gc
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Coroutine, Iterable, TypeVar, Union
from urllib.parse import quote

from upload_manager.logging_config import get_logger
from upload_manager.paths import StorageLocation
from upload_manager.patterns import Masks, compile_masks, mask_matches
from upload_manager.storage import FileRef, UploadJob

logger = get_logger(__name__)

T = TypeVar("T")


class S3Storage:
    """File storage on an S3-compatible bucket.

    ``client`` is a ready boto3 S3 client; credentials, region, endpoint and
    timeouts are its business. Every key is built as ``prefix/<path>``.

    ``save`` and ``bulk_save`` block until the upload(s) finished. Inside a
    running event loop use ``save_async`` / ``bulk_save_async`` instead.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        *,
        client: Any,
        acl: str = "public-read",
        storage_class: str = "REDUCED_REDUNDANCY",
        public_url: str | None = None,
        reclaim_cycles: bool = False,
    ) -> None:
        self.location = StorageLocation(bucket, prefix)
        self.client = client
        self.acl = acl
        self.storage_class = storage_class
        self.public_url = public_url.rstrip("/") if public_url else None
        self.reclaim_cycles = reclaim_cycles

    @property
    def bucket(self) -> str:
        return self.location.base_path

    @property
    def prefix(self) -> str:
        return self.location.relative_path

    @property
    def max_concurrency(self) -> int | None:
        """Connection pool size of the client, ``None`` when it sets no limit."""
        config = getattr(self.client.meta, "config", None)
        return getattr(config, "max_pool_connections", None)

    def object_url(self, key: str) -> str:
        quoted = quote(key, safe="/")
        if self.public_url:
            return f"{self.public_url}/{quoted}"
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{quoted}"

    def _put_file(self, source: Union[str, Path], key: str) -> str:
        with open(source, "rb") as body:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ACL=self.acl,
                StorageClass=self.storage_class,
            )
        logger.debug("Uploaded {} to s3://{}/{}", source, self.bucket, key)
        return self.object_url(key)

    def _wait(self, coro: Coroutine[Any, Any, T]) -> T:
        try:
            return asyncio.run(coro)
        except RuntimeError:
            # asyncio.run refuses to start inside a running loop and leaves the coroutine unawaited.
            coro.close()
            raise
        finally:
            if self.reclaim_cycles:
                gc.collect()

    async def save_async(self, source: Union[str, Path], destination: str) -> str:
        key = self.location.file_key(destination)
        return await asyncio.to_thread(self._put_file, source, key)

    async def bulk_save_async(self, files: Iterable[UploadJob | tuple[str, str]]) -> list[str]:
        """Upload every ``(source, destination)`` pair concurrently.

        All uploads start at once on a thread pool sized to the batch. When
        the client caps its connection pool (``max_pool_connections``) the
        thread pool is capped to the same size, so larger batches run in
        waves of that many uploads.

        URLs come back in input order. The first failing upload is raised and
        no URLs are returned.
        """
        jobs = [(source, self.location.file_key(destination)) for source, destination in files]
        if not jobs:
            return []

        workers = len(jobs)
        if self.max_concurrency:
            workers = min(workers, self.max_concurrency)
        logger.info(
            "Uploading {} files to s3://{}/{} ({} at a time)",
            len(jobs), self.bucket, self.prefix, workers,
        )

        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="s3-upload")
        try:
            uploads = [loop.run_in_executor(executor, self._put_file, source, key) for source, key in jobs]
            return list(await asyncio.gather(*uploads))
        finally:
            # Uploads still running after a failure finish on their own threads.
            executor.shutdown(wait=False)

    def save(self, source: Union[str, Path], destination: str) -> str:
        return self._wait(self.save_async(source, destination))

    def bulk_save(self, files: Iterable[UploadJob | tuple[str, str]]) -> list[str]:
        return self._wait(self.bulk_save_async(files))

    def delete(self, path: str) -> None:
        key = self.location.file_key(path)
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.debug("Deleted s3://{}/{}", self.bucket, key)

    def bulk_delete(self, paths: Iterable[str]) -> None:
        objects = [{"Key": self.location.file_key(path)} for path in paths]
        if not objects:
            return

        response = self.client.delete_objects(
            Bucket=self.bucket,
            Delete={"Objects": objects},
        )
        logger.info("Deleted {} objects from s3://{}", len(objects), self.bucket)

        for error in (response or {}).get("Errors", []):
            logger.warning(
                "Failed to delete s3://{}/{}: {} {}",
                self.bucket,
                error.get("Key"),
                error.get("Code"),
                error.get("Message"),
            )

    def find(self, namespace: str, masks: Masks | None) -> dict[str, FileRef]:
        pattern = compile_masks(masks)
        prefix = self.location.key(namespace)

        paginator = self.client.get_paginator("list_objects_v2")
        results: dict[str, FileRef] = {}
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                key = obj["Key"]
                if mask_matches(pattern, key):
                    url = self.object_url(key)
                    results[url] = FileRef(url)

        logger.debug("Found {} objects under s3://{}/{}", len(results), self.bucket, prefix)
        return results


__all__ = ["S3Storage"]

from __future__ import annotations

import threading
import time
from types import SimpleNamespace
from typing import Any

import pytest
from botocore.exceptions import ClientError


class FakePaginator:
    def __init__(self, client: "FakeS3Client") -> None:
        self.client = client

    def paginate(self, *, Bucket: str, Prefix: str = "") -> Any:
        self.client.calls.append(("list_objects_v2", {"Bucket": Bucket, "Prefix": Prefix}))
        keys = sorted(k for (b, k) in self.client.objects if b == Bucket and k.startswith(Prefix))
        size = self.client.page_size
        for start in range(0, len(keys), size):
            yield {"Contents": [{"Key": key} for key in keys[start:start + size]]}
        if not keys:
            yield {"KeyCount": 0}


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self, endpoint_url: str = "https://s3.example.com", page_size: int = 2) -> None:
        self.meta = SimpleNamespace(endpoint_url=endpoint_url)
        self.page_size = page_size
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.delays: dict[str, float] = {}
        self.failing_keys: set[str] = set()
        self.delete_errors: list[dict[str, str]] = []
        self.completed: list[str] = []
        self._lock = threading.Lock()

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        key = kwargs["Key"]
        time.sleep(self.delays.get(key, 0.0))
        if key in self.failing_keys:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject")
        with self._lock:
            self.calls.append(("put_object", {k: v for k, v in kwargs.items() if k != "Body"}))
            self.objects[(kwargs["Bucket"], key)] = {
                "Body": kwargs["Body"].read(),
                "ACL": kwargs.get("ACL"),
                "StorageClass": kwargs.get("StorageClass"),
            }
            self.completed.append(key)
        return {"ETag": '"etag"'}

    def delete_object(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("delete_object", kwargs))
        self.objects.pop((kwargs["Bucket"], kwargs["Key"]), None)
        return {}

    def delete_objects(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("delete_objects", kwargs))
        deleted = []
        for obj in kwargs["Delete"]["Objects"]:
            self.objects.pop((kwargs["Bucket"], obj["Key"]), None)
            deleted.append({"Key": obj["Key"]})
        response: dict[str, Any] = {"Deleted": deleted}
        if self.delete_errors:
            response["Errors"] = self.delete_errors
        return response

    def get_paginator(self, operation_name: str) -> FakePaginator:
        assert operation_name == "list_objects_v2"
        return FakePaginator(self)

    def add(self, bucket: str, key: str, body: bytes = b"") -> None:
        self.objects[(bucket, key)] = {"Body": body}

    def calls_named(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for (call, kwargs) in self.calls if call == name]


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def make_file(tmp_path):
    def _make(name: str, content: bytes = b"data"):
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make

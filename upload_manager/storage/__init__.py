"""Storage abstraction (S3-compatible object store or local filesystem)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, NamedTuple, Protocol, Union

from upload_manager.patterns import Masks


class UploadJob(NamedTuple):
    source: Union[str, Path]
    destination: str


@dataclass(frozen=True)
class FileRef:
    """Reference to a stored file: its public path, no content."""

    path: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.path.rstrip("/")).name

    def __str__(self) -> str:
        return self.path


class FileStorage(Protocol):
    def save(self, source: Union[str, Path], destination: str) -> str:  # returns url
        ...

    def bulk_save(self, files: Iterable[UploadJob | tuple[str, str]]) -> list[str]:  # urls, input order
        ...

    def delete(self, path: str) -> None:
        ...

    def bulk_delete(self, paths: Iterable[str]) -> None:
        ...

    def find(self, namespace: str, masks: Masks | None) -> dict[str, FileRef]:  # url -> file ref
        ...


__all__ = ["FileRef", "FileStorage", "UploadJob"]

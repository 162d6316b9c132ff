"""Storage key construction."""

from __future__ import annotations

from dataclasses import dataclass

from upload_manager.exceptions import StorageKeyError


def normalize_path(path: str) -> str:
    """Normalize a storage key.

    Backslashes become slashes, empty and ``.`` segments are dropped and
    ``..`` removes the preceding segment. A ``..`` with nothing left to remove
    is dropped, so the result never climbs above the root. The returned key
    has no leading or trailing slash.
    """
    segments: list[str] = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    return "/".join(segments)


@dataclass(frozen=True)
class StorageLocation:
    """Bucket (or root directory) plus the key prefix every operation works under."""

    base_path: str
    relative_path: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_path", self.base_path.rstrip("/"))
        object.__setattr__(self, "relative_path", self.relative_path.strip("/"))

    def key(self, path: str) -> str:
        return normalize_path(f"{self.relative_path}/{path}")

    def file_key(self, path: str) -> str:
        """Key of a single file; ``path`` must name something below the prefix."""
        if not normalize_path(path):
            raise StorageKeyError(f"Path {path!r} does not name a file", {"path": path})
        return self.key(path)


__all__ = ["StorageLocation", "normalize_path"]

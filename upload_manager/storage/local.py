from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union
from urllib.parse import quote

from upload_manager.logging_config import get_logger
from upload_manager.paths import StorageLocation
from upload_manager.patterns import Masks, compile_masks, mask_matches
from upload_manager.storage import FileRef, UploadJob

logger = get_logger(__name__)


class LocalStorage:
    """File storage on a local directory tree, keys relative to ``root``."""

    def __init__(self, root: Path, prefix: str = "", base_url: str | None = None) -> None:
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.location = StorageLocation(self.root.as_posix(), prefix)
        self.base_url = base_url.rstrip("/") if base_url else None

    def _path(self, key: str) -> Path:
        return self.root / key

    def object_url(self, key: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{quote(key, safe='/')}"
        return self._path(key).as_uri()

    def save(self, source: Union[str, Path], destination: str) -> str:
        key = self.location.file_key(destination)
        target = self._path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(Path(source).read_bytes())
        logger.debug("Stored {} at {}", source, target)
        return self.object_url(key)

    def bulk_save(self, files: Iterable[UploadJob | tuple[str, str]]) -> list[str]:
        return [self.save(source, destination) for source, destination in files]

    def delete(self, path: str) -> None:
        self._path(self.location.file_key(path)).unlink(missing_ok=True)

    def bulk_delete(self, paths: Iterable[str]) -> None:
        count = 0
        for path in paths:
            self.delete(path)
            count += 1
        logger.info("Deleted {} files under {}", count, self.root)

    def find(self, namespace: str, masks: Masks | None) -> dict[str, FileRef]:
        pattern = compile_masks(masks)
        prefix = self.location.key(namespace)

        # Walk only the deepest directory the prefix fully names.
        start = self.root / prefix.rpartition("/")[0]
        if not start.is_dir():
            return {}

        results: dict[str, FileRef] = {}
        for path in sorted(start.rglob("*")):
            if not path.is_file():
                continue
            key = path.relative_to(self.root).as_posix()
            if key.startswith(prefix) and mask_matches(pattern, key):
                url = self.object_url(key)
                results[url] = FileRef(url)
        return results


__all__ = ["LocalStorage"]

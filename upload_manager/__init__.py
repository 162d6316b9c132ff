"""upload-manager - save, bulk-save, delete and find files on object storage.

Backends implement the ``FileStorage`` protocol: ``S3Storage`` for
S3-compatible buckets and ``LocalStorage`` for a local directory tree.
"""

from .exceptions import ConfigurationError, PatternCompileError, StorageKeyError, UploadManagerError
from .paths import StorageLocation, normalize_path
from .patterns import compile_masks, mask_matches
from .storage import FileRef, FileStorage, UploadJob
from .storage.local import LocalStorage
from .storage.s3 import S3Storage

__all__ = [
    "ConfigurationError",
    "FileRef",
    "FileStorage",
    "LocalStorage",
    "PatternCompileError",
    "S3Storage",
    "StorageKeyError",
    "StorageLocation",
    "UploadJob",
    "UploadManagerError",
    "compile_masks",
    "mask_matches",
    "normalize_path",
]

import logging
import os
from typing import Iterable, List, Optional

from classroom.core.config.settings import get_settings
from classroom.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage:
    """
    Bucket/key object store kept on the local filesystem.

    Objects live at <root>/<bucket>/<key> and are served read-only under
    <public_url>/<bucket>/<key> by the static mount in main.py.
    """

    def __init__(self, root: Optional[str] = None, public_url: Optional[str] = None):
        settings = get_settings()
        self.root = os.path.abspath(root or settings.STORAGE_ROOT)
        self.public_url = (public_url or settings.STORAGE_PUBLIC_URL).rstrip("/")

        # Create storage directory if it doesn't exist
        os.makedirs(self.root, exist_ok=True)

    def _object_path(self, bucket: str, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.root, bucket, path))
        if not full_path.startswith(os.path.join(self.root, bucket) + os.sep):
            raise StorageError(f"Invalid object path: {bucket}/{path}")
        return full_path

    def upload(self, bucket: str, path: str, blob: bytes) -> str:
        """
        Store a blob under bucket/path

        Args:
            bucket: Bucket name
            path: Key relative to the bucket
            blob: Raw file content

        Returns:
            The key that was written
        """
        object_path = self._object_path(bucket, path)
        if os.path.exists(object_path):
            raise StorageError(f"Object already exists: {bucket}/{path}")
        try:
            os.makedirs(os.path.dirname(object_path), exist_ok=True)
            with open(object_path, "wb") as buffer:
                buffer.write(blob)
        except OSError as e:
            raise StorageError(f"Failed to upload {bucket}/{path}: {e}")
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_url}/{bucket}/{path}"

    def exists(self, bucket: str, path: str) -> bool:
        return os.path.exists(self._object_path(bucket, path))

    def remove(self, bucket: str, paths: Iterable[str]) -> List[str]:
        """
        Delete objects from a bucket. Missing objects are treated as already removed.

        Returns:
            The keys that were removed
        """
        removed = []
        for path in paths:
            object_path = self._object_path(bucket, path)
            try:
                if os.path.exists(object_path):
                    os.remove(object_path)
            except OSError as e:
                raise StorageError(f"Failed to remove {bucket}/{path}: {e}")
            removed.append(path)
        return removed


_storage: Optional[ObjectStorage] = None


def get_storage() -> ObjectStorage:
    global _storage
    if _storage is None:
        _storage = ObjectStorage()
    return _storage

"""
File attachment manager: batch upload into object storage with one metadata
row per file, and storage-first deletion.
"""
import enum
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from classroom.core.config.settings import get_settings
from classroom.core.exceptions import ClassroomError, StorageError, ValidationFailed
from classroom.services.file_storage import ObjectStorage
from classroom.utils.helpers import (
    generate_storage_name,
    join_storage_path,
    sanitize_filename,
    split_storage_path,
)

logger = logging.getLogger(__name__)


class UploadPolicy(str, enum.Enum):
    BEST_EFFORT = "best_effort"
    FAIL_FAST = "fail_fast"


@dataclass
class IncomingFile:
    file_name: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class FileUploadResult:
    file_name: str
    ok: bool
    file_id: Optional[int] = None
    file_path: Optional[str] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict:
        return {
            "file_name": self.file_name,
            "ok": self.ok,
            "file_id": self.file_id,
            "file_path": self.file_path,
            "error": self.error,
        }


def validate_batch(files: List[IncomingFile]) -> None:
    """Reject batches over the configured count or per-file size limits."""
    settings = get_settings()
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise ValidationFailed(f"You can only upload up to {settings.MAX_FILES_PER_UPLOAD} files")
    limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
    for incoming in files:
        if incoming.size > settings.MAX_UPLOAD_SIZE:
            raise ValidationFailed(f'File "{incoming.file_name}" exceeds {limit_mb}MB limit')
        if not sanitize_filename(incoming.file_name):
            raise ValidationFailed("File name is required")


def upload_batch(
    db: Session,
    storage: ObjectStorage,
    files: List[IncomingFile],
    bucket: str,
    prefix: str,
    make_record: Callable[..., object],
    policy: UploadPolicy = UploadPolicy.BEST_EFFORT,
) -> List[FileUploadResult]:
    """
    Upload files one after another and persist a metadata row for each.

    Args:
        db: Database session; each metadata row is committed on its own
        storage: Object storage
        files: Files in upload order
        bucket: Target bucket
        prefix: Key prefix inside the bucket (usually the owner id)
        make_record: Builds the ORM metadata row from file_name/file_path/file_size/file_type
        policy: BEST_EFFORT logs and skips a failed file, FAIL_FAST re-raises it

    Returns:
        One result per input file, in order. Under FAIL_FAST the files after a
        failure are not attempted and do not appear in the list.
    """
    results = []
    for incoming in files:
        file_name = sanitize_filename(incoming.file_name)
        key = f"{prefix}/{generate_storage_name(file_name)}"
        try:
            storage.upload(bucket, key, incoming.data)
        except ClassroomError as e:
            logger.warning(f"Error uploading file {file_name!r} to {bucket}: {e.detail}")
            if policy == UploadPolicy.FAIL_FAST:
                raise
            results.append(FileUploadResult(file_name=file_name, ok=False, error=e.detail))
            continue

        file_path = join_storage_path(bucket, key)
        record = make_record(
            file_name=file_name,
            file_path=file_path,
            file_size=incoming.size,
            file_type=incoming.content_type or "application/octet-stream",
        )
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except Exception as e:
            db.rollback()
            logger.warning(f"Error saving metadata for {file_path}: {e}")
            try:
                storage.remove(bucket, [key])
            except Exception as cleanup_error:
                logger.error(f"Error removing orphaned object {file_path}: {cleanup_error}")
            if policy == UploadPolicy.FAIL_FAST:
                raise
            results.append(FileUploadResult(file_name=file_name, ok=False, file_path=file_path, error=str(e)))
            continue

        results.append(FileUploadResult(file_name=file_name, ok=True, file_id=record.id, file_path=file_path))
    return results


def delete_file_record(db: Session, storage: ObjectStorage, record) -> None:
    """
    Delete the stored object, then its metadata row.

    If storage removal fails the metadata row is left untouched and the
    error propagates to the caller.
    """
    try:
        bucket, key = split_storage_path(record.file_path)
    except ValueError as e:
        raise StorageError(str(e))

    try:
        storage.remove(bucket, [key])
    except Exception as e:
        logging.getLogger("classroom.errors").error(f"Storage delete failed for {record.file_path}: {e}")
        if isinstance(e, ClassroomError):
            raise
        raise StorageError(f"Failed to delete {record.file_path}: {e}")

    db.delete(record)
    db.commit()


def purge_objects(storage: ObjectStorage, records: Iterable) -> int:
    """
    Remove the stored objects behind a set of metadata rows, grouped per bucket.
    Used before deleting an owner whose metadata rows cascade away with it.
    """
    by_bucket = defaultdict(list)
    for record in records:
        try:
            bucket, key = split_storage_path(record.file_path)
        except ValueError:
            logger.warning(f"Skipping malformed storage path {record.file_path!r}")
            continue
        by_bucket[bucket].append(key)

    removed = 0
    for bucket, keys in by_bucket.items():
        removed += len(storage.remove(bucket, keys))
    return removed


def get_download_url(storage: ObjectStorage, record) -> str:
    try:
        bucket, key = split_storage_path(record.file_path)
    except ValueError as e:
        raise StorageError(str(e))
    return storage.get_public_url(bucket, key)

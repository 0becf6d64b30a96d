from datetime import datetime, timezone
from typing import Optional, Tuple
import os
import re
import secrets
import string
import time

CLASS_CODE_ALPHABET = string.ascii_uppercase + string.digits

def get_utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)

def generate_class_code(length: int = 6) -> str:
    """Random upper-case alphanumeric code students type in to enroll"""
    return "".join(secrets.choice(CLASS_CODE_ALPHABET) for _ in range(length))

def normalize_class_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()

def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing invalid characters

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    # Remove invalid characters
    filename = re.sub(r'[<>:"/\\|?*]', '', filename or "")
    # Remove control characters
    filename = "".join(char for char in filename if ord(char) >= 32)
    return filename.strip()

def generate_storage_name(filename: str) -> str:
    """Unique object name of the form <millis>-<random>.<ext>"""
    extension = os.path.splitext(sanitize_filename(filename))[1].lower().lstrip(".")
    stem = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
    return f"{stem}.{extension}" if extension else stem

def join_storage_path(bucket: str, key: str) -> str:
    return f"{bucket}/{key}"

def split_storage_path(file_path: str) -> Tuple[str, str]:
    """
    Split a stored "<bucket>/<relative-path>" into (bucket, key)

    Raises:
        ValueError: if the path has no bucket segment or no key
    """
    bucket, _, key = (file_path or "").partition("/")
    if not bucket or not key:
        raise ValueError(f"Malformed storage path: {file_path!r}")
    return bucket, key

def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"

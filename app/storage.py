"""
Local-filesystem object bucket for application documents.

Object keys follow ``{uploader_id}/{application_id}/{nn}-{doc_type}{ext}``; the
first segment is what the storage policy in app.policies checks.
"""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Iterable
from urllib.parse import quote

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from app.config import (
    ALLOWED_EXTENSIONS, DOCUMENTS_BUCKET, MAX_UPLOAD_SIZE, PUBLIC_BASE_URL, STORAGE_ROOT,
)
from app.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)


def object_name(label: str) -> str:
    """Make a document label safe to use as a single path segment."""
    return re.sub(r"[^A-Za-z0-9._-]+", "_", label).strip("_") or "document"


def document_path(user_id: str, application_id: str, index: int, doc_type: str, filename: str) -> str:
    """Key for the index-th required document of an application."""
    ext = Path(filename).suffix.lower()
    return f"{user_id}/{application_id}/{index:02d}-{object_name(doc_type)}{ext}"


def validate_upload(file: UploadFile) -> None:
    """Validate an uploaded file's name and extension."""
    if not file.filename:
        raise ValidationError("No file provided")

    file_extension = Path(file.filename).suffix.lower()
    if file_extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
            details={"file_name": file.filename},
        )


def validate_size(file_name: str, content: bytes) -> None:
    if len(content) > MAX_UPLOAD_SIZE:
        raise ValidationError("File too large", details={"file_name": file_name, "max_bytes": MAX_UPLOAD_SIZE})


class LocalBucket:
    def __init__(self, root: str, name: str = DOCUMENTS_BUCKET, public_base_url: str = PUBLIC_BASE_URL):
        self.name = name
        self.base_dir = Path(root) / name
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        key = PurePosixPath(path)
        if key.is_absolute() or not key.parts or ".." in key.parts:
            raise StorageError("Invalid object path", path=path)
        return self.base_dir.joinpath(*key.parts)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def local_path(self, path: str) -> Path:
        target = self._resolve(path)
        if not target.is_file():
            raise StorageError("Object not found", path=path)
        return target

    async def upload(self, path: str, content: bytes, upsert: bool = False) -> str:
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise StorageError("Object already exists", path=path)
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(content)
        logger.info(f"Stored object {self.name}/{path} ({len(content)} bytes)")
        return path

    async def download(self, path: str) -> bytes:
        async with aiofiles.open(self.local_path(path), "rb") as f:
            return await f.read()

    async def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                await aiofiles.os.remove(target)
            except FileNotFoundError:
                logger.warning(f"Object {self.name}/{path} already gone")

    def get_public_url(self, path: str) -> str:
        return f"{self.public_base_url}/storage/{self.name}/{quote(path)}"


def get_bucket() -> LocalBucket:
    return LocalBucket(STORAGE_ROOT)

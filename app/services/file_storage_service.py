import logging
import os
import random
import time
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from app.configs.settings import settings
from app.dto.booking_dto import StoredPhoto
from app.exceptions.base_exception import StorageException, ValidationException

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


def _write_bytes(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as fh:
        fh.write(data)


def _remove(target: Path) -> bool:
    try:
        target.unlink()
        return True
    except FileNotFoundError:
        return False


class FileStorageService:
    """
    Stores uploaded booking photos on the local disk under LOCAL_STORAGE_PATH.
    Files are served back by the static mount at /uploads.
    """

    @staticmethod
    def storage_root() -> Path:
        return Path(settings.LOCAL_STORAGE_PATH)

    @staticmethod
    def public_url(filename: Optional[str]) -> Optional[str]:
        if not filename:
            return None
        return f"{settings.PUBLIC_BASE_URL.rstrip('/')}{UPLOAD_URL_PREFIX}/{filename}"

    @staticmethod
    async def read_image(file: UploadFile) -> bytes:
        """Read an uploaded image, enforcing the mimetype filter and size ceiling."""
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            logger.info("Rejected upload with content type %r", content_type)
            raise ValidationException("Only image files are allowed", error_code="UNSUPPORTED_FILE_TYPE")

        # One byte past the limit is enough to detect an oversized file
        limit = settings.MAX_UPLOAD_SIZE_BYTES
        data = await file.read(limit + 1)
        if len(data) > limit:
            logger.info("Rejected upload of more than %d bytes", limit)
            raise ValidationException(
                f"File size too large. Maximum size is {max(limit // (1024 * 1024), 1)}MB",
                error_code="FILE_TOO_LARGE",
            )
        return data

    @staticmethod
    async def save_image(file: UploadFile, field_name: str = "photo") -> StoredPhoto:
        data = await FileStorageService.read_image(file)

        # Unique name keeping the original extension
        original_name = file.filename or "upload"
        ext = os.path.splitext(original_name)[1].lower()
        filename = f"{field_name}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
        target = FileStorageService.storage_root() / filename

        try:
            await run_in_threadpool(_write_bytes, target, data)
        except OSError:
            logger.exception("Failed to write upload %s", target)
            raise StorageException("Failed to store uploaded file")

        return StoredPhoto(
            filename=filename,
            original_name=original_name,
            path=str(target),
            size=len(data),
            url=FileStorageService.public_url(filename),
        )

    @staticmethod
    async def delete(path: Optional[str]) -> bool:
        """Best-effort removal; returns whether a file was deleted."""
        if not path:
            return False
        try:
            return await run_in_threadpool(_remove, Path(path))
        except OSError:
            logger.warning("Could not remove stored file %s", path, exc_info=True)
            return False

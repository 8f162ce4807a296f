"""
Presigned S3 uploads.

Clients ask for a presigned PUT URL, upload the object straight to the
bucket and then record its metadata. Keys always live under
``uploads/{user_id}/`` so ownership can be checked from the key alone.
"""

import asyncio
import re
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ngurra_pathways.core.database.entities.uploads import FileCategory, FileUpload
from ngurra_pathways.core.database.entities.users import User
from ngurra_pathways.core.database.utils import utc_now
from ngurra_pathways.core.errors import BadRequestError, ForbiddenError, NotFoundError, ServiceUnavailableError
from ngurra_pathways.core.logging_config import get_logger
from ngurra_pathways.server.core.config import StorageConfig, settings

logger = get_logger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class FileLimit:
    max_size: int
    extensions: Tuple[str, ...]


FILE_LIMITS: Dict[str, FileLimit] = {
    "application/pdf": FileLimit(10 * MB, (".pdf",)),
    "application/msword": FileLimit(10 * MB, (".doc",)),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": FileLimit(10 * MB, (".docx",)),
    "text/plain": FileLimit(1 * MB, (".txt",)),
    "image/jpeg": FileLimit(5 * MB, (".jpg", ".jpeg")),
    "image/png": FileLimit(5 * MB, (".png",)),
    "image/webp": FileLimit(5 * MB, (".webp",)),
    "image/gif": FileLimit(5 * MB, (".gif",)),
    "video/mp4": FileLimit(100 * MB, (".mp4",)),
    "video/quicktime": FileLimit(100 * MB, (".mov",)),
    "video/webm": FileLimit(100 * MB, (".webm",)),
}

CATEGORY_TYPES: Dict[str, Tuple[str, ...]] = {
    FileCategory.RESUME.value: (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
    FileCategory.PHOTO.value: ("image/jpeg", "image/png", "image/webp"),
    FileCategory.VIDEO.value: ("video/mp4", "video/quicktime", "video/webm"),
    FileCategory.OTHER.value: tuple(FILE_LIMITS),
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def file_extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    return f".{ext.lower()}" if dot else ""


def secure_filename(filename: str, now: Optional[float] = None) -> str:
    """Return ``{timestamp}-{hex}-{stem}{ext}`` with the stem reduced to safe characters."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    ext = file_extension(name)
    stem = name[: -len(ext)] if ext else name
    stem = _UNSAFE_CHARS.sub("-", stem).strip("-")[:50] or "file"
    timestamp = int((now if now is not None else time.time()) * 1000)
    return f"{timestamp}-{secrets.token_hex(8)}-{stem}{ext}"


def validate_upload(filename: str, mime_type: str, category: str) -> FileLimit:
    """
    Check MIME type, category and extension of a prospective upload.

    Raises:
        BadRequestError: When any of the three checks fails
    """
    limit = FILE_LIMITS.get(mime_type)
    if limit is None:
        raise BadRequestError(f"File type not allowed: {mime_type}")
    if mime_type not in CATEGORY_TYPES.get(category, CATEGORY_TYPES[FileCategory.OTHER.value]):
        raise BadRequestError(f"File type {mime_type} not allowed for category {category}")
    ext = file_extension(filename)
    if ext not in limit.extensions:
        raise BadRequestError(
            f"File extension {ext or '(none)'} does not match type {mime_type}. "
            f"Allowed: {', '.join(limit.extensions)}"
        )
    return limit


class ObjectStorage:
    """Thin boto3 wrapper for the upload bucket."""

    def __init__(self, config: StorageConfig, client: Any = None):
        self.config = config
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None or self.config.enabled

    @property
    def client(self) -> Any:
        if not self.enabled:
            raise ServiceUnavailableError("File storage is not configured")
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.config.region,
                aws_access_key_id=self.config.access_key_id,
                aws_secret_access_key=self.config.secret_access_key,
                endpoint_url=self.config.endpoint_url,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def public_url(self, key: str) -> str:
        if self.config.endpoint_url:
            return f"{self.config.endpoint_url.rstrip('/')}/{self.config.bucket}/{quote(key)}"
        return f"https://{self.config.bucket}.s3.{self.config.region}.amazonaws.com/{quote(key)}"

    def presign_put(self, key: str, mime_type: str, filename: str) -> str:
        return self._presign(
            "put_object",
            {
                "Bucket": self.config.bucket,
                "Key": key,
                "ContentType": mime_type,
                "ContentDisposition": f'attachment; filename="{filename}"',
            },
        )

    def presign_get(self, key: str) -> str:
        return self._presign("get_object", {"Bucket": self.config.bucket, "Key": key})

    def _presign(self, operation: str, params: Dict[str, Any]) -> str:
        try:
            return self.client.generate_presigned_url(
                operation, Params=params, ExpiresIn=self.config.url_expiry_seconds
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to presign {operation} for {params.get('Key')}: {e}")
            raise ServiceUnavailableError("File storage is temporarily unavailable") from e

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.config.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            # The metadata row is already soft-deleted; the object is left for lifecycle cleanup.
            logger.warning(f"Failed to delete object {key}: {e}")


class UploadService:
    def __init__(self, session: AsyncSession, storage: Optional[ObjectStorage] = None):
        self.session = session
        self.storage = storage or ObjectStorage(settings.storage)

    @staticmethod
    def user_prefix(user_id: str) -> str:
        return f"uploads/{user_id}/"

    def presign(self, user: User, filename: str, mime_type: str, category: Optional[str]) -> Dict[str, Any]:
        category = category or FileCategory.OTHER.value
        limit = validate_upload(filename, mime_type, category)
        if not self.storage.enabled:
            raise ServiceUnavailableError("File storage is not configured")

        safe_name = secure_filename(filename)
        key = f"{self.user_prefix(user.id)}{safe_name}"
        upload_url = self.storage.presign_put(key, mime_type, safe_name)
        logger.info(f"Presigned upload for user {user.id}: {key}")
        return {
            "upload_url": upload_url,
            "key": key,
            "public_url": self.storage.public_url(key),
            "max_size": limit.max_size,
            "max_size_mb": round(limit.max_size / MB, 1),
            "expires_in": self.storage.config.url_expiry_seconds,
        }

    async def record(
        self, user: User, key: str, filename: str, mime_type: str, size: int, category: Optional[str]
    ) -> FileUpload:
        """
        Store metadata for an object uploaded through a presigned URL.

        The type, category and extension checks made at presign time are
        repeated here, against both the reported filename and the key.

        Raises:
            ForbiddenError: The key is outside the user's prefix
            BadRequestError: Disallowed type, mismatched extension or oversized file
        """
        if not key.startswith(self.user_prefix(user.id)) or ".." in key:
            raise ForbiddenError("Upload key does not belong to you")
        category = category or FileCategory.OTHER.value
        limit = validate_upload(filename, mime_type, category)
        if file_extension(key) not in limit.extensions:
            raise BadRequestError(f"Upload key does not match type {mime_type}")
        if size > limit.max_size:
            raise BadRequestError(
                f"File too large. Maximum size for {mime_type} is {limit.max_size / MB:.1f}MB"
            )

        upload = FileUpload(
            user_id=user.id,
            key=key,
            filename=filename,
            url=self.storage.public_url(key),
            mime_type=mime_type,
            size=size,
            category=category,
        )
        self.session.add(upload)
        await self.session.commit()
        await self.session.refresh(upload)
        return upload

    async def list_for(self, user: User) -> List[FileUpload]:
        result = await self.session.execute(
            select(FileUpload)
            .where(FileUpload.user_id == user.id, FileUpload.is_deleted.is_(False))
            .order_by(FileUpload.created_at.desc())
        )
        return list(result.scalars().all())

    async def _owned(self, user: User, upload_id: str) -> FileUpload:
        upload = await self.session.get(FileUpload, upload_id)
        if upload is None or upload.is_deleted or upload.user_id != user.id:
            raise NotFoundError("File")
        return upload

    async def download_url(self, user: User, upload_id: str) -> Dict[str, Any]:
        upload = await self._owned(user, upload_id)
        return {
            "url": self.storage.presign_get(upload.key),
            "expires_in": self.storage.config.url_expiry_seconds,
        }

    async def delete(self, user: User, upload_id: str) -> None:
        upload = await self._owned(user, upload_id)
        upload.is_deleted = True
        upload.deleted_at = utc_now()
        self.session.add(upload)
        await self.session.commit()
        if self.storage.enabled:
            await self.storage.delete(upload.key)

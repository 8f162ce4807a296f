"""
Uploaded file metadata.

Table: file_uploads
"""

from enum import Enum
from typing import Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base
from ..utils import new_id, utc_now


class FileCategory(str, Enum):
    RESUME = "RESUME"
    PHOTO = "PHOTO"
    VIDEO = "VIDEO"
    OTHER = "OTHER"


class FileUpload(Base, table=True):
    """Object stored under ``uploads/{user_id}/`` in the bucket."""

    __tablename__ = "file_uploads"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=36)
    key: str = Field(max_length=512, unique=True)
    filename: str = Field(max_length=255)
    url: str
    mime_type: str = Field(max_length=100)
    size: int = Field(ge=0)
    category: str = Field(default=FileCategory.OTHER.value, max_length=10)
    is_deleted: bool = Field(default=False)
    deleted_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime())
    created_at: NaiveDatetime = Field(default_factory=utc_now, index=True, sa_type=DateTime())

"""
File upload I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ngurra_pathways.core.database.entities.uploads import FileCategory


class PresignRequest(BaseModel):
    filename: str = Field(min_length=1, max_length=255)
    mime_type: str = Field(min_length=3, max_length=100)
    category: Optional[FileCategory] = None


class PresignResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str
    max_size: int
    max_size_mb: float
    expires_in: int


class UploadMetadataCreate(BaseModel):
    key: str = Field(max_length=512)
    filename: str = Field(max_length=255)
    mime_type: str = Field(max_length=100)
    size: int = Field(ge=0)
    category: Optional[FileCategory] = None


class FileUploadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    filename: str
    url: str
    mime_type: str
    size: int
    category: str
    created_at: datetime


class FileUploadList(BaseModel):
    files: List[FileUploadRead]


class DownloadUrl(BaseModel):
    url: str
    expires_in: int

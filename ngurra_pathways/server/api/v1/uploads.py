"""
Upload API Endpoints.

Presigned S3 uploads: the client asks for a URL, PUTs the file directly to
the bucket, then records the upload's metadata here.
"""

from fastapi import APIRouter, status

from ngurra_pathways.core.models.io.uploads import (
    DownloadUrl,
    FileUploadList,
    FileUploadRead,
    PresignRequest,
    PresignResponse,
    UploadMetadataCreate,
)
from ngurra_pathways.server.services.deps import CurrentUser, DBSession
from ngurra_pathways.server.services.uploads import UploadService

router = APIRouter()


@router.post(
    "/s3-url",
    response_model=PresignResponse,
    summary="Presign Upload",
    description="Validate a prospective upload and return a presigned PUT URL.",
    responses={
        400: {"description": "File type, category or extension not allowed"},
        503: {"description": "File storage not configured"},
    },
)
async def presign_upload(data: PresignRequest, user: CurrentUser, session: DBSession) -> PresignResponse:
    """
    Request an upload URL.

    - **filename**: Original file name; its extension must match the MIME type.
    - **mime_type**: Declared content type.
    - **category**: RESUME, PHOTO, VIDEO or OTHER.
    """
    category = data.category.value if data.category else None
    return PresignResponse.model_validate(
        UploadService(session).presign(user, data.filename, data.mime_type, category)
    )


@router.post(
    "/metadata",
    response_model=FileUploadRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record Upload",
    description="Store metadata of a completed upload.",
    responses={
        400: {"description": "File too large or type not allowed"},
        403: {"description": "Key is outside the caller's upload prefix"},
    },
)
async def record_upload(data: UploadMetadataCreate, user: CurrentUser, session: DBSession) -> FileUploadRead:
    upload = await UploadService(session).record(
        user,
        key=data.key,
        filename=data.filename,
        mime_type=data.mime_type,
        size=data.size,
        category=data.category.value if data.category else None,
    )
    return FileUploadRead.model_validate(upload)


@router.get("/me", response_model=FileUploadList, summary="List Own Uploads")
async def my_uploads(user: CurrentUser, session: DBSession) -> FileUploadList:
    return FileUploadList(files=[FileUploadRead.model_validate(f) for f in await UploadService(session).list_for(user)])


@router.get(
    "/{upload_id}/download",
    response_model=DownloadUrl,
    summary="Download URL",
    description="Presigned GET URL for one of the caller's uploads.",
    responses={404: {"description": "File not found"}},
)
async def download_url(upload_id: str, user: CurrentUser, session: DBSession) -> DownloadUrl:
    return DownloadUrl.model_validate(await UploadService(session).download_url(user, upload_id))


@router.delete(
    "/{upload_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Upload",
    responses={404: {"description": "File not found"}},
)
async def delete_upload(upload_id: str, user: CurrentUser, session: DBSession):
    await UploadService(session).delete(user, upload_id)

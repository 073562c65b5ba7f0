"""Multipart upload API router.

This module maps the HTTP surface of the multipart upload protocol onto the
upload service: start a session, presign part URLs, complete or abort.
Part bytes never pass through here; clients PUT them straight to storage.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query, status

from upload_gateway.api.deps import get_upload_service
from upload_gateway.api.schemas.uploads import (
    AbortUploadIn,
    CompleteUploadIn,
    ErrorOut,
    MessageOut,
    PresignUrlOut,
    StartUploadOut,
    UploadedPartOut,
    UploadedPartsOut,
)
from upload_gateway.infra.storage.client import CompletedPart, StorageError
from upload_gateway.services.upload_service import (
    InvalidUploadRequestError,
    UploadService,
)

router = APIRouter(prefix="/upload")

ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorOut, "description": "Missing or invalid parameters"},
    401: {"model": ErrorOut, "description": "Authorization header required"},
    500: {"model": ErrorOut, "description": "Storage backend error"},
}


@contextmanager
def _service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except InvalidUploadRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc


@router.post(
    "/start",
    response_model=StartUploadOut,
    responses=ERROR_RESPONSES,
    summary="Start multipart upload",
    description="Allocate a new multipart upload session for the given key.",
)
def start_multipart_upload(
    key: str = Query(default=""),
    service: UploadService = Depends(get_upload_service),
) -> StartUploadOut:
    with _service_errors():
        started = service.start_upload(key)
    return StartUploadOut(upload_id=started.upload_id, key=started.key)


@router.post(
    "/presign",
    response_model=PresignUrlOut,
    responses=ERROR_RESPONSES,
    summary="Presign part URL",
    description="Issue a time-limited URL the client can PUT one part to.",
)
def get_presign_url_for_part(
    key: str = Query(default=""),
    upload_id: str = Query(default="", alias="uploadId"),
    part_number: str = Query(default="", alias="partNumber"),
    service: UploadService = Depends(get_upload_service),
) -> PresignUrlOut:
    with _service_errors():
        url = service.get_presign_url(key, upload_id, part_number)
    return PresignUrlOut(presign_url=url)


@router.post(
    "/complete",
    response_model=MessageOut,
    responses=ERROR_RESPONSES,
    summary="Complete multipart upload",
    description="Assemble the uploaded parts listed in the manifest.",
)
def complete_multipart_upload(
    payload: CompleteUploadIn,
    service: UploadService = Depends(get_upload_service),
) -> MessageOut:
    parts = [
        CompletedPart(part_number=p.part_number, etag=p.etag)
        for p in payload.completed_parts
    ]
    with _service_errors():
        service.complete_upload(payload.key, payload.upload_id, parts)
    return MessageOut(message="upload completed")


@router.post(
    "/abort",
    response_model=MessageOut,
    responses=ERROR_RESPONSES,
    summary="Abort multipart upload",
    description="Abort the session and discard any parts uploaded so far.",
)
def abort_multipart_upload(
    payload: AbortUploadIn,
    service: UploadService = Depends(get_upload_service),
) -> MessageOut:
    with _service_errors():
        service.abort_upload(payload.key, payload.upload_id)
    return MessageOut(message="upload aborted")


@router.get(
    "/parts",
    response_model=UploadedPartsOut,
    responses=ERROR_RESPONSES,
    summary="List uploaded parts",
    description="Return the parts storage has recorded, for resuming an upload.",
)
def list_uploaded_parts(
    key: str = Query(default=""),
    upload_id: str = Query(default="", alias="uploadId"),
    service: UploadService = Depends(get_upload_service),
) -> UploadedPartsOut:
    with _service_errors():
        parts = service.list_uploaded_parts(key, upload_id)
    return UploadedPartsOut(
        key=key,
        upload_id=upload_id,
        parts=[
            UploadedPartOut(part_number=p.part_number, etag=p.etag) for p in parts
        ],
    )

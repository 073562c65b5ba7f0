from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request

from upload_gateway.common.config import Settings
from upload_gateway.infra.storage.client import StorageClient
from upload_gateway.services.upload_service import UploadService

logger = logging.getLogger("http")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage_client(request: Request) -> StorageClient:
    return request.app.state.storage_client


def get_upload_service(
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
) -> UploadService:
    return UploadService(storage, settings)


def require_authorization(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Reject requests without an Authorization header when the check is on.

    The token itself is passed through untouched; validating it belongs to
    whatever sits in front of this service.
    """
    if not settings.AUTH_HEADER_REQUIRED:
        return
    if not authorization or not authorization.strip():
        logger.warning("authorization_header_missing")
        raise HTTPException(status_code=401, detail="no token")

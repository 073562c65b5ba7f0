"""Upload session service.

This module provides the application service layer for multipart uploads.
It validates request shapes, maps caller keys into the storage namespace,
and delegates every session operation to the storage client. No upload state
is kept here: the storage backend is the only owner of session truth.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from upload_gateway.common.config import Settings
from upload_gateway.infra.storage.client import (
    MAX_PART_NUMBER,
    MIN_PART_NUMBER,
    CompletedPart,
    StorageClient,
)

logger = logging.getLogger("upload_gateway.uploads")


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class InvalidUploadRequestError(ServiceError):
    """Raised when caller-supplied parameters fail local shape validation."""


@dataclass(frozen=True, slots=True)
class UploadStarted:
    """Result of starting an upload, addressed by the caller's own key."""

    upload_id: str
    key: str


def to_storage_key(key: str, prefix: str) -> str:
    """Map a caller-visible object key into the storage namespace."""
    return f"{prefix}{key}"


def parse_part_number(raw: int | str | None) -> int:
    """Parse a part number, accepting only integers in the S3 part range."""
    if isinstance(raw, bool):
        raise InvalidUploadRequestError("invalid partNumber")
    if isinstance(raw, int):
        value = raw
    else:
        text = (raw or "").strip()
        if not text:
            raise InvalidUploadRequestError("missing params")
        try:
            value = int(text)
        except ValueError as exc:
            raise InvalidUploadRequestError("invalid partNumber") from exc
    if value < MIN_PART_NUMBER or value > MAX_PART_NUMBER:
        raise InvalidUploadRequestError("invalid partNumber")
    return value


class UploadService:
    """Stateless command dispatcher for multipart upload sessions.

    Each method validates its inputs, namespaces the key and performs exactly
    one delegated-write call (two when presign verification is enabled).
    Storage errors propagate unchanged.
    """

    def __init__(self, storage: StorageClient, settings: Settings) -> None:
        self._storage = storage
        self._settings = settings

    def _storage_key(self, key: str) -> str:
        return to_storage_key(key, self._settings.S3_KEY_PREFIX)

    @staticmethod
    def _require_session(
        key: str | None, upload_id: str | None
    ) -> tuple[str, str]:
        if not key or not upload_id:
            raise InvalidUploadRequestError("key or uploadId missing")
        return key, upload_id

    def start_upload(self, key: str | None) -> UploadStarted:
        """Allocate a new backend upload session for ``key``.

        Raises:
            InvalidUploadRequestError: If ``key`` is empty.
        """
        if not key:
            raise InvalidUploadRequestError("missing key")
        upload = self._storage.create_multipart_upload(
            object_key=self._storage_key(key)
        )
        return UploadStarted(upload_id=upload.upload_id, key=key)

    def get_presign_url(
        self,
        key: str | None,
        upload_id: str | None,
        part_number: int | str | None,
    ) -> str:
        """Issue a presigned PUT URL for one part of an upload.

        Raises:
            InvalidUploadRequestError: If a parameter is missing or the part
                number is not an integer between 1 and 10000.
        """
        if not key or not upload_id:
            raise InvalidUploadRequestError("missing params")
        number = parse_part_number(part_number)
        object_key = self._storage_key(key)

        if self._settings.VERIFY_UPLOAD_ON_PRESIGN:
            self._storage.list_parts(
                object_key=object_key, upload_id=upload_id, max_parts=1
            )

        return self._storage.presign_upload_part(
            object_key=object_key,
            upload_id=upload_id,
            part_number=number,
            expires_in=self._settings.PRESIGN_EXPIRES_SECONDS,
        )

    def complete_upload(
        self,
        key: str | None,
        upload_id: str | None,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Finalize an upload with the caller's manifest.

        The manifest is not checked locally; ordering, gaps, duplicates and
        ETags are the backend's to judge.
        """
        key, upload_id = self._require_session(key, upload_id)
        logger.debug(
            "complete_upload key=%s upload_id=%s parts=%s", key, upload_id, len(parts)
        )
        self._storage.complete_multipart_upload(
            object_key=self._storage_key(key),
            upload_id=upload_id,
            parts=list(parts),
        )

    def abort_upload(self, key: str | None, upload_id: str | None) -> None:
        """Abort an upload. A second abort surfaces whatever the backend says."""
        key, upload_id = self._require_session(key, upload_id)
        self._storage.abort_multipart_upload(
            object_key=self._storage_key(key),
            upload_id=upload_id,
        )

    def list_uploaded_parts(
        self, key: str | None, upload_id: str | None
    ) -> list[CompletedPart]:
        """Return the parts the backend has recorded for an upload."""
        key, upload_id = self._require_session(key, upload_id)
        return self._storage.list_parts(
            object_key=self._storage_key(key), upload_id=upload_id
        )

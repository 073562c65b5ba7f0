"""S3-compatible storage client implementation.

This module provides the delegated-write client used by the upload gateway.
It works with AWS S3, MinIO, and other S3-compatible object storage services,
and is the only place that holds the backend credentials.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from upload_gateway.infra.observability.metrics import (
    STORAGE_LATENCY,
    STORAGE_OPERATIONS,
)
from upload_gateway.infra.storage.client import (
    CompletedPart,
    ManifestRejectedError,
    MultipartUpload,
    StorageAuthError,
    StorageError,
    StorageUnavailableError,
    UploadNotFoundError,
)

if TYPE_CHECKING:
    from upload_gateway.common.config import Settings

logger = logging.getLogger("storage")

_UPLOAD_NOT_FOUND_CODES = frozenset({"NoSuchUpload"})
_MANIFEST_REJECTED_CODES = frozenset(
    {
        "InvalidPart",
        "InvalidPartOrder",
        "EntityTooSmall",
        "MalformedXML",
        "InvalidRequest",
    }
)
_AUTH_REJECTED_CODES = frozenset(
    {
        "403",
        "AccessDenied",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "ExpiredToken",
        "InvalidToken",
    }
)

_OUTCOME_BY_ERROR: dict[type[StorageError], str] = {
    StorageUnavailableError: "unavailable",
    StorageAuthError: "auth_rejected",
    UploadNotFoundError: "upload_not_found",
    ManifestRejectedError: "manifest_rejected",
}


def _translate_error(action: str, exc: Exception) -> StorageError:
    """Map a botocore failure onto the storage error taxonomy.

    The backend's own message is kept in the text so callers can diagnose it.
    """
    message = f"Failed to {action}: {exc}"
    if isinstance(exc, ClientError):
        error = exc.response.get("Error") or {}
        code = str(error.get("Code") or "")
        status = (exc.response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
        if code in _UPLOAD_NOT_FOUND_CODES:
            return UploadNotFoundError(message)
        if code in _MANIFEST_REJECTED_CODES:
            return ManifestRejectedError(message)
        if code in _AUTH_REJECTED_CODES:
            return StorageAuthError(message)
        if status is not None and int(status) >= 500:
            return StorageUnavailableError(message)
        return StorageError(message)
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return StorageAuthError(message)
    if isinstance(exc, (BotoConnectionError, HTTPClientError)):
        return StorageUnavailableError(message)
    return StorageError(message)


@contextmanager
def _observe(operation: str) -> Iterator[None]:
    start = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except StorageError as exc:
        outcome = _OUTCOME_BY_ERROR.get(type(exc), "error")
        raise
    finally:
        STORAGE_OPERATIONS.labels(operation, outcome).inc()
        STORAGE_LATENCY.labels(operation).observe(time.perf_counter() - start)


class S3StorageClient:
    """S3-compatible delegated-write client.

    Holds one boto3 client bound to the configured bucket, region and
    credentials. Every method is a single backend round trip (presigning is
    zero) with botocore retries disabled, so failures reach the caller as-is.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.
        """
        self._bucket = str(settings.S3_BUCKET)
        self._client = self._build_client(settings)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
            connect_timeout=settings.S3_CONNECT_TIMEOUT,
            read_timeout=settings.S3_READ_TIMEOUT,
            retries={"mode": "standard", "total_max_attempts": 1},
        )

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def create_multipart_upload(self, *, object_key: str) -> MultipartUpload:
        """Initialize a multipart upload session."""
        with _observe("create_multipart_upload"):
            try:
                response = self._client.create_multipart_upload(
                    Bucket=self._bucket, Key=object_key
                )
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error("create multipart upload", exc) from exc

            upload_id = response.get("UploadId")
            if not upload_id:
                raise StorageError("S3 response missing UploadId")

        logger.info(
            "multipart_created object_key=%s upload_id=%s",
            object_key,
            upload_id,
            extra={"extra": {"object_key": object_key, "upload_id": upload_id}},
        )
        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=self._bucket,
            object_key=object_key,
        )

    def presign_upload_part(
        self,
        *,
        object_key: str,
        upload_id: str,
        part_number: int,
        expires_in: int | None = None,
    ) -> str:
        """Generate a presigned URL for uploading a part."""
        kwargs: dict[str, Any] = {
            "Params": {
                "Bucket": self._bucket,
                "Key": object_key,
                "UploadId": upload_id,
                "PartNumber": int(part_number),
            },
        }
        if expires_in is not None:
            kwargs["ExpiresIn"] = int(expires_in)

        with _observe("presign_upload_part"):
            try:
                url = self._client.generate_presigned_url("upload_part", **kwargs)
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error("generate presigned URL", exc) from exc

            if not url:
                raise StorageError("Generated presigned URL is empty")

        return str(url)

    def complete_multipart_upload(
        self,
        *,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload with the caller's manifest, unmodified."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in parts
            ]
        }

        with _observe("complete_multipart_upload"):
            try:
                self._client.complete_multipart_upload(
                    Bucket=self._bucket,
                    Key=object_key,
                    UploadId=upload_id,
                    MultipartUpload=multipart_payload,
                )
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error("complete multipart upload", exc) from exc

        logger.info(
            "multipart_completed object_key=%s upload_id=%s parts=%s",
            object_key,
            upload_id,
            len(multipart_payload["Parts"]),
            extra={
                "extra": {
                    "object_key": object_key,
                    "upload_id": upload_id,
                    "parts": len(multipart_payload["Parts"]),
                }
            },
        )

    def abort_multipart_upload(self, *, object_key: str, upload_id: str) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        with _observe("abort_multipart_upload"):
            try:
                self._client.abort_multipart_upload(
                    Bucket=self._bucket,
                    Key=object_key,
                    UploadId=upload_id,
                )
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error("abort multipart upload", exc) from exc

        logger.info(
            "multipart_aborted object_key=%s upload_id=%s",
            object_key,
            upload_id,
            extra={"extra": {"object_key": object_key, "upload_id": upload_id}},
        )

    def list_parts(
        self,
        *,
        object_key: str,
        upload_id: str,
        max_parts: int | None = None,
    ) -> list[CompletedPart]:
        """Return the parts S3 has recorded for an in-progress upload."""
        pagination: dict[str, Any] = {}
        if max_parts is not None:
            pagination["MaxItems"] = int(max_parts)

        parts: list[CompletedPart] = []
        with _observe("list_parts"):
            try:
                paginator = self._client.get_paginator("list_parts")
                for page in paginator.paginate(
                    Bucket=self._bucket,
                    Key=object_key,
                    UploadId=upload_id,
                    PaginationConfig=pagination,
                ):
                    for item in page.get("Parts") or []:
                        parts.append(
                            CompletedPart(
                                part_number=int(item["PartNumber"]),
                                etag=str(item.get("ETag") or ""),
                            )
                        )
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error("list multipart upload parts", exc) from exc
        return parts

    def check_bucket(self) -> None:
        """Probe the configured bucket with a HEAD request."""
        with _observe("head_bucket"):
            try:
                self._client.head_bucket(Bucket=self._bucket)
            except (BotoCoreError, ClientError) as exc:
                raise _translate_error(f"reach bucket {self._bucket}", exc) from exc

"""Storage client protocol and data types.

This module defines the interface the upload orchestrator uses to reach the
object storage backend, together with the error taxonomy every backend
implementation must translate its failures into.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

# Part numbers accepted by S3-compatible multipart uploads
MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10000


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class StorageUnavailableError(StorageError):
    """The backend could not be reached or answered with a server fault."""


class StorageAuthError(StorageError):
    """The backend rejected the service credentials, or none were found."""


class UploadNotFoundError(StorageError):
    """The upload id is unknown, already completed, or aborted."""


class ManifestRejectedError(StorageError):
    """The backend refused the submitted part manifest."""


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


class StorageClient(Protocol):
    """Protocol defining the delegated-write operations against the backend.

    Implementations own the credentials, region and bucket. Callers only pass
    fully namespaced object keys.
    """

    def create_multipart_upload(self, *, object_key: str) -> MultipartUpload:
        """Initialize a multipart upload session.

        Args:
            object_key: Storage key (already namespaced) of the target object.

        Returns:
            MultipartUpload containing the backend-assigned upload_id.

        Raises:
            StorageUnavailableError: If the backend cannot be reached.
            StorageAuthError: If the credentials are rejected.
        """
        ...

    def presign_upload_part(
        self,
        *,
        object_key: str,
        upload_id: str,
        part_number: int,
        expires_in: int | None = None,
    ) -> str:
        """Generate a presigned URL for uploading one part.

        Signing is local; the upload id is not checked against the backend.

        Args:
            object_key: Storage key of the target object.
            upload_id: Multipart upload ID from create_multipart_upload.
            part_number: Part number (1-based, max 10000).
            expires_in: URL lifetime in seconds, or None for the SDK default.

        Returns:
            Presigned URL for a PUT request.

        Raises:
            StorageAuthError: If no credentials are available for signing.
            StorageError: If URL generation fails.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts.

        The manifest is forwarded as given; the backend validates it.

        Raises:
            ManifestRejectedError: If the backend refuses the part list.
            UploadNotFoundError: If the upload id is stale or finalized.
        """
        ...

    def abort_multipart_upload(self, *, object_key: str, upload_id: str) -> None:
        """Abort a multipart upload and discard uploaded parts.

        Raises:
            UploadNotFoundError: If the backend no longer knows the upload.
        """
        ...

    def list_parts(
        self,
        *,
        object_key: str,
        upload_id: str,
        max_parts: int | None = None,
    ) -> list[CompletedPart]:
        """Return the parts the backend has recorded for an upload.

        Args:
            object_key: Storage key of the target object.
            upload_id: Multipart upload ID.
            max_parts: Stop after this many parts; None lists all of them.

        Raises:
            UploadNotFoundError: If the upload id is stale or finalized.
        """
        ...

    def check_bucket(self) -> None:
        """Verify the configured bucket is reachable with the held credentials."""
        ...

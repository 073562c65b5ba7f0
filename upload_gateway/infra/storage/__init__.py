"""Object storage abstraction layer.

This module provides a protocol-based abstraction for the multipart upload
backend, enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    MAX_PART_NUMBER,
    MIN_PART_NUMBER,
    CompletedPart,
    ManifestRejectedError,
    MultipartUpload,
    StorageAuthError,
    StorageClient,
    StorageError,
    StorageUnavailableError,
    UploadNotFoundError,
)

__all__ = [
    "MAX_PART_NUMBER",
    "MIN_PART_NUMBER",
    "CompletedPart",
    "ManifestRejectedError",
    "MultipartUpload",
    "StorageAuthError",
    "StorageClient",
    "StorageError",
    "StorageUnavailableError",
    "UploadNotFoundError",
]

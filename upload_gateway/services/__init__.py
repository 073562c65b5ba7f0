from .upload_service import (
    InvalidUploadRequestError,
    ServiceError,
    UploadService,
    UploadStarted,
    parse_part_number,
    to_storage_key,
)

__all__ = [
    "InvalidUploadRequestError",
    "ServiceError",
    "UploadService",
    "UploadStarted",
    "parse_part_number",
    "to_storage_key",
]

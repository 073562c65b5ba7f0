"""Pydantic schemas for the upload API endpoints.

Field names on the wire are camelCase (``uploadId``, ``completedParts``,
``partNumber``) to match the browser client; Python attributes stay
snake_case.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CompletedPartIn(BaseModel):
    """One entry of the caller's completion manifest.

    Accepts the AWS SDK spellings (``PartNumber``/``ETag``) as well, since
    SDK-marshalled clients send those.
    """

    part_number: int = Field(
        validation_alias=AliasChoices("partNumber", "PartNumber", "part_number"),
        serialization_alias="partNumber",
    )
    etag: str = Field(
        validation_alias=AliasChoices("etag", "ETag", "eTag"),
    )


class CompleteUploadIn(BaseModel):
    """Request body for completing a multipart upload."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = ""
    upload_id: str = Field(default="", alias="uploadId")
    completed_parts: list[CompletedPartIn] = Field(
        default_factory=list, alias="completedParts"
    )


class AbortUploadIn(BaseModel):
    """Request body for aborting a multipart upload."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = ""
    upload_id: str = Field(default="", alias="uploadId")


class StartUploadOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    upload_id: str = Field(alias="uploadId")
    key: str


class PresignUrlOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    presign_url: str = Field(alias="presignUrl")


class MessageOut(BaseModel):
    message: str


class UploadedPartOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    part_number: int = Field(alias="partNumber")
    etag: str


class UploadedPartsOut(BaseModel):
    """Parts the storage backend has recorded for an upload."""

    model_config = ConfigDict(populate_by_name=True)

    key: str
    upload_id: str = Field(alias="uploadId")
    parts: list[UploadedPartOut]


class ErrorOut(BaseModel):
    error: str

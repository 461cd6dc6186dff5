"""Pydantic schemas for grant-year documents and file uploads."""

from datetime import datetime
from typing import ClassVar, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.core import DocumentType
from app.models.rules import (
    Issue,
    Schema,
    at_least,
    at_most,
    id_field,
    matches,
    max_length,
    min_length,
    text_field,
    whole,
    whole_field,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_STORED_FILE_BYTES = 100_000_000
MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50 MB

ALLOWED_MIME_TYPES: tuple[str, ...] = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "image/jpeg",
    "image/png",
)

FileName = text_field(
    min_length(1, "File name is required"),
    max_length(255, "File name must be less than 255 characters"),
    matches(r"[a-zA-Z0-9\s\-_.()]+\.[a-zA-Z0-9]+", "Invalid file name format"),
)
OriginalName = text_field(
    min_length(1, "Original name is required"),
    max_length(255, "Original name must be less than 255 characters"),
)
FileSize = whole_field(
    whole("File size must be a whole number"),
    at_least(1, "File size must be at least 1 byte"),
    at_most(MAX_STORED_FILE_BYTES, "File size cannot exceed 100MB"),
)
MimeType = text_field(
    matches(
        r"[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_]*/[a-zA-Z0-9][a-zA-Z0-9!#$&\-^_.]*",
        "Invalid MIME type",
    ),
)


# ---------------------------------------------------------------------------
# Document Schemas
# ---------------------------------------------------------------------------


class DocumentCreate(Schema):
    """Metadata recorded for an uploaded document.

    ``uploaded_at`` is stamped by the server.
    """

    grant_year_id: id_field("Invalid Grant Year ID")
    file_name: FileName
    original_name: OriginalName
    file_size: FileSize
    mime_type: MimeType
    document_type: DocumentType
    uploaded_by_id: id_field("Invalid User ID")


class Document(DocumentCreate):
    id: id_field()
    uploaded_at: datetime
    created_at: datetime
    updated_at: datetime


class DocumentUpdate(Schema):
    """Rename or reclassify a document. Ownership fields are fixed."""

    partial: ClassVar[bool] = True

    file_name: Optional[FileName] = None
    original_name: Optional[OriginalName] = None
    file_size: Optional[FileSize] = None
    mime_type: Optional[MimeType] = None
    document_type: Optional[DocumentType] = None


# ---------------------------------------------------------------------------
# Upload Schemas
# ---------------------------------------------------------------------------


class UploadedFile(BaseModel):
    """Descriptor of a file as received from the client."""

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    filename: str = Field(..., min_length=1)
    content_type: str
    size: int = Field(..., ge=0)


def upload_type_allowed(data: Schema) -> List[Issue]:
    if data.file.content_type in ALLOWED_MIME_TYPES:
        return []
    return [("file", "File type not allowed")]


def upload_size_allowed(data: Schema) -> List[Issue]:
    if data.file.size <= MAX_UPLOAD_BYTES:
        return []
    return [("file", "File size cannot exceed 50MB")]


class FileUpload(Schema):
    """A file upload request targeting one grant year."""

    refinements: ClassVar = (upload_type_allowed, upload_size_allowed)

    file: UploadedFile = Field(None, validate_default=True)
    document_type: DocumentType
    grant_year_id: id_field("Invalid Grant Year ID")

    @field_validator("file", mode="before")
    @classmethod
    def require_file(cls, v):
        if v is None:
            raise ValueError("File is required")
        return v

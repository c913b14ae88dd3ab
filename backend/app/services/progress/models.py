from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FileStatus(str, Enum):
    """Lifecycle statuses for knowledgebase files."""

    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    # Reserved for a real backend reporting failures; the simulated engine never sets it
    ERROR = "error"

    @property
    def is_busy(self) -> bool:
        return self in (FileStatus.UPLOADING, FileStatus.PROCESSING)

    @property
    def is_terminal(self) -> bool:
        return self in (FileStatus.PROCESSED, FileStatus.ERROR)


class ErrorKind(str, Enum):
    INVALID_TRANSITION = "invalid_transition"
    RECORD_BUSY = "record_busy"
    NOT_FOUND = "not_found"


class RawFile(BaseModel):
    """File metadata handed over by the file picker. Bytes are never read."""
    name: str
    size: int = Field(ge=0)
    mime_type: str = ""


class FileRecord(BaseModel):
    id: str
    name: str
    size: int = Field(ge=0)
    mime_type: str = ""
    uploaded_at: datetime
    status: FileStatus = FileStatus.UPLOADING
    progress: int = Field(default=0, ge=0, le=100)


class OperationResult(BaseModel):
    success: bool
    record_id: str
    error: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def ok(cls, record_id: str, message: str = "") -> "OperationResult":
        return cls(success=True, record_id=record_id, message=message)

    @classmethod
    def fail(cls, record_id: str, error: ErrorKind, message: str) -> "OperationResult":
        return cls(success=False, record_id=record_id, error=error, message=message)

# This project was developed with assistance from AI tools.
"""Status update request/response schemas.

``LoanStatusUpdate`` and ``DocumentStatusUpdate`` carry the field rules
checked before a transition is persisted. The ``*ChangeRequest`` bodies are
deliberately loose so that terminal-status and transition checks run first.
"""

from datetime import datetime

from portal_db.enums import DocumentStatus, LoanStatus
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

NEXT_ACTION_MAX_LENGTH = 500
REJECTION_REASON_MAX_LENGTH = 1000


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def first_error_message(exc: ValidationError) -> str:
    """Return the message of the first violated rule, without pydantic's prefix."""
    errors = exc.errors()
    if not errors:
        return "Invalid data"
    ctx_error = errors[0].get("ctx", {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return errors[0].get("msg", "Invalid data")


class LoanStatusUpdate(BaseModel):
    """Validated payload for a loan status change."""

    status: LoanStatus
    rejection_reason: str | None = None
    next_action: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value):
        if isinstance(value, LoanStatus):
            return value
        if value not in {s.value for s in LoanStatus}:
            raise ValueError("Invalid loan status")
        return value

    @field_validator("next_action", mode="before")
    @classmethod
    def _next_action(cls, value):
        value = _clean(value)
        if value is not None and len(value) > NEXT_ACTION_MAX_LENGTH:
            raise ValueError("Next action is too long")
        return value

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def _rejection_reason(cls, value):
        value = _clean(value)
        if value is not None and len(value) > REJECTION_REASON_MAX_LENGTH:
            raise ValueError("Rejection reason is too long")
        return value

    @model_validator(mode="after")
    def _reason_required(self):
        if self.status == LoanStatus.REJECTED and not self.rejection_reason:
            raise ValueError("A rejection reason is required")
        return self


class DocumentStatusUpdate(BaseModel):
    """Validated payload for a document status change."""

    status: DocumentStatus
    rejection_reason: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _known_status(cls, value):
        if isinstance(value, DocumentStatus):
            return value
        if value not in {s.value for s in DocumentStatus}:
            raise ValueError("Invalid document status")
        return value

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def _rejection_reason(cls, value):
        value = _clean(value)
        if value is not None and len(value) > REJECTION_REASON_MAX_LENGTH:
            raise ValueError("Rejection reason is too long")
        return value

    @model_validator(mode="after")
    def _reason_required(self):
        if self.status == DocumentStatus.REJECTED and not self.rejection_reason:
            raise ValueError("A rejection reason is required")
        return self


class LoanStatusChangeRequest(BaseModel):
    """PATCH body for a loan status change."""

    status: str
    rejection_reason: str | None = None
    next_action: str | None = None


class DocumentStatusChangeRequest(BaseModel):
    """PATCH body for a document status change."""

    status: str
    rejection_reason: str | None = None


class BulkDocumentStatusChangeRequest(BaseModel):
    """PATCH body applying one status change to several documents."""

    document_ids: list[str] = Field(min_length=1, max_length=100)
    status: str
    rejection_reason: str | None = None


class DocumentReplacementRequest(BaseModel):
    """Metadata of a replacement file already stored by the upload service."""

    file_name: str = Field(min_length=1, max_length=255)
    file_path: str = Field(min_length=1, max_length=500)


class StatusUpdateResponse(BaseModel):
    """Outcome of a successful status change."""

    success: bool = True
    status: str
    changed: bool


class StatusHistoryItem(BaseModel):
    old_status: str | None = None
    new_status: str
    changed_by: str | None = None
    rejection_reason: str | None = None
    next_action: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class StatusHistoryResponse(BaseModel):
    data: list[StatusHistoryItem]


class BulkStatusUpdateItem(BaseModel):
    document_id: str
    success: bool
    status: str | None = None
    changed: bool = False
    error: str | None = None
    code: str | None = None


class BulkStatusUpdateResponse(BaseModel):
    """Per-document outcomes of a bulk status change."""

    data: list[BulkStatusUpdateItem]
    succeeded: int
    failed: int

# This project was developed with assistance from AI tools.
"""Transition, progress and escrow schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from ..services.status_machine import StatusDefinition


class TransitionsResponse(BaseModel):
    """Where an entity can go next from its current status."""

    current: StatusDefinition | None = None
    terminal: bool
    allowed: list[StatusDefinition]
    action: str | None = None


class StatusCatalogResponse(BaseModel):
    data: list[StatusDefinition]


class ChecklistItem(BaseModel):
    slot: str
    label: str
    description: str
    required: bool
    category: str
    category_label: str


class ProgressSummary(BaseModel):
    completed: int
    total: int
    percentage: int


class DocumentProgressResponse(BaseModel):
    loan_id: str
    status: str | None = None
    project_type: str | None = None
    complete: bool
    primary: ProgressSummary
    coborrower: ProgressSummary | None = None
    checklist: list[ChecklistItem]


class ProgressCheckResponse(BaseModel):
    loan_id: str
    outcome: str
    complete: bool | None = None
    error: str | None = None


class DocumentChangeResponse(BaseModel):
    loan_id: str
    handlers: int


class SequestreUpdateRequest(BaseModel):
    amount_expected: Decimal | None = Field(default=None, ge=0)
    amount_received: Decimal | None = Field(default=None, ge=0)


class SequestreResponse(BaseModel):
    loan_id: str
    sequestre_status: str | None = None
    amount_expected: Decimal | None = None
    amount_received: Decimal | None = None
    alert_sent: bool

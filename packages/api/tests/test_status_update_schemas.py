# This project was developed with assistance from AI tools.
"""Tests for status update payload validation."""

import pytest
from portal_db.enums import DocumentStatus, LoanStatus
from pydantic import ValidationError

from portal_api.schemas.status_update import (
    NEXT_ACTION_MAX_LENGTH,
    REJECTION_REASON_MAX_LENGTH,
    DocumentStatusUpdate,
    LoanStatusUpdate,
    first_error_message,
)


def _message(model, **fields) -> str:
    with pytest.raises(ValidationError) as exc_info:
        model(**fields)
    return first_error_message(exc_info.value)


def test_loan_update_trims_optional_text():
    payload = LoanStatusUpdate(status="approved", next_action="  Sign the offer  ", rejection_reason="   ")
    assert payload.status == LoanStatus.APPROVED
    assert payload.next_action == "Sign the offer"
    assert payload.rejection_reason is None


def test_loan_update_unknown_status():
    assert _message(LoanStatusUpdate, status="archived") == "Invalid loan status"


def test_loan_rejection_requires_reason():
    assert _message(LoanStatusUpdate, status="rejected") == "A rejection reason is required"
    assert _message(LoanStatusUpdate, status="rejected", rejection_reason="  ") == (
        "A rejection reason is required"
    )


def test_loan_rejection_with_reason_is_valid():
    payload = LoanStatusUpdate(status=LoanStatus.REJECTED, rejection_reason=" Debt ratio too high ")
    assert payload.rejection_reason == "Debt ratio too high"


def test_next_action_length_limit():
    LoanStatusUpdate(status="processing", next_action="x" * NEXT_ACTION_MAX_LENGTH)
    assert _message(
        LoanStatusUpdate, status="processing", next_action="x" * (NEXT_ACTION_MAX_LENGTH + 1)
    ) == "Next action is too long"


def test_rejection_reason_length_limit():
    too_long = "x" * (REJECTION_REASON_MAX_LENGTH + 1)
    assert _message(LoanStatusUpdate, status="rejected", rejection_reason=too_long) == (
        "Rejection reason is too long"
    )
    assert _message(DocumentStatusUpdate, status="rejected", rejection_reason=too_long) == (
        "Rejection reason is too long"
    )


def test_document_update_unknown_status():
    assert _message(DocumentStatusUpdate, status="lost") == "Invalid document status"


def test_document_rejection_requires_reason():
    assert _message(DocumentStatusUpdate, status="rejected") == "A rejection reason is required"


def test_document_update_accepts_enum_member():
    assert DocumentStatusUpdate(status=DocumentStatus.VALIDATED).status == DocumentStatus.VALIDATED

# This project was developed with assistance from AI tools.
"""In-app notification rows produced by status changes and triggers.

Builders return plain dicts ready for ``LifecycleRepository.add_notifications``.
"""

from decimal import Decimal

from portal_db.enums import (
    DocumentStatus,
    LoanStatus,
    NotificationCategory,
    NotificationType,
)

from .document_machine import document_machine
from .loan_machine import loan_machine

LOAN_ENTITY = "loan_applications"
DOCUMENT_ENTITY = "documents"

_LOAN_MESSAGES: dict[str, str] = {
    LoanStatus.PENDING.value: "Your loan file is waiting to be processed.",
    LoanStatus.DOCUMENTS_REQUIRED.value: "Additional documents are required to continue your file.",
    LoanStatus.UNDER_REVIEW.value: "Your loan file is being reviewed by our team.",
    LoanStatus.PROCESSING.value: "Your loan file is being processed.",
    LoanStatus.OFFER_ISSUED.value: "A loan offer has been issued. Check your client area.",
    LoanStatus.APPROVED.value: "Congratulations, your loan has been approved.",
    LoanStatus.REJECTED.value: "Your loan application was not accepted.",
    LoanStatus.FUNDED.value: "The funds for your loan have been released.",
}

_DOCUMENT_MESSAGES: dict[str, str] = {
    DocumentStatus.PENDING.value: 'Document "{name}" is waiting for a new upload.',
    DocumentStatus.RECEIVED.value: 'Document "{name}" has been received.',
    DocumentStatus.UNDER_REVIEW.value: 'Document "{name}" is being verified.',
    DocumentStatus.VALIDATED.value: 'Document "{name}" has been validated.',
    DocumentStatus.REJECTED.value: 'Document "{name}" was rejected.',
}


def short_id(entity_id: str) -> str:
    return entity_id[:8]


def format_amount(amount) -> str:
    """Amount as shown in notification copy, e.g. ``150,000.00 EUR``."""
    return f"{Decimal(amount or 0):,.2f} EUR"


def _row(user_id, ntype, category, title, message, entity, related_id) -> dict:
    return {
        "user_id": user_id,
        "type": ntype,
        "category": category,
        "title": title,
        "message": message,
        "related_entity": entity,
        "related_id": related_id,
    }


def loan_status_notification(
    user_id: str,
    loan_id: str,
    new_status: str,
    *,
    rejection_reason: str | None = None,
    next_action: str | None = None,
) -> dict:
    label = loan_machine.label(new_status)
    message = _LOAN_MESSAGES.get(new_status, f"Your loan file is now: {label}.")
    if new_status == LoanStatus.REJECTED.value and rejection_reason:
        message = f"{message} Reason: {rejection_reason}"
    if next_action:
        message = f"{message} Next step: {next_action}"
    return _row(
        user_id,
        NotificationType.LOAN_STATUS,
        NotificationCategory.LOAN,
        f"Loan file {label.lower()}",
        message,
        LOAN_ENTITY,
        loan_id,
    )


def document_status_notification(
    user_id: str,
    document_id: str,
    file_name: str,
    new_status: str,
    *,
    rejection_reason: str | None = None,
) -> dict:
    label = document_machine.label(new_status)
    template = _DOCUMENT_MESSAGES.get(new_status, 'Document "{name}" is now: ' + label + ".")
    message = template.format(name=file_name)
    if new_status == DocumentStatus.REJECTED.value and rejection_reason:
        message = f"{message} Reason: {rejection_reason}"
    return _row(
        user_id,
        NotificationType.DOCUMENT_STATUS,
        NotificationCategory.DOCUMENT,
        f"Document {label.lower()}",
        message,
        DOCUMENT_ENTITY,
        document_id,
    )


def documents_complete_notification(client_id: str, loan_id: str) -> dict:
    """Borrower notice sent when the document checklist is complete."""
    return _row(
        client_id,
        NotificationType.LOAN_STATUS,
        NotificationCategory.LOAN,
        "File complete - under review 🔍",
        "All your documents have been received. Your file is now being reviewed by our team.",
        LOAN_ENTITY,
        loan_id,
    )


def documents_complete_agent_notification(agent_id: str, loan_id: str) -> dict:
    return _row(
        agent_id,
        NotificationType.LOAN_STATUS,
        NotificationCategory.LOAN,
        "File complete",
        f"File #{short_id(loan_id)} has all its documents. Ready for review.",
        LOAN_ENTITY,
        loan_id,
    )


def sequestre_complete_client_notification(client_id: str, loan_id: str, amount) -> dict:
    return _row(
        client_id,
        NotificationType.SEQUESTRE_COMPLETE,
        NotificationCategory.LOAN,
        "Escrow complete ✅",
        f"The escrow amount ({format_amount(amount)}) has been received in full.",
        LOAN_ENTITY,
        loan_id,
    )


def sequestre_complete_staff_notifications(staff_ids, loan_id: str, amount) -> list[dict]:
    """One row per distinct staff member."""
    message = f"File #{short_id(loan_id)}: escrow complete ({format_amount(amount)})"
    return [
        _row(
            staff_id,
            NotificationType.SEQUESTRE_COMPLETE,
            NotificationCategory.LOAN,
            "Escrow 100%",
            message,
            LOAN_ENTITY,
            loan_id,
        )
        for staff_id in dict.fromkeys(staff_ids)
    ]

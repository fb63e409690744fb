# This project was developed with assistance from AI tools.
"""Loan status machine.

Eight-state loan lifecycle. ``rejected`` and ``funded`` are terminal; a loan
without a status may only be set to ``pending`` or ``documents_required``.
"""

from portal_db.enums import LoanStatus

from .status_machine import StatusDefinition, StatusMachine

LOAN_STATUS_DEFINITIONS: dict[str, StatusDefinition] = {
    d.value: d
    for d in (
        StatusDefinition(
            value=LoanStatus.PENDING.value,
            label="Pending",
            description="Application received, waiting to be processed.",
            color="#f59e0b",
            icon="⏳",
        ),
        StatusDefinition(
            value=LoanStatus.DOCUMENTS_REQUIRED.value,
            label="Documents required",
            description="Some documents are still missing.",
            color="#3b82f6",
            icon="📋",
        ),
        StatusDefinition(
            value=LoanStatus.UNDER_REVIEW.value,
            label="Under review",
            description="Your file is being analysed.",
            color="#8b5cf6",
            icon="🔍",
        ),
        StatusDefinition(
            value=LoanStatus.PROCESSING.value,
            label="Processing",
            description="Your file is being processed.",
            color="#06b6d4",
            icon="⚙️",
        ),
        StatusDefinition(
            value=LoanStatus.OFFER_ISSUED.value,
            label="Offer issued",
            description="Offer sent, 10-day legal reflection period.",
            color="#f97316",
            icon="📨",
        ),
        StatusDefinition(
            value=LoanStatus.APPROVED.value,
            label="Approved",
            description="Your file has been validated and approved.",
            color="#10b981",
            icon="✅",
        ),
        StatusDefinition(
            value=LoanStatus.REJECTED.value,
            label="Rejected",
            description="Your application was declined.",
            color="#ef4444",
            icon="❌",
        ),
        StatusDefinition(
            value=LoanStatus.FUNDED.value,
            label="Funded",
            description="Funds have been released.",
            color="#059669",
            icon="💰",
        ),
    )
}

loan_machine = StatusMachine(LoanStatus, noun="loan file", definitions=LOAN_STATUS_DEFINITIONS)


def is_valid_transition(from_status, to_status) -> bool:
    return loan_machine.is_valid_transition(from_status, to_status)


def allowed_transitions(from_status) -> list[str]:
    """Next statuses reachable from ``from_status`` (initial statuses when absent)."""
    return loan_machine.allowed_transitions(from_status)


def is_terminal(status) -> bool:
    return loan_machine.is_terminal(status)


def explain_blocked(from_status, to_status) -> str:
    return loan_machine.explain_blocked(from_status, to_status)


def status_definition(status) -> StatusDefinition | None:
    return loan_machine.definition(status)

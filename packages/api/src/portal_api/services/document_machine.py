# This project was developed with assistance from AI tools.
"""Document status machine.

Five-state document lifecycle. ``validated`` is terminal; ``rejected`` is the
only status from which a document may be replaced.
"""

from portal_db.enums import DocumentStatus

from .status_machine import StatusDefinition, StatusMachine

DOCUMENT_STATUS_DEFINITIONS: dict[str, StatusDefinition] = {
    d.value: d
    for d in (
        StatusDefinition(
            value=DocumentStatus.PENDING.value,
            label="Pending",
            description="Document expected, not yet received.",
            color="#f59e0b",
            icon="⏳",
        ),
        StatusDefinition(
            value=DocumentStatus.RECEIVED.value,
            label="Received",
            description="Document received, waiting for verification.",
            color="#3b82f6",
            icon="📥",
        ),
        StatusDefinition(
            value=DocumentStatus.UNDER_REVIEW.value,
            label="Under verification",
            description="Document is being checked.",
            color="#8b5cf6",
            icon="🔍",
        ),
        StatusDefinition(
            value=DocumentStatus.VALIDATED.value,
            label="Validated",
            description="Document is compliant and validated.",
            color="#10b981",
            icon="✅",
        ),
        StatusDefinition(
            value=DocumentStatus.REJECTED.value,
            label="Rejected",
            description="Document is not compliant and must be replaced.",
            color="#ef4444",
            icon="❌",
        ),
    )
}

# Call-to-action shown next to a document in each status
_ACTION_LABELS: dict[str, str] = {
    DocumentStatus.PENDING.value: "Upload",
    DocumentStatus.RECEIVED.value: "Verify",
    DocumentStatus.UNDER_REVIEW.value: "Decide",
    DocumentStatus.VALIDATED.value: "Validated",
    DocumentStatus.REJECTED.value: "Replace",
}

document_machine = StatusMachine(
    DocumentStatus, noun="document", definitions=DOCUMENT_STATUS_DEFINITIONS,
)


def is_valid_transition(from_status, to_status) -> bool:
    return document_machine.is_valid_transition(from_status, to_status)


def allowed_transitions(from_status) -> list[str]:
    return document_machine.allowed_transitions(from_status)


def is_terminal(status) -> bool:
    return document_machine.is_terminal(status)


def explain_blocked(from_status, to_status) -> str:
    return document_machine.explain_blocked(from_status, to_status)


def status_definition(status) -> StatusDefinition | None:
    return document_machine.definition(status)


def can_replace(status) -> bool:
    """Only rejected documents accept a replacement upload."""
    return document_machine.normalize(status) == DocumentStatus.REJECTED.value


def action_label(status) -> str:
    return _ACTION_LABELS.get(document_machine.normalize(status) or "", "Action")

# This project was developed with assistance from AI tools.
"""Shared contract for the loan and document status orchestrators.

Both orchestrators run the same gated sequence: terminal check, transition
check, payload check, conditional persist, then the best-effort history,
notification and email side effects. This module holds the error taxonomy,
the result type, entity snapshots and the helpers the two share.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal

from portal_db import Document, LoanApplication

from .email import EmailMessage, EmailService
from .side_effects import SideEffectDispatcher
from .status_machine import StatusMachine

logger = logging.getLogger(__name__)

SYSTEM_TRANSITION_NOTE = "Automatic system transition"


class StatusUpdateError(Exception):
    """Base class for failures that block a status update."""

    code = "status_update_failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TerminalStatusError(StatusUpdateError):
    """The entity is in a terminal status and cannot be modified."""

    code = "terminal_status"


class InvalidTransitionError(StatusUpdateError, ValueError):
    """The requested edge is not in the status machine."""

    code = "invalid_transition"


class StatusInputError(StatusUpdateError):
    """A field required by the target status is missing or invalid."""

    code = "invalid_input"


class StaleStatusError(StatusUpdateError):
    """The stored status no longer matches the caller's snapshot."""

    code = "stale_status"


class PersistenceError(StatusUpdateError):
    """The store rejected the status write."""

    code = "persistence_failed"


@dataclass(frozen=True)
class StatusUpdateResult:
    """Outcome returned to callers. ``error`` is suitable for direct display."""

    success: bool
    status: str | None = None
    changed: bool = False
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, status: str, *, changed: bool = True) -> "StatusUpdateResult":
        return cls(success=True, status=status, changed=changed)

    @classmethod
    def failed(cls, exc: StatusUpdateError, status: str | None = None) -> "StatusUpdateResult":
        return cls(success=False, status=status, error=exc.message, error_code=exc.code)


@dataclass(frozen=True)
class LoanSnapshot:
    """Caller-supplied view of a loan; ``status`` is the expected pre-transition state."""

    id: str
    status: str | None
    user_id: str
    amount: Decimal | None = None
    rate: Decimal | None = None
    monthly_payment: Decimal | None = None
    project_type: str | None = None
    has_coborrower: bool = False
    sequestre_status: str | None = None
    sequestre_amount_expected: Decimal | None = None
    sequestre_amount_received: Decimal | None = None

    @classmethod
    def from_model(cls, loan: LoanApplication) -> "LoanSnapshot":
        return cls(
            id=loan.id,
            status=StatusMachine.normalize(loan.status),
            user_id=loan.user_id,
            amount=loan.amount,
            rate=loan.rate,
            monthly_payment=loan.monthly_payment,
            project_type=loan.project_type,
            has_coborrower=bool(loan.has_coborrower),
            sequestre_status=StatusMachine.normalize(loan.sequestre_status),
            sequestre_amount_expected=loan.sequestre_amount_expected,
            sequestre_amount_received=loan.sequestre_amount_received,
        )


@dataclass(frozen=True)
class DocumentSnapshot:
    """Caller-supplied view of a document."""

    id: str
    status: str | None
    user_id: str
    file_name: str
    loan_id: str | None = None

    @classmethod
    def from_model(cls, document: Document) -> "DocumentSnapshot":
        return cls(
            id=document.id,
            status=StatusMachine.normalize(document.status),
            user_id=document.user_id,
            file_name=document.file_name,
            loan_id=document.loan_id,
        )


def check_transition(machine: StatusMachine, current: str | None, new_status: str) -> None:
    """Gate steps 1 and 2: terminal status, then transition table."""
    if machine.is_terminal(current):
        raise TerminalStatusError(machine.explain_blocked(current, new_status))
    if not machine.is_valid_transition(current, new_status):
        raise InvalidTransitionError(machine.explain_blocked(current, new_status))


async def best_effort(description: str, operation: Awaitable[object]) -> bool:
    """Await a side effect, logging instead of raising on failure."""
    try:
        await operation
    except Exception:
        logger.warning("%s failed", description, exc_info=True)
        return False
    return True


async def dispatch_email(
    repository,
    dispatcher: SideEffectDispatcher,
    email_service: EmailService,
    *,
    user_id: str,
    job_name: str,
    build: Callable[[str], EmailMessage | None],
) -> bool:
    """Look up the recipient and hand the email to the dispatcher.

    ``build`` receives the recipient's first name and returns the message, or
    None when the status has no email. Returns True when a send was queued.
    """
    try:
        contact = await repository.get_contact(user_id)
    except Exception:
        logger.warning("Contact lookup for %s failed, email skipped", user_id, exc_info=True)
        return False

    if contact is None or not contact.email:
        logger.debug("No email on file for %s, email skipped", user_id)
        return False

    message = build(contact.first_name or "Client")
    if message is None:
        return False

    address = contact.email
    dispatcher.dispatch(
        job_name,
        lambda: email_service.send(message.template, address, message.data),
    )
    return True

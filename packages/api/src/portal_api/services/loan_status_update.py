# This project was developed with assistance from AI tools.
"""Loan status orchestrator.

Single entry point for every loan status change, manual or automatic.
Validates against the loan machine, persists conditionally, then records
history, notifies the borrower and queues the matching email.
"""

import logging

from portal_db.enums import LoanStatus
from pydantic import ValidationError

from ..schemas.status_update import LoanStatusUpdate, first_error_message
from .email import EmailService, loan_status_email
from .loan_machine import loan_machine
from .notification import loan_status_notification
from .side_effects import SideEffectDispatcher
from .status_update import (
    SYSTEM_TRANSITION_NOTE,
    LoanSnapshot,
    PersistenceError,
    StaleStatusError,
    StatusInputError,
    StatusUpdateError,
    StatusUpdateResult,
    best_effort,
    check_transition,
    dispatch_email,
)

logger = logging.getLogger(__name__)


def validate_loan_update(
    loan: LoanSnapshot,
    new_status: str,
    *,
    rejection_reason: str | None = None,
    next_action: str | None = None,
) -> LoanStatusUpdate:
    """Run gates 1-3 and return the cleaned payload. Raises StatusUpdateError."""
    check_transition(loan_machine, loan.status, new_status)
    try:
        return LoanStatusUpdate(
            status=new_status,
            rejection_reason=rejection_reason,
            next_action=next_action,
        )
    except ValidationError as exc:
        raise StatusInputError(first_error_message(exc)) from exc


async def update_loan_status(
    repository,
    loan: LoanSnapshot,
    new_status,
    *,
    rejection_reason: str | None = None,
    next_action: str | None = None,
    actor_id: str | None = None,
    system_initiated: bool = False,
    notify_owner: bool = True,
    email_service: EmailService | None = None,
    dispatcher: SideEffectDispatcher | None = None,
    portal_url: str = "",
) -> StatusUpdateResult:
    """Move ``loan`` to ``new_status``.

    Args:
        loan: Snapshot whose ``status`` is the expected current status. The
            write only lands if the stored status still matches it.
        actor_id: Calling user, recorded in history. Ignored when
            ``system_initiated`` is set.
        notify_owner: Set False when the caller sends its own notification
            and email for this change (automatic triggers).
        email_service, dispatcher: Email is skipped when either is None.

    Returns:
        StatusUpdateResult. Failures never raise; side-effect errors are
        logged and do not affect the result.
    """
    target = loan_machine.normalize(new_status)
    if target is not None and target == loan.status:
        return StatusUpdateResult.ok(target, changed=False)

    try:
        payload = validate_loan_update(
            loan,
            target,
            rejection_reason=rejection_reason,
            next_action=next_action,
        )
        await _persist(repository, loan, payload)
    except StatusUpdateError as exc:
        logger.info(
            "Loan %s status update %s -> %s refused: %s",
            loan.id,
            loan.status,
            target,
            exc.code,
        )
        return StatusUpdateResult.failed(exc, loan.status)

    changed_by = None if system_initiated else actor_id
    await best_effort(
        f"Loan {loan.id} status history",
        repository.add_loan_history(
            loan_id=loan.id,
            old_status=loan.status,
            new_status=target,
            changed_by=changed_by,
            rejection_reason=payload.rejection_reason,
            next_action=payload.next_action,
            notes=SYSTEM_TRANSITION_NOTE if system_initiated else None,
        ),
    )

    if notify_owner:
        await best_effort(
            f"Loan {loan.id} status notification",
            repository.add_notifications(
                [
                    loan_status_notification(
                        loan.user_id,
                        loan.id,
                        target,
                        rejection_reason=payload.rejection_reason,
                        next_action=payload.next_action,
                    )
                ]
            ),
        )
        if email_service is not None and dispatcher is not None:
            await dispatch_email(
                repository,
                dispatcher,
                email_service,
                user_id=loan.user_id,
                job_name=f"loan-{target}-email-{loan.id}",
                build=lambda first_name: loan_status_email(
                    loan,
                    target,
                    first_name,
                    rejection_reason=payload.rejection_reason,
                    portal_url=portal_url,
                ),
            )

    logger.info(
        "Loan %s status %s -> %s (%s)",
        loan.id,
        loan.status,
        target,
        "system" if system_initiated else changed_by,
    )
    return StatusUpdateResult.ok(target)


async def _persist(repository, loan: LoanSnapshot, payload: LoanStatusUpdate) -> None:
    values = {"status": payload.status, "next_action": payload.next_action}
    if payload.status == LoanStatus.REJECTED:
        values["rejection_reason"] = payload.rejection_reason

    try:
        updated = await repository.update_loan(loan.id, loan.status, values)
    except Exception as exc:
        logger.error("Loan %s status write failed", loan.id, exc_info=True)
        raise PersistenceError("The status change could not be saved. Please try again.") from exc

    if not updated:
        raise StaleStatusError(
            "This loan file was modified in the meantime. Reload it and try again."
        )

# This project was developed with assistance from AI tools.
"""Document status orchestrator and replacement flow.

Same gated sequence as the loan orchestrator. A successful change is also
published on the document change feed so the loan's completion check runs.
"""

import logging
from datetime import UTC, datetime

from portal_db.enums import DocumentStatus
from pydantic import ValidationError

from ..schemas.status_update import DocumentStatusUpdate, first_error_message
from .document_machine import can_replace, document_machine
from .email import EmailService, document_status_email
from .events import DocumentChangeFeed
from .notification import document_status_notification
from .side_effects import SideEffectDispatcher
from .status_update import (
    SYSTEM_TRANSITION_NOTE,
    DocumentSnapshot,
    InvalidTransitionError,
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

REPLACEMENT_NOTE = "Replacement file uploaded"


def validate_document_update(
    document: DocumentSnapshot,
    new_status: str,
    *,
    rejection_reason: str | None = None,
) -> DocumentStatusUpdate:
    """Run gates 1-3 and return the cleaned payload. Raises StatusUpdateError."""
    check_transition(document_machine, document.status, new_status)
    try:
        return DocumentStatusUpdate(status=new_status, rejection_reason=rejection_reason)
    except ValidationError as exc:
        raise StatusInputError(first_error_message(exc)) from exc


async def update_document_status(
    repository,
    document: DocumentSnapshot,
    new_status,
    *,
    rejection_reason: str | None = None,
    actor_id: str | None = None,
    system_initiated: bool = False,
    email_service: EmailService | None = None,
    dispatcher: SideEffectDispatcher | None = None,
    change_feed: DocumentChangeFeed | None = None,
) -> StatusUpdateResult:
    """Move ``document`` to ``new_status``. See ``update_loan_status``."""
    target = document_machine.normalize(new_status)
    if target is not None and target == document.status:
        return StatusUpdateResult.ok(target, changed=False)

    changed_by = None if system_initiated else actor_id
    try:
        payload = validate_document_update(document, target, rejection_reason=rejection_reason)
        await _persist(repository, document, payload, changed_by)
    except StatusUpdateError as exc:
        logger.info(
            "Document %s status update %s -> %s refused: %s",
            document.id,
            document.status,
            target,
            exc.code,
        )
        return StatusUpdateResult.failed(exc, document.status)

    await best_effort(
        f"Document {document.id} status history",
        repository.add_document_history(
            document_id=document.id,
            old_status=document.status,
            new_status=target,
            changed_by=changed_by,
            rejection_reason=payload.rejection_reason,
            notes=SYSTEM_TRANSITION_NOTE if system_initiated else None,
        ),
    )
    await best_effort(
        f"Document {document.id} status notification",
        repository.add_notifications(
            [
                document_status_notification(
                    document.user_id,
                    document.id,
                    document.file_name,
                    target,
                    rejection_reason=payload.rejection_reason,
                )
            ]
        ),
    )
    if email_service is not None and dispatcher is not None:
        await dispatch_email(
            repository,
            dispatcher,
            email_service,
            user_id=document.user_id,
            job_name=f"document-{target}-email-{document.id}",
            build=lambda first_name: document_status_email(
                document, target, first_name, rejection_reason=payload.rejection_reason,
            ),
        )

    if change_feed is not None:
        change_feed.publish(document.loan_id)

    logger.info("Document %s status %s -> %s", document.id, document.status, target)
    return StatusUpdateResult.ok(target)


async def _persist(
    repository,
    document: DocumentSnapshot,
    payload: DocumentStatusUpdate,
    changed_by: str | None,
) -> None:
    validated = payload.status == DocumentStatus.VALIDATED
    values = {
        "status": payload.status,
        "validated_at": datetime.now(UTC) if validated else None,
        "validated_by": changed_by if validated else None,
        "rejection_reason": (
            payload.rejection_reason if payload.status == DocumentStatus.REJECTED else None
        ),
    }
    await _write(repository, document, values)


async def _write(repository, document: DocumentSnapshot, values: dict) -> None:
    try:
        updated = await repository.update_document(document.id, document.status, values)
    except Exception as exc:
        logger.error("Document %s status write failed", document.id, exc_info=True)
        raise PersistenceError("The status change could not be saved. Please try again.") from exc

    if not updated:
        raise StaleStatusError("This document was modified in the meantime. Reload it and try again.")


async def replace_document(
    repository,
    document: DocumentSnapshot,
    file_name: str,
    file_path: str,
    *,
    actor_id: str | None = None,
    change_feed: DocumentChangeFeed | None = None,
) -> StatusUpdateResult:
    """Attach a new file to a rejected document and reset it to pending."""
    if not can_replace(document.status):
        exc = InvalidTransitionError(
            f'Only rejected documents can be replaced. This document is "{document_machine.label(document.status)}".'
        )
        return StatusUpdateResult.failed(exc, document.status)

    target = DocumentStatus.PENDING
    values = {
        "status": target,
        "rejection_reason": None,
        "validated_at": None,
        "validated_by": None,
        "file_name": file_name,
        "file_path": file_path,
        "uploaded_at": datetime.now(UTC),
    }
    try:
        await _write(repository, document, values)
    except StatusUpdateError as exc:
        return StatusUpdateResult.failed(exc, document.status)

    await best_effort(
        f"Document {document.id} replacement history",
        repository.add_document_history(
            document_id=document.id,
            old_status=document.status,
            new_status=target.value,
            changed_by=actor_id,
            notes=REPLACEMENT_NOTE,
        ),
    )
    if change_feed is not None:
        change_feed.publish(document.loan_id)

    logger.info("Document %s replaced with %s", document.id, file_name)
    return StatusUpdateResult.ok(target.value)


async def update_document_statuses(
    repository,
    documents: list[DocumentSnapshot],
    new_status,
    *,
    rejection_reason: str | None = None,
    actor_id: str | None = None,
    email_service: EmailService | None = None,
    dispatcher: SideEffectDispatcher | None = None,
    change_feed: DocumentChangeFeed | None = None,
) -> list[tuple[str, StatusUpdateResult]]:
    """Apply one status change to several documents.

    Each document goes through ``update_document_status`` on its own, so one
    refusal does not block the others. Runs sequentially on the shared session.
    """
    results = []
    for document in documents:
        result = await update_document_status(
            repository,
            document,
            new_status,
            rejection_reason=rejection_reason,
            actor_id=actor_id,
            email_service=email_service,
            dispatcher=dispatcher,
            change_feed=change_feed,
        )
        results.append((document.id, result))

    refused = sum(1 for _, result in results if not result.success)
    if refused:
        logger.info("Bulk document update to %s: %d of %d refused", new_status, refused, len(results))
    return results

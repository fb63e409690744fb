# This project was developed with assistance from AI tools.
"""Document lifecycle routes: status changes, history and replacement uploads."""

from fastapi import APIRouter, Depends, HTTPException, status

from ..middleware.auth import CurrentUser, StaffUser
from ..schemas.lifecycle import TransitionsResponse
from ..schemas.status_update import (
    BulkDocumentStatusChangeRequest,
    BulkStatusUpdateItem,
    BulkStatusUpdateResponse,
    DocumentReplacementRequest,
    DocumentStatusChangeRequest,
    StatusHistoryItem,
    StatusHistoryResponse,
    StatusUpdateResponse,
)
from ..services.document_machine import action_label, document_machine
from ..services.document_status_update import (
    replace_document,
    update_document_status,
    update_document_statuses,
)
from ..services.email import EmailService, get_email_service
from ..services.events import DocumentChangeFeed, get_change_feed
from ..services.repository import LifecycleRepository
from ..services.side_effects import SideEffectDispatcher, get_dispatcher
from ..services.status_update import DocumentSnapshot
from ._deps import ensure_visible, get_repository, raise_for_result

router = APIRouter()


async def _load_document(repository: LifecycleRepository, document_id: str):
    document = await repository.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return document


@router.patch("/status", response_model=BulkStatusUpdateResponse)
async def change_document_statuses(
    body: BulkDocumentStatusChangeRequest,
    user: StaffUser,
    repository: LifecycleRepository = Depends(get_repository),
    email_service: EmailService = Depends(get_email_service),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    change_feed: DocumentChangeFeed = Depends(get_change_feed),
) -> BulkStatusUpdateResponse:
    """Move several documents to the same status (staff only)."""
    requested = list(dict.fromkeys(body.document_ids))
    found = {doc.id: doc for doc in await repository.get_documents(requested)}
    outcomes = dict(
        await update_document_statuses(
            repository,
            [DocumentSnapshot.from_model(found[doc_id]) for doc_id in requested if doc_id in found],
            body.status,
            rejection_reason=body.rejection_reason,
            actor_id=user.user_id,
            email_service=email_service,
            dispatcher=dispatcher,
            change_feed=change_feed,
        )
    )

    items = []
    for doc_id in requested:
        result = outcomes.get(doc_id)
        if result is None:
            items.append(
                BulkStatusUpdateItem(
                    document_id=doc_id, success=False, error="Document not found", code="not_found"
                )
            )
            continue
        items.append(
            BulkStatusUpdateItem(
                document_id=doc_id,
                success=result.success,
                status=result.status,
                changed=result.changed,
                error=result.error,
                code=result.error_code,
            )
        )
    succeeded = sum(1 for item in items if item.success)
    return BulkStatusUpdateResponse(data=items, succeeded=succeeded, failed=len(items) - succeeded)


@router.patch("/{document_id}/status", response_model=StatusUpdateResponse)
async def change_document_status(
    document_id: str,
    body: DocumentStatusChangeRequest,
    user: StaffUser,
    repository: LifecycleRepository = Depends(get_repository),
    email_service: EmailService = Depends(get_email_service),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
    change_feed: DocumentChangeFeed = Depends(get_change_feed),
) -> StatusUpdateResponse:
    """Move a document to a new status (staff only)."""
    document = await _load_document(repository, document_id)
    result = await update_document_status(
        repository,
        DocumentSnapshot.from_model(document),
        body.status,
        rejection_reason=body.rejection_reason,
        actor_id=user.user_id,
        email_service=email_service,
        dispatcher=dispatcher,
        change_feed=change_feed,
    )
    raise_for_result(result)
    return StatusUpdateResponse(status=result.status, changed=result.changed)


@router.post("/{document_id}/replacement", response_model=StatusUpdateResponse)
async def replace_rejected_document(
    document_id: str,
    body: DocumentReplacementRequest,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
    change_feed: DocumentChangeFeed = Depends(get_change_feed),
) -> StatusUpdateResponse:
    """Attach a re-uploaded file to a rejected document."""
    document = await _load_document(repository, document_id)
    ensure_visible(user, document.user_id, "Document")
    result = await replace_document(
        repository,
        DocumentSnapshot.from_model(document),
        body.file_name,
        body.file_path,
        actor_id=user.user_id,
        change_feed=change_feed,
    )
    raise_for_result(result)
    return StatusUpdateResponse(status=result.status, changed=result.changed)


@router.get("/{document_id}/status/transitions", response_model=TransitionsResponse)
async def document_transitions(
    document_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
) -> TransitionsResponse:
    document = await _load_document(repository, document_id)
    ensure_visible(user, document.user_id, "Document")
    return TransitionsResponse(
        current=document_machine.definition(document.status),
        terminal=document_machine.is_terminal(document.status),
        action=action_label(document.status),
        allowed=[
            document_machine.definition(s)
            for s in document_machine.allowed_transitions(document.status)
        ],
    )


@router.get("/{document_id}/status/history", response_model=StatusHistoryResponse)
async def document_status_history(
    document_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
) -> StatusHistoryResponse:
    """Status trail of a document, newest first."""
    document = await _load_document(repository, document_id)
    ensure_visible(user, document.user_id, "Document")
    rows = await repository.list_document_history(document_id)
    return StatusHistoryResponse(
        data=[
            StatusHistoryItem(
                old_status=row.old_status,
                new_status=row.new_status,
                changed_by=row.changed_by,
                rejection_reason=row.rejection_reason,
                notes=row.notes,
                created_at=row.created_at,
            )
            for row in rows
        ]
    )

# This project was developed with assistance from AI tools.
"""Loan lifecycle routes: status changes, history, document progress, escrow."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.config import settings
from ..middleware.auth import CurrentUser, StaffUser
from ..schemas.lifecycle import (
    ChecklistItem,
    DocumentChangeResponse,
    DocumentProgressResponse,
    ProgressCheckResponse,
    ProgressSummary,
    SequestreResponse,
    SequestreUpdateRequest,
    TransitionsResponse,
)
from ..schemas.status_update import (
    LoanStatusChangeRequest,
    StatusHistoryItem,
    StatusHistoryResponse,
    StatusUpdateResponse,
)
from ..services.checklist import DOCUMENT_CATEGORIES, get_document_checklist
from ..services.document_progress import (
    DocumentProgressMonitor,
    compute_loan_progress,
    get_progress_monitor,
)
from ..services.email import EmailService, get_email_service
from ..services.events import DocumentChangeFeed, get_change_feed
from ..services.loan_machine import loan_machine
from ..services.loan_status_update import update_loan_status
from ..services.repository import LifecycleRepository
from ..services.sequestre import SequestreMonitor, get_sequestre_monitor
from ..services.side_effects import SideEffectDispatcher, get_dispatcher
from ..services.status_update import LoanSnapshot
from ._deps import ensure_visible, get_repository, raise_for_result

router = APIRouter()


async def _load_loan(repository: LifecycleRepository, loan_id: str):
    loan = await repository.get_loan(loan_id)
    if loan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Loan not found")
    return loan


@router.patch("/{loan_id}/status", response_model=StatusUpdateResponse)
async def change_loan_status(
    loan_id: str,
    body: LoanStatusChangeRequest,
    user: StaffUser,
    repository: LifecycleRepository = Depends(get_repository),
    email_service: EmailService = Depends(get_email_service),
    dispatcher: SideEffectDispatcher = Depends(get_dispatcher),
) -> StatusUpdateResponse:
    """Move a loan to a new status (staff only)."""
    loan = await _load_loan(repository, loan_id)
    result = await update_loan_status(
        repository,
        LoanSnapshot.from_model(loan),
        body.status,
        rejection_reason=body.rejection_reason,
        next_action=body.next_action,
        actor_id=user.user_id,
        email_service=email_service,
        dispatcher=dispatcher,
        portal_url=settings.PORTAL_BASE_URL,
    )
    raise_for_result(result)
    return StatusUpdateResponse(status=result.status, changed=result.changed)


@router.get("/{loan_id}/status/transitions", response_model=TransitionsResponse)
async def loan_transitions(
    loan_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
) -> TransitionsResponse:
    loan = await _load_loan(repository, loan_id)
    ensure_visible(user, loan.user_id, "Loan")
    return TransitionsResponse(
        current=loan_machine.definition(loan.status),
        terminal=loan_machine.is_terminal(loan.status),
        allowed=[loan_machine.definition(s) for s in loan_machine.allowed_transitions(loan.status)],
    )


@router.get("/{loan_id}/status/history", response_model=StatusHistoryResponse)
async def loan_status_history(
    loan_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
) -> StatusHistoryResponse:
    """Status trail of a loan, newest first."""
    loan = await _load_loan(repository, loan_id)
    ensure_visible(user, loan.user_id, "Loan")
    rows = await repository.list_loan_history(loan_id)
    return StatusHistoryResponse(
        data=[
            StatusHistoryItem(
                old_status=row.old_status,
                new_status=row.new_status,
                changed_by=row.changed_by,
                rejection_reason=row.rejection_reason,
                next_action=row.next_action,
                notes=row.notes,
                created_at=row.created_at,
            )
            for row in rows
        ]
    )


@router.get("/{loan_id}/documents/progress", response_model=DocumentProgressResponse)
async def loan_document_progress(
    loan_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
) -> DocumentProgressResponse:
    loan = await _load_loan(repository, loan_id)
    ensure_visible(user, loan.user_id, "Loan")
    snapshot = LoanSnapshot.from_model(loan)
    documents = await repository.list_loan_documents(loan_id)
    progress = compute_loan_progress(snapshot, documents)

    return DocumentProgressResponse(
        loan_id=loan_id,
        status=snapshot.status,
        project_type=snapshot.project_type,
        complete=progress.complete,
        primary=ProgressSummary(**asdict(progress.primary)),
        coborrower=ProgressSummary(**asdict(progress.coborrower)) if progress.coborrower else None,
        checklist=[
            ChecklistItem(**asdict(req), category_label=DOCUMENT_CATEGORIES.get(req.category, req.category))
            for req in get_document_checklist(snapshot.project_type)
        ],
    )


@router.post("/{loan_id}/documents/progress/check", response_model=ProgressCheckResponse)
async def run_document_progress_check(
    loan_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
    monitor: DocumentProgressMonitor = Depends(get_progress_monitor),
) -> ProgressCheckResponse:
    """Run the completion trigger for one loan now."""
    loan = await _load_loan(repository, loan_id)
    ensure_visible(user, loan.user_id, "Loan")
    check = await monitor.check_and_transition(repository, LoanSnapshot.from_model(loan))
    return ProgressCheckResponse(
        loan_id=loan_id,
        outcome=check.outcome.value,
        complete=check.progress.complete if check.progress else None,
        error=check.error,
    )


@router.post(
    "/{loan_id}/documents/changed",
    response_model=DocumentChangeResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def announce_document_change(
    loan_id: str,
    user: CurrentUser,
    repository: LifecycleRepository = Depends(get_repository),
    change_feed: DocumentChangeFeed = Depends(get_change_feed),
) -> DocumentChangeResponse:
    """Called by the upload flow after a document of the loan was added, replaced or removed."""
    loan = await _load_loan(repository, loan_id)
    ensure_visible(user, loan.user_id, "Loan")
    return DocumentChangeResponse(loan_id=loan_id, handlers=change_feed.publish(loan_id))

@router.patch("/{loan_id}/sequestre", response_model=SequestreResponse)
async def update_sequestre(
    loan_id: str,
    body: SequestreUpdateRequest,
    _user: StaffUser,
    repository: LifecycleRepository = Depends(get_repository),
    monitor: SequestreMonitor = Depends(get_sequestre_monitor),
) -> SequestreResponse:
    """Record escrow amounts and alert when the escrow is funded in full."""
    loan = await _load_loan(repository, loan_id)
    sent = body.model_dump(exclude_unset=True)
    updated, fired = await monitor.update_amounts(
        repository,
        LoanSnapshot.from_model(loan),
        sent.get("amount_expected", loan.sequestre_amount_expected),
        sent.get("amount_received", loan.sequestre_amount_received),
    )
    return SequestreResponse(
        loan_id=loan_id,
        sequestre_status=updated.sequestre_status,
        amount_expected=updated.sequestre_amount_expected,
        amount_received=updated.sequestre_amount_received,
        alert_sent=fired,
    )

# This project was developed with assistance from AI tools.
"""Document completion monitor.

Moves a loan from ``pending`` / ``documents_required`` to ``under_review``
once every required document is in, then tells the borrower and their
agent. Runs whenever the document change feed fires for a loan, or on
demand from the progress endpoint.

Concurrent evaluations of the same loan within this process are collapsed
by ``InFlightGuard``, and a check arriving mid-flight makes the running one
look again. Across processes the loan orchestrator's conditional update
lets at most one evaluation win.
"""

import asyncio
import enum
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from portal_db.enums import DocumentOwner, DocumentStatus, LoanStatus

from ..core.config import Settings
from .checklist import (
    ChecklistProgress,
    calculate_progress,
    coborrower_checklist,
    get_document_checklist,
)
from .email import EmailService, notification_email
from .loan_machine import loan_machine
from .loan_status_update import update_loan_status
from .notification import documents_complete_agent_notification, documents_complete_notification
from .repository import LifecycleRepository
from .side_effects import SideEffectDispatcher
from .status_machine import StatusMachine
from .status_update import LoanSnapshot, best_effort, dispatch_email

logger = logging.getLogger(__name__)

REVIEW_NEXT_ACTION = "Document review in progress"

_WATCHED_STATUSES = frozenset({LoanStatus.PENDING.value, LoanStatus.DOCUMENTS_REQUIRED.value})


class ProgressOutcome(str, enum.Enum):
    SKIPPED = "skipped"
    NOT_APPLICABLE = "not_applicable"
    INCOMPLETE = "incomplete"
    TRANSITIONED = "transitioned"
    FAILED = "failed"


@dataclass(frozen=True)
class LoanProgress:
    primary: ChecklistProgress
    coborrower: ChecklistProgress | None = None

    @property
    def complete(self) -> bool:
        if not self.primary.is_complete:
            return False
        return self.coborrower is None or self.coborrower.is_complete


@dataclass(frozen=True)
class ProgressCheck:
    loan_id: str
    outcome: ProgressOutcome
    progress: LoanProgress | None = None
    error: str | None = None


class InFlightGuard:
    """Keys currently being processed, one holder per key.

    A caller refused entry leaves a re-check request that the holder
    collects through ``release``.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._holders: dict[str, object] = {}
        self._rechecks: set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._holders

    @asynccontextmanager
    async def hold(self, key: str):
        """Yield True if ``key`` was free and is now held, False otherwise."""
        token = object()
        async with self._lock:
            acquired = key not in self._holders
            if acquired:
                self._holders[key] = token
            else:
                self._rechecks.add(key)
        try:
            yield acquired
        finally:
            if acquired:
                async with self._lock:
                    if self._holders.get(key) is token:
                        del self._holders[key]
                        self._rechecks.discard(key)

    async def release(self, key: str) -> bool:
        """Release ``key`` unless a re-check was requested while it was held.

        Returns False, keeping the key held, when the holder must run again.
        """
        async with self._lock:
            if key in self._rechecks:
                self._rechecks.discard(key)
                return False
            self._holders.pop(key, None)
            return True


def compute_loan_progress(loan: LoanSnapshot, documents) -> LoanProgress:
    """Checklist progress for the borrower and, when present, the co-borrower.

    Rejected documents do not count toward completion.
    """
    usable = [
        doc
        for doc in documents
        if StatusMachine.normalize(doc.status) != DocumentStatus.REJECTED.value
    ]
    checklist = get_document_checklist(loan.project_type)

    primary_docs = [
        doc
        for doc in usable
        if StatusMachine.normalize(doc.document_owner) in (None, DocumentOwner.PRIMARY.value)
    ]
    primary = calculate_progress(checklist, primary_docs)

    coborrower = None
    if loan.has_coborrower:
        coborrower_docs = [
            doc
            for doc in usable
            if StatusMachine.normalize(doc.document_owner) == DocumentOwner.CO_BORROWER.value
        ]
        coborrower = calculate_progress(coborrower_checklist(checklist), coborrower_docs)

    return LoanProgress(primary=primary, coborrower=coborrower)


class DocumentProgressMonitor:
    """Completion trigger for loans waiting on documents."""

    def __init__(
        self,
        session_factory: Callable,
        *,
        dispatcher: SideEffectDispatcher | None = None,
        email_service: EmailService | None = None,
        portal_url: str = "",
        guard: InFlightGuard | None = None,
    ):
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._email_service = email_service
        self._portal_url = portal_url
        self._guard = guard or InFlightGuard()

    async def evaluate(self, loan_id: str) -> ProgressCheck:
        """Load the loan and run the completion check. Change-feed handler."""
        async with self._session_factory() as session:
            repository = LifecycleRepository(session)
            loan = await repository.get_loan(loan_id)
            if loan is None:
                logger.warning("Progress check for unknown loan %s", loan_id)
                return ProgressCheck(loan_id, ProgressOutcome.NOT_APPLICABLE)
            return await self.check_and_transition(repository, LoanSnapshot.from_model(loan))

    async def check_and_transition(self, repository, loan: LoanSnapshot) -> ProgressCheck:
        if loan.status not in _WATCHED_STATUSES:
            return ProgressCheck(loan.id, ProgressOutcome.NOT_APPLICABLE)

        if not loan_machine.is_valid_transition(loan.status, LoanStatus.UNDER_REVIEW):
            logger.warning(
                "Invalid automatic transition for loan %s: %s -> %s",
                loan.id,
                loan.status,
                LoanStatus.UNDER_REVIEW.value,
            )
            return ProgressCheck(loan.id, ProgressOutcome.NOT_APPLICABLE)

        async with self._guard.hold(loan.id) as acquired:
            if not acquired:
                logger.debug("Progress check for loan %s already in flight", loan.id)
                return ProgressCheck(loan.id, ProgressOutcome.SKIPPED)
            while True:
                check = await self._check_locked(repository, loan)
                if check.outcome is not ProgressOutcome.INCOMPLETE:
                    return check
                if await self._guard.release(loan.id):
                    return check
                logger.debug("Documents of loan %s changed during the check, checking again", loan.id)

    async def _check_locked(self, repository, loan: LoanSnapshot) -> ProgressCheck:
        try:
            documents = await repository.list_loan_documents(loan.id)
        except Exception:
            logger.error("Could not load documents for loan %s", loan.id, exc_info=True)
            return ProgressCheck(loan.id, ProgressOutcome.FAILED, error="Documents could not be loaded")

        progress = compute_loan_progress(loan, documents)
        if not progress.complete:
            return ProgressCheck(loan.id, ProgressOutcome.INCOMPLETE, progress)

        result = await update_loan_status(
            repository,
            loan,
            LoanStatus.UNDER_REVIEW,
            next_action=REVIEW_NEXT_ACTION,
            system_initiated=True,
            notify_owner=False,
        )
        if not result.success:
            logger.warning(
                "Automatic transition of loan %s to under_review failed: %s",
                loan.id,
                result.error_code,
            )
            return ProgressCheck(loan.id, ProgressOutcome.FAILED, progress, result.error)

        await self._announce(repository, loan)
        logger.info("Loan %s moved to under_review: all documents received", loan.id)
        return ProgressCheck(loan.id, ProgressOutcome.TRANSITIONED, progress)

    async def _announce(self, repository, loan: LoanSnapshot) -> None:
        await best_effort(
            f"Loan {loan.id} completion notification",
            repository.add_notifications([documents_complete_notification(loan.user_id, loan.id)]),
        )

        try:
            agent_id = await repository.get_assigned_agent_id(loan.user_id)
        except Exception:
            logger.warning("Agent lookup for loan %s failed", loan.id, exc_info=True)
            agent_id = None
        if agent_id:
            await best_effort(
                f"Loan {loan.id} agent completion notification",
                repository.add_notifications([documents_complete_agent_notification(agent_id, loan.id)]),
            )

        if self._email_service is not None and self._dispatcher is not None:
            await dispatch_email(
                repository,
                self._dispatcher,
                self._email_service,
                user_id=loan.user_id,
                job_name=f"loan-complete-email-{loan.id}",
                build=lambda first_name: notification_email(
                    first_name,
                    "Your file is under review 🔍",
                    "All your documents have been received! Our team is now reviewing your "
                    "loan file. We will keep you informed of its progress.",
                    cta_text="View my file",
                    cta_url=f"{self._portal_url}/loans",
                ),
            )


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_monitor: DocumentProgressMonitor | None = None


def init_progress_monitor(
    cfg: Settings,
    session_factory: Callable,
    dispatcher: SideEffectDispatcher,
    email_service: EmailService,
) -> DocumentProgressMonitor:
    """Initialise the singleton (called once from app lifespan)."""
    global _monitor  # noqa: PLW0603
    _monitor = DocumentProgressMonitor(
        session_factory,
        dispatcher=dispatcher,
        email_service=email_service,
        portal_url=cfg.PORTAL_BASE_URL,
    )
    return _monitor


def get_progress_monitor() -> DocumentProgressMonitor:
    """Return the initialised DocumentProgressMonitor singleton."""
    if _monitor is None:
        raise RuntimeError("DocumentProgressMonitor not initialised -- call init_progress_monitor() first")
    return _monitor

# This project was developed with assistance from AI tools.
"""Escrow (sequestre) threshold monitor.

When the received escrow amount reaches the expected amount, the loan's
escrow is marked complete exactly once and the borrower, their agent and
every administrator are told.
"""

import dataclasses
import logging
from decimal import Decimal

from portal_db.enums import SequestreStatus

from .email import EmailService, notification_email
from .notification import (
    format_amount,
    sequestre_complete_client_notification,
    sequestre_complete_staff_notifications,
)
from .side_effects import SideEffectDispatcher
from .status_update import LoanSnapshot, best_effort, dispatch_email

logger = logging.getLogger(__name__)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    return value if isinstance(value, Decimal) else Decimal(str(value))


def threshold_reached(loan: LoanSnapshot) -> bool:
    """True when escrow is funded in full and not yet marked complete."""
    expected = _decimal(loan.sequestre_amount_expected)
    if expected <= 0:
        return False
    if _decimal(loan.sequestre_amount_received) < expected:
        return False
    return loan.sequestre_status != SequestreStatus.COMPLETE.value


def interim_status(received) -> SequestreStatus:
    """Status for escrow that has not (yet) been marked complete."""
    return SequestreStatus.PARTIAL if _decimal(received) > 0 else SequestreStatus.PENDING


class SequestreMonitor:
    """Threshold trigger for loan escrow."""

    def __init__(
        self,
        *,
        dispatcher: SideEffectDispatcher | None = None,
        email_service: EmailService | None = None,
    ):
        self._dispatcher = dispatcher
        self._email_service = email_service

    async def check_and_alert(self, repository, loan: LoanSnapshot) -> bool:
        """Mark escrow complete and fan out alerts. Returns True if this call fired."""
        if not threshold_reached(loan):
            return False

        try:
            marked = await repository.mark_sequestre_complete(loan.id)
        except Exception:
            logger.error("Could not mark escrow complete for loan %s", loan.id, exc_info=True)
            return False
        if not marked:
            logger.debug("Escrow for loan %s already complete", loan.id)
            return False

        amount = loan.sequestre_amount_received
        await best_effort(
            f"Loan {loan.id} escrow client notification",
            repository.add_notifications(
                [sequestre_complete_client_notification(loan.user_id, loan.id, amount)]
            ),
        )

        try:
            agent_id = await repository.get_assigned_agent_id(loan.user_id)
        except Exception:
            logger.warning("Agent lookup for loan %s failed", loan.id, exc_info=True)
            agent_id = None
        if agent_id:
            await best_effort(
                f"Loan {loan.id} escrow agent notification",
                repository.add_notifications(
                    sequestre_complete_staff_notifications([agent_id], loan.id, amount)
                ),
            )

        await best_effort(
            f"Loan {loan.id} escrow admin notifications",
            self._notify_admins(repository, loan, amount),
        )

        if self._email_service is not None and self._dispatcher is not None:
            await dispatch_email(
                repository,
                self._dispatcher,
                self._email_service,
                user_id=loan.user_id,
                job_name=f"sequestre-complete-email-{loan.id}",
                build=lambda first_name: notification_email(
                    first_name,
                    "Escrow received in full ✅",
                    f"The escrow amount ({format_amount(amount)}) for your file has been "
                    "received. Your file can move on to the next steps.",
                ),
            )

        logger.info("Escrow complete for loan %s (%s)", loan.id, format_amount(amount))
        return True

    async def _notify_admins(self, repository, loan: LoanSnapshot, amount) -> None:
        admin_ids = await repository.list_admin_ids()
        await repository.add_notifications(
            sequestre_complete_staff_notifications(admin_ids, loan.id, amount)
        )

    async def update_amounts(
        self,
        repository,
        loan: LoanSnapshot,
        expected: Decimal | None,
        received: Decimal | None,
    ) -> tuple[LoanSnapshot, bool]:
        """Store new escrow amounts, then run the threshold check.

        Complete escrow keeps its status; otherwise the status is recomputed
        as ``partial`` or ``pending``. Returns the refreshed snapshot and
        whether the threshold alert fired.
        """
        status = None
        if loan.sequestre_status != SequestreStatus.COMPLETE.value:
            status = interim_status(received)

        await repository.update_sequestre_amounts(loan.id, expected, received, status)
        updated = dataclasses.replace(
            loan,
            sequestre_amount_expected=expected,
            sequestre_amount_received=received,
            sequestre_status=status.value if status is not None else loan.sequestre_status,
        )

        fired = await self.check_and_alert(repository, updated)
        if fired:
            updated = dataclasses.replace(updated, sequestre_status=SequestreStatus.COMPLETE.value)
        return updated, fired


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_monitor: SequestreMonitor | None = None


def init_sequestre_monitor(
    dispatcher: SideEffectDispatcher,
    email_service: EmailService,
) -> SequestreMonitor:
    """Initialise the singleton (called once from app lifespan)."""
    global _monitor  # noqa: PLW0603
    _monitor = SequestreMonitor(dispatcher=dispatcher, email_service=email_service)
    return _monitor


def get_sequestre_monitor() -> SequestreMonitor:
    """Return the initialised SequestreMonitor singleton."""
    if _monitor is None:
        raise RuntimeError("SequestreMonitor not initialised -- call init_sequestre_monitor() first")
    return _monitor

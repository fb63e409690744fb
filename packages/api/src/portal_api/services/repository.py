# This project was developed with assistance from AI tools.
"""Persistence gateway for the loan and document lifecycle.

Every write commits immediately so that a failing best-effort write (history,
notifications) can never roll back a status change that already succeeded.
Status writes are conditional on the caller's expected status; the boolean
result tells the orchestrator whether the row actually moved.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from portal_db import (
    ClientAssignment,
    Document,
    DocumentStatusHistory,
    LoanApplication,
    LoanStatusHistory,
    Notification,
    Profile,
    UserRoleAssignment,
)
from portal_db.enums import DocumentDirection, SequestreStatus, UserRole
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class LifecycleRepository:
    """Async data access used by the orchestrators and triggers."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- reads --------------------------------------------------------------

    async def get_loan(self, loan_id: str) -> LoanApplication | None:
        result = await self.session.execute(
            select(LoanApplication).where(LoanApplication.id == loan_id)
        )
        return result.scalar_one_or_none()

    async def get_document(self, document_id: str) -> Document | None:
        result = await self.session.execute(select(Document).where(Document.id == document_id))
        return result.scalar_one_or_none()

    async def list_loan_documents(
        self,
        loan_id: str,
        direction: DocumentDirection | None = DocumentDirection.OUTGOING,
    ) -> list[Document]:
        stmt = select(Document).where(Document.loan_id == loan_id)
        if direction is not None:
            stmt = stmt.where(Document.direction == direction)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_documents(self, document_ids: list[str]) -> list[Document]:
        if not document_ids:
            return []
        result = await self.session.execute(select(Document).where(Document.id.in_(document_ids)))
        return list(result.scalars().all())

    async def list_loan_history(self, loan_id: str) -> list[LoanStatusHistory]:
        result = await self.session.execute(
            select(LoanStatusHistory)
            .where(LoanStatusHistory.loan_id == loan_id)
            .order_by(LoanStatusHistory.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_document_history(self, document_id: str) -> list[DocumentStatusHistory]:
        result = await self.session.execute(
            select(DocumentStatusHistory)
            .where(DocumentStatusHistory.document_id == document_id)
            .order_by(DocumentStatusHistory.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_contact(self, user_id: str) -> Profile | None:
        result = await self.session.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def get_assigned_agent_id(self, client_user_id: str) -> str | None:
        result = await self.session.execute(
            select(ClientAssignment.agent_user_id).where(
                ClientAssignment.client_user_id == client_user_id
            )
        )
        return result.scalar_one_or_none()

    async def list_admin_ids(self) -> list[str]:
        result = await self.session.execute(
            select(UserRoleAssignment.user_id).where(UserRoleAssignment.role == UserRole.ADMIN)
        )
        return list(result.scalars().all())

    # -- conditional status writes -----------------------------------------

    async def update_loan(self, loan_id: str, expected_status: str | None, values: dict) -> bool:
        """Apply ``values`` only if the loan still has ``expected_status``."""
        stmt = (
            update(LoanApplication)
            .where(
                LoanApplication.id == loan_id,
                LoanApplication.status.is_not_distinct_from(expected_status),
            )
            .values(**values, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(stmt)

    async def update_document(
        self, document_id: str, expected_status: str | None, values: dict
    ) -> bool:
        """Apply ``values`` only if the document still has ``expected_status``."""
        stmt = (
            update(Document)
            .where(
                Document.id == document_id,
                Document.status.is_not_distinct_from(expected_status),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(stmt)

    async def mark_sequestre_complete(self, loan_id: str) -> bool:
        """Flip escrow to complete once; False when it already was."""
        stmt = (
            update(LoanApplication)
            .where(
                LoanApplication.id == loan_id,
                LoanApplication.sequestre_status.is_distinct_from(SequestreStatus.COMPLETE.value),
            )
            .values(sequestre_status=SequestreStatus.COMPLETE, updated_at=datetime.now(UTC))
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(stmt)

    async def update_sequestre_amounts(
        self,
        loan_id: str,
        expected: Decimal | None,
        received: Decimal | None,
        sequestre_status: SequestreStatus | None = None,
    ) -> bool:
        values = {
            "sequestre_amount_expected": expected,
            "sequestre_amount_received": received,
            "updated_at": datetime.now(UTC),
        }
        if sequestre_status is not None:
            values["sequestre_status"] = sequestre_status
        stmt = (
            update(LoanApplication)
            .where(LoanApplication.id == loan_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(stmt)

    async def _execute_conditional(self, stmt) -> bool:
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return (result.rowcount or 0) > 0

    # -- append-only writes -------------------------------------------------

    async def add_loan_history(self, **fields) -> None:
        await self._add_all([LoanStatusHistory(**fields)])

    async def add_document_history(self, **fields) -> None:
        await self._add_all([DocumentStatusHistory(**fields)])

    async def add_notifications(self, rows: list[dict]) -> None:
        if not rows:
            return
        await self._add_all([Notification(**row) for row in rows])

    async def _add_all(self, objects) -> None:
        self.session.add_all(objects)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

# This project was developed with assistance from AI tools.
"""Shared test factory functions for creating mock objects.

Loans and documents are MagicMock ORM stand-ins with every attribute the
snapshots read set explicitly; the repository is an AsyncMock whose writes
succeed by default.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from portal_api.schemas.auth import UserContext
from portal_api.services.side_effects import SideEffectDispatcher
from portal_api.services.status_update import DocumentSnapshot, LoanSnapshot
from portal_db.enums import UserRole


def make_loan(
    id="loan-0001-aaaa",
    status="pending",
    user_id="client-1",
    amount=Decimal("250000.00"),
    rate=Decimal("3.450"),
    monthly_payment=Decimal("1250.00"),
    project_type="achat_residence_principale",
    has_coborrower=False,
    sequestre_status="pending",
    sequestre_amount_expected=None,
    sequestre_amount_received=None,
):
    """Create a mock LoanApplication ORM object."""
    loan = MagicMock()
    loan.id = id
    loan.status = status
    loan.user_id = user_id
    loan.amount = amount
    loan.rate = rate
    loan.monthly_payment = monthly_payment
    loan.project_type = project_type
    loan.has_coborrower = has_coborrower
    loan.sequestre_status = sequestre_status
    loan.sequestre_amount_expected = sequestre_amount_expected
    loan.sequestre_amount_received = sequestre_amount_received
    return loan


def loan_snapshot(**kwargs) -> LoanSnapshot:
    return LoanSnapshot.from_model(make_loan(**kwargs))


def make_document(
    id="doc-0001-bbbb",
    status="received",
    user_id="client-1",
    loan_id="loan-0001-aaaa",
    file_name="payslip-march.pdf",
    category=None,
    document_owner=None,
    direction="outgoing",
):
    """Create a mock Document ORM object."""
    doc = MagicMock()
    doc.id = id
    doc.status = status
    doc.user_id = user_id
    doc.loan_id = loan_id
    doc.file_name = file_name
    doc.category = category
    doc.document_owner = document_owner
    doc.direction = direction
    return doc


def document_snapshot(**kwargs) -> DocumentSnapshot:
    return DocumentSnapshot.from_model(make_document(**kwargs))


def make_profile(email="marie@example.com", first_name="Marie"):
    profile = MagicMock()
    profile.email = email
    profile.first_name = first_name
    return profile


def make_repository(
    *,
    loan=None,
    document=None,
    documents=None,
    profile="default",
    agent_id="agent-1",
    admin_ids=("admin-1",),
):
    """Create an AsyncMock LifecycleRepository whose writes all succeed."""
    repo = AsyncMock()
    repo.get_loan.return_value = loan
    repo.get_document.return_value = document
    repo.list_loan_documents.return_value = list(documents or [])
    repo.list_loan_history.return_value = []
    repo.list_document_history.return_value = []
    repo.get_documents.return_value = [document] if document is not None else []
    repo.get_contact.return_value = make_profile() if profile == "default" else profile
    repo.get_assigned_agent_id.return_value = agent_id
    repo.list_admin_ids.return_value = list(admin_ids)
    repo.update_loan.return_value = True
    repo.update_document.return_value = True
    repo.mark_sequestre_complete.return_value = True
    repo.update_sequestre_amounts.return_value = True
    repo.add_loan_history.return_value = None
    repo.add_document_history.return_value = None
    repo.add_notifications.return_value = None
    return repo


def make_dispatcher(max_attempts=3) -> SideEffectDispatcher:
    """Real dispatcher with no retry delay."""
    return SideEffectDispatcher(max_attempts=max_attempts, retry_base_seconds=0)


def make_email_service():
    service = MagicMock()
    service.send = AsyncMock(return_value=True)
    return service


def make_user(role: UserRole = UserRole.ADMIN, user_id="staff-1") -> UserContext:
    return UserContext(user_id=user_id, role=role, email=f"{user_id}@pret.test", name="Test User")


def notification_rows(repo) -> list[dict]:
    """Every notification row written through ``repo.add_notifications``."""
    return [row for call in repo.add_notifications.await_args_list for row in call.args[0]]

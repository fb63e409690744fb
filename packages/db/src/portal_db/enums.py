# This project was developed with assistance from AI tools.
"""
Domain enums for the loan and document lifecycle.

Shared domain types used by both SQLAlchemy models (portal_db package)
and Pydantic schemas / services (portal_api package). Transition tables
live here; display metadata (labels, colors, icons) lives with the
status machines in the api package.
"""

import enum


class LoanStatus(str, enum.Enum):
    PENDING = "pending"
    DOCUMENTS_REQUIRED = "documents_required"
    UNDER_REVIEW = "under_review"
    PROCESSING = "processing"
    OFFER_ISSUED = "offer_issued"
    APPROVED = "approved"
    REJECTED = "rejected"
    FUNDED = "funded"

    @classmethod
    def terminal_statuses(cls) -> frozenset["LoanStatus"]:
        """Statuses after which a loan can no longer change."""
        return frozenset({cls.REJECTED, cls.FUNDED})

    @classmethod
    def initial_statuses(cls) -> frozenset["LoanStatus"]:
        """Statuses a loan without any status may be given."""
        return frozenset({cls.PENDING, cls.DOCUMENTS_REQUIRED})

    @classmethod
    def valid_transitions(cls) -> dict["LoanStatus", tuple["LoanStatus", ...]]:
        """Allowed status transitions in the loan lifecycle (ordered for display)."""
        return {
            cls.PENDING: (cls.DOCUMENTS_REQUIRED, cls.UNDER_REVIEW, cls.REJECTED),
            cls.DOCUMENTS_REQUIRED: (cls.UNDER_REVIEW, cls.PENDING, cls.REJECTED),
            cls.UNDER_REVIEW: (cls.DOCUMENTS_REQUIRED, cls.PROCESSING, cls.REJECTED),
            cls.PROCESSING: (cls.OFFER_ISSUED, cls.APPROVED, cls.REJECTED, cls.UNDER_REVIEW),
            cls.OFFER_ISSUED: (cls.APPROVED, cls.REJECTED),
            cls.APPROVED: (cls.FUNDED, cls.REJECTED),
            cls.REJECTED: (),
            cls.FUNDED: (),
        }


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    RECEIVED = "received"
    UNDER_REVIEW = "under_review"
    VALIDATED = "validated"
    REJECTED = "rejected"

    @classmethod
    def terminal_statuses(cls) -> frozenset["DocumentStatus"]:
        """A validated document is final."""
        return frozenset({cls.VALIDATED})

    @classmethod
    def initial_statuses(cls) -> frozenset["DocumentStatus"]:
        return frozenset({cls.PENDING, cls.RECEIVED})

    @classmethod
    def valid_transitions(cls) -> dict["DocumentStatus", tuple["DocumentStatus", ...]]:
        """Allowed document transitions. Rejected documents re-enter via replacement."""
        return {
            cls.PENDING: (cls.RECEIVED,),
            cls.RECEIVED: (cls.UNDER_REVIEW, cls.VALIDATED, cls.REJECTED),
            cls.UNDER_REVIEW: (cls.VALIDATED, cls.REJECTED),
            cls.VALIDATED: (),
            cls.REJECTED: (cls.RECEIVED, cls.PENDING),
        }


class SequestreStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    AGENT = "agent"
    CLIENT = "client"


class DocumentOwner(str, enum.Enum):
    PRIMARY = "primary"
    CO_BORROWER = "co_borrower"


class DocumentDirection(str, enum.Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


class NotificationCategory(str, enum.Enum):
    LOAN = "loan"
    DOCUMENT = "document"


class NotificationType(str, enum.Enum):
    LOAN_STATUS = "loan_status"
    DOCUMENT_STATUS = "document_status"
    SEQUESTRE_COMPLETE = "sequestre_complete"

# This project was developed with assistance from AI tools.
"""
Pret portal -- lifecycle models

Loan applications, their documents, the append-only status history for
both, and the in-app notifications produced by status changes. Profiles,
roles and client/agent assignments are read-only here; they are owned by
the account side of the portal.
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    DocumentDirection,
    DocumentOwner,
    DocumentStatus,
    LoanStatus,
    NotificationCategory,
    NotificationType,
    SequestreStatus,
    UserRole,
)


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Profile(Base):
    """Portal user profile keyed by the identity-provider subject."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}')>"


class UserRoleAssignment(Base):
    """Role granted to a portal user."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )

    def __repr__(self):
        return f"<UserRoleAssignment(user_id={self.user_id}, role='{self.role}')>"


class ClientAssignment(Base):
    """Client -> agent assignment (one agent per client)."""

    __tablename__ = "client_assignments"

    id = Column(String(36), primary_key=True, default=_new_id)
    client_user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, unique=True)
    agent_user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ClientAssignment(client={self.client_user_id}, agent={self.agent_user_id})>"


class LoanApplication(Base):
    """Mortgage loan application."""

    __tablename__ = "loan_applications"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        Enum(LoanStatus, name="loan_status", native_enum=False, values_callable=_enum_values),
        nullable=True,
        default=LoanStatus.PENDING,
        index=True,
    )
    project_type = Column(String(50), nullable=True)
    has_coborrower = Column(Boolean, nullable=False, default=False)
    amount = Column(Numeric(12, 2), nullable=False)
    rate = Column(Numeric(5, 3), nullable=True)
    monthly_payment = Column(Numeric(12, 2), nullable=True)
    next_action = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    sequestre_status = Column(
        Enum(SequestreStatus, name="sequestre_status", native_enum=False, values_callable=_enum_values),
        nullable=True,
        default=SequestreStatus.PENDING,
    )
    sequestre_amount_expected = Column(Numeric(12, 2), nullable=True)
    sequestre_amount_received = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    documents = relationship("Document", back_populates="loan")
    status_history = relationship(
        "LoanStatusHistory", back_populates="loan", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<LoanApplication(id={self.id}, status='{self.status}')>"


class Document(Base):
    """Document exchanged between a client and the lender."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    loan_id = Column(
        String(36), ForeignKey("loan_applications.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    status = Column(
        Enum(DocumentStatus, name="document_status", native_enum=False, values_callable=_enum_values),
        nullable=True,
        default=DocumentStatus.PENDING,
    )
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    category = Column(String(100), nullable=True)
    direction = Column(
        Enum(DocumentDirection, name="document_direction", native_enum=False, values_callable=_enum_values),
        nullable=True,
        default=DocumentDirection.OUTGOING,
    )
    document_owner = Column(
        Enum(DocumentOwner, name="document_owner", native_enum=False, values_callable=_enum_values),
        nullable=True,
    )
    rejection_reason = Column(Text, nullable=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    validated_by = Column(String(36), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    loan = relationship("LoanApplication", back_populates="documents")

    def __repr__(self):
        return f"<Document(id={self.id}, status='{self.status}')>"


class LoanStatusHistory(Base):
    """Append-only loan status trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "loan_status_history"

    id = Column(String(36), primary_key=True, default=_new_id)
    loan_id = Column(
        String(36), ForeignKey("loan_applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)
    changed_by = Column(String(36), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    next_action = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    loan = relationship("LoanApplication", back_populates="status_history")

    def __repr__(self):
        return f"<LoanStatusHistory(loan_id={self.loan_id}, {self.old_status}->{self.new_status})>"


class DocumentStatusHistory(Base):
    """Append-only document status trail."""

    __tablename__ = "document_status_history"

    id = Column(String(36), primary_key=True, default=_new_id)
    document_id = Column(
        String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    old_status = Column(String(50), nullable=True)
    new_status = Column(String(50), nullable=False)
    changed_by = Column(String(36), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<DocumentStatusHistory(document_id={self.document_id}, {self.old_status}->{self.new_status})>"


class Notification(Base):
    """In-app notification. The recipient owns the ``read`` flag."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        Enum(NotificationType, name="notification_type", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    category = Column(
        Enum(NotificationCategory, name="notification_category", native_enum=False, values_callable=_enum_values),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    related_entity = Column(String(50), nullable=True)
    related_id = Column(String(36), nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(user_id={self.user_id}, type='{self.type}')>"

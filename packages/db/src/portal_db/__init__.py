# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, SessionLocal, get_db
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
from .models import (
    ClientAssignment,
    Document,
    DocumentStatusHistory,
    LoanApplication,
    LoanStatusHistory,
    Notification,
    Profile,
    UserRoleAssignment,
)

__all__ = [
    "Base",
    "SessionLocal",
    "get_db",
    "__version__",
    # Enums
    "LoanStatus",
    "DocumentStatus",
    "SequestreStatus",
    "UserRole",
    "DocumentOwner",
    "DocumentDirection",
    "NotificationCategory",
    "NotificationType",
    # Models
    "ClientAssignment",
    "Document",
    "DocumentStatusHistory",
    "LoanApplication",
    "LoanStatusHistory",
    "Notification",
    "Profile",
    "UserRoleAssignment",
]

# This project was developed with assistance from AI tools.
"""Dependencies and error mapping shared by the lifecycle routes."""

from fastapi import Depends, HTTPException, status
from portal_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..services.repository import LifecycleRepository
from ..services.status_update import (
    InvalidTransitionError,
    PersistenceError,
    StaleStatusError,
    StatusInputError,
    StatusUpdateResult,
    TerminalStatusError,
)

_STATUS_BY_CODE: dict[str, int] = {
    TerminalStatusError.code: status.HTTP_409_CONFLICT,
    StaleStatusError.code: status.HTTP_409_CONFLICT,
    InvalidTransitionError.code: status.HTTP_422_UNPROCESSABLE_CONTENT,
    StatusInputError.code: status.HTTP_422_UNPROCESSABLE_CONTENT,
    PersistenceError.code: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class StatusUpdateHTTPError(HTTPException):
    """HTTPException carrying the orchestrator's error code."""

    def __init__(self, status_code: int, detail: str, code: str | None):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


def get_repository(session: AsyncSession = Depends(get_db)) -> LifecycleRepository:
    return LifecycleRepository(session)


def raise_for_result(result: StatusUpdateResult) -> None:
    """Turn a failed orchestrator result into an HTTP error."""
    if result.success:
        return
    raise StatusUpdateHTTPError(
        _STATUS_BY_CODE.get(result.error_code, status.HTTP_400_BAD_REQUEST),
        result.error or "Status update failed",
        result.error_code,
    )


def ensure_visible(user: UserContext, owner_id: str, noun: str) -> None:
    """Clients only see their own records; others get a 404, not a 403."""
    if not user.is_staff and user.user_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{noun} not found",
        )

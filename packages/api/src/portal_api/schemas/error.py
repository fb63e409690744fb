# This project was developed with assistance from AI tools.
"""RFC 7807 Problem Details error response schema."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Problem Details body returned for every failed request.

    ``code`` carries the status-update error code (``terminal_status``,
    ``stale_status``, ...) when the failure came from an orchestrator.
    """

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(description="Short summary of the HTTP status.")
    status: int = Field(description="HTTP status code.")
    detail: str = Field(default="", description="User-facing explanation.")
    code: str | None = Field(default=None, description="Machine-readable failure code.")
    request_id: str = Field(default="", description="Correlation ID for log lookup.")

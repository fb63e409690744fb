# This project was developed with assistance from AI tools.
"""Transactional email client for the send-email function.

``EmailService.send`` posts ``{"template", "to", "data"}`` to the configured
function endpoint. The ``*_status_email`` builders map a new loan or document
status to the template and template data the function expects; statuses
without an email map to None.

Email delivery is active when EMAIL_FUNCTION_URL is set and degrades to a
logged no-op otherwise. The module exposes a singleton initialised at app
startup via ``init_email_service()``.
"""

import enum
import logging
from dataclasses import dataclass, field

import httpx
from portal_db.enums import DocumentStatus, LoanStatus

from ..core.config import Settings

logger = logging.getLogger(__name__)

# Legal reflection period attached to an issued offer, in days
OFFER_REFLECTION_DAYS = 10


class EmailTemplate(str, enum.Enum):
    LOAN_APPROVED = "loanApproved"
    LOAN_REJECTED = "loanRejected"
    LOAN_OFFER_ISSUED = "loanOfferIssued"
    DOCUMENT_REQUIRED = "documentRequired"
    DOCUMENT_VALIDATED = "documentValidated"
    DOCUMENT_REJECTED = "documentRejected"
    NOTIFICATION = "notification"


class EmailDeliveryError(Exception):
    """Raised when the send-email function rejects or cannot be reached."""


@dataclass(frozen=True)
class EmailMessage:
    template: EmailTemplate
    data: dict = field(default_factory=dict)


class EmailService:
    """Async HTTP client for the send-email function."""

    def __init__(
        self,
        endpoint: str | None,
        *,
        api_key: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    @property
    def enabled(self) -> bool:
        return bool(self._endpoint)

    async def send(self, template: EmailTemplate, to: str, data: dict) -> bool:
        """Send one email. Returns False when delivery is disabled.

        Raises EmailDeliveryError on transport errors and non-2xx responses.
        """
        if not self.enabled:
            logger.info("Email delivery disabled, skipping %s to %s", template.value, to)
            return False

        payload = {"template": template.value, "to": to, "data": data}
        try:
            response = await self._client.post(self._endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(f"send-email unreachable: {exc}") from exc

        if response.is_error:
            raise EmailDeliveryError(
                f"send-email returned {response.status_code} for template {template.value}"
            )

        logger.info("Email %s sent to %s", template.value, to)
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


def _amount(value) -> float:
    if value is None:
        return 0.0
    return float(value)


def _notification(first_name: str, title: str, message: str, cta_text=None, cta_url=None) -> EmailMessage:
    data = {"firstName": first_name, "title": title, "message": message}
    if cta_text:
        data["ctaText"] = cta_text
        data["ctaUrl"] = cta_url
    return EmailMessage(EmailTemplate.NOTIFICATION, data)


def loan_status_email(
    loan,
    new_status: str,
    first_name: str,
    *,
    rejection_reason: str | None = None,
    portal_url: str = "",
) -> EmailMessage | None:
    """Email for a loan entering ``new_status``, or None when there is none."""
    loans_url = f"{portal_url}/loans"
    offer_data = {
        "firstName": first_name,
        "loanId": loan.id,
        "amount": _amount(loan.amount),
        "rate": _amount(loan.rate),
        "monthlyPayment": _amount(loan.monthly_payment),
    }

    if new_status == LoanStatus.APPROVED.value:
        return EmailMessage(EmailTemplate.LOAN_APPROVED, offer_data)
    if new_status == LoanStatus.REJECTED.value:
        return EmailMessage(
            EmailTemplate.LOAN_REJECTED,
            {"firstName": first_name, "loanId": loan.id, "reason": rejection_reason},
        )
    if new_status == LoanStatus.OFFER_ISSUED.value:
        return EmailMessage(
            EmailTemplate.LOAN_OFFER_ISSUED,
            {**offer_data, "reflectionPeriod": OFFER_REFLECTION_DAYS},
        )
    if new_status == LoanStatus.DOCUMENTS_REQUIRED.value:
        return EmailMessage(
            EmailTemplate.DOCUMENT_REQUIRED,
            {
                "firstName": first_name,
                "loanId": loan.id,
                "documents": ["Please check your client area for the list of required documents"],
            },
        )
    if new_status == LoanStatus.UNDER_REVIEW.value:
        return _notification(
            first_name,
            "Your file is under review 🔍",
            "Our team is now analysing your loan file. We will keep you informed of its progress.",
            "View my file",
            loans_url,
        )
    if new_status == LoanStatus.PROCESSING.value:
        return _notification(
            first_name,
            "Your file is being processed ⚙️",
            "Your loan application is being processed by our team. "
            "You will receive an answer very soon.",
            "Track my file",
            loans_url,
        )
    if new_status == LoanStatus.FUNDED.value:
        return _notification(
            first_name,
            "Your financing has been released! 🎉",
            "The funds for your mortgage have been paid out. Congratulations on your new project!",
        )
    return None


def document_status_email(
    document,
    new_status: str,
    first_name: str,
    *,
    rejection_reason: str | None = None,
) -> EmailMessage | None:
    """Email for a document entering ``new_status``, or None when there is none."""
    if new_status == DocumentStatus.VALIDATED.value:
        return EmailMessage(
            EmailTemplate.DOCUMENT_VALIDATED,
            {"firstName": first_name, "documentName": document.file_name},
        )
    if new_status == DocumentStatus.REJECTED.value:
        return EmailMessage(
            EmailTemplate.DOCUMENT_REJECTED,
            {"firstName": first_name, "documentName": document.file_name, "reason": rejection_reason},
        )
    if new_status == DocumentStatus.UNDER_REVIEW.value:
        return _notification(
            first_name,
            "Document under verification 🔍",
            f'Your document "{document.file_name}" is being reviewed by our team.',
        )
    if new_status == DocumentStatus.RECEIVED.value:
        return _notification(
            first_name,
            "Document received 📥",
            f'We have received your document "{document.file_name}". It will be reviewed shortly.',
        )
    return None


def notification_email(first_name: str, title: str, message: str, *, cta_text=None, cta_url=None) -> EmailMessage:
    """Generic notification email used by the automatic triggers."""
    return _notification(first_name, title, message, cta_text, cta_url)


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: EmailService | None = None


def init_email_service(cfg: Settings) -> EmailService:
    """Initialise the singleton (called once from app lifespan)."""
    global _service  # noqa: PLW0603
    _service = EmailService(
        cfg.EMAIL_FUNCTION_URL,
        api_key=cfg.EMAIL_API_KEY,
        timeout=cfg.EMAIL_TIMEOUT_SECONDS,
    )
    return _service


def get_email_service() -> EmailService:
    """Return the initialised EmailService singleton."""
    if _service is None:
        raise RuntimeError("EmailService not initialised -- call init_email_service() first")
    return _service


def log_email_status(cfg: Settings) -> None:
    """Log whether transactional email is active or disabled. Call at startup."""
    if cfg.EMAIL_FUNCTION_URL:
        logger.warning("Transactional email: ACTIVE (endpoint=%s)", cfg.EMAIL_FUNCTION_URL)
    else:
        logger.warning("Transactional email: DISABLED (EMAIL_FUNCTION_URL not configured)")

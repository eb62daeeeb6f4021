"""Email capture on the prelander."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from prelander_funnel.domain.analytics import EnvironmentSnapshot
from prelander_funnel.domain.content import EmailCapture
from prelander_funnel.domain.errors import ConfigNotFoundError, InvalidEmailError
from prelander_funnel.services.prelander import PrelanderResolver

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_logger = logging.getLogger(__name__)


class EmailCaptureRepository(Protocol):
    """Persistence interface for captured emails."""

    def create_capture(  # noqa: PLR0913
        self,
        email: str,
        web_result_id: UUID,
        session_id: str | None,
        environment: EnvironmentSnapshot,
        redirected_to: str,
    ) -> None:
        """Insert a captured email."""

    def list_captures(self) -> list[EmailCapture]:
        """Return captured emails, newest first."""


@dataclass
class EmailCaptureService:
    """Validates and stores emails, then hands back the offer destination."""

    repository: EmailCaptureRepository
    resolver: PrelanderResolver

    def capture(
        self,
        offer_id: UUID,
        email: str,
        session_id: str | None,
        environment: EnvironmentSnapshot,
    ) -> str:
        """Store the email and return the URL to redirect to."""
        normalized = normalize_email(email)
        offer = self.resolver.get_offer(offer_id)
        if offer is None:
            raise ConfigNotFoundError(str(offer_id))
        try:
            self.repository.create_capture(
                email=normalized,
                web_result_id=offer.id,
                session_id=session_id,
                environment=environment,
                redirected_to=offer.original_link,
            )
        except Exception:
            _logger.exception("Failed to store email capture for offer %s", offer.id)
        return offer.original_link


def normalize_email(email: str) -> str:
    """Trim and lowercase an email, rejecting malformed input."""
    cleaned = email.strip().lower()
    if not _EMAIL_PATTERN.match(cleaned):
        raise InvalidEmailError("Please enter a valid email address")
    return cleaned

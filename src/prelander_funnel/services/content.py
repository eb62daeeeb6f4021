"""Public landing and results content."""

from dataclasses import dataclass
from typing import Protocol

from prelander_funnel.domain.analytics import UNKNOWN_COUNTRY
from prelander_funnel.domain.content import (
    Category,
    LandingContent,
    ResultsPage,
    WebResult,
)

DEFAULT_LANDING = LandingContent(
    title="Welcome to Minglemoody",
    description="Discover the best platforms for connecting with people worldwide.",
)
SELECTED_COUNTRIES = "selected_countries"


class ContentRepository(Protocol):
    """Read access to landing content, categories and web results."""

    def get_latest_landing(self) -> LandingContent | None:
        """Return the most recently created landing copy."""

    def list_categories(self) -> list[Category]:
        """Return categories ordered by serial number."""

    def list_web_results(self, webresult_page: str) -> list[WebResult]:
        """Return results for a page key ordered by serial number."""


@dataclass
class ContentService:
    """Assembles the landing and results pages."""

    repository: ContentRepository

    def get_landing(self) -> LandingContent:
        """Return the landing copy, or the built-in default."""
        return self.repository.get_latest_landing() or DEFAULT_LANDING

    def list_categories(self) -> list[Category]:
        """Return related searches in display order."""
        return sorted(
            self.repository.list_categories(), key=lambda item: item.serial_number
        )

    def list_results(self, webresult_page: str, country: str | None) -> ResultsPage:
        """Return visible results for a page, split by sponsorship."""
        results = sorted(
            self.repository.list_web_results(webresult_page),
            key=lambda item: item.serial_number,
        )
        visible = [result for result in results if is_visible_in(result, country)]
        return ResultsPage(
            sponsored=[result for result in visible if result.is_sponsored],
            regular=[result for result in visible if not result.is_sponsored],
        )


def is_visible_in(result: WebResult, country: str | None) -> bool:
    """Apply the result's country access rule."""
    if result.access_type != SELECTED_COUNTRIES:
        return True
    if not country or country == UNKNOWN_COUNTRY:
        return False
    allowed = {name.lower() for name in result.allowed_countries}
    return country.lower() in allowed

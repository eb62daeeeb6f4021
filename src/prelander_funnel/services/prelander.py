"""Prelander configuration resolution."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from prelander_funnel.domain.errors import ConfigNotFoundError
from prelander_funnel.domain.prelander import (
    IMAGE_RATIOS,
    LOGO_POSITIONS,
    TEXT_ALIGNMENTS,
    OfferRecord,
    PrelanderConfig,
    PrelanderPage,
    default_config,
    default_config_for_offer,
)

_logger = logging.getLogger(__name__)


class PrelanderRepository(Protocol):
    """Read access to prelander configs and the offers that link them."""

    def get_active_config(self, page_key: str) -> dict[str, object] | None:
        """Return the active config row for a page key, if present."""

    def get_offer(self, offer_id: UUID) -> OfferRecord | None:
        """Return an offer by id, if present."""


@dataclass
class PrelanderResolver:
    """Decides which configuration drives a prelander.

    Resolution fails closed: a missing or inactive config raises
    ``ConfigNotFoundError`` and the caller picks the default rendering.
    """

    repository: PrelanderRepository

    def resolve_config(self, identifier: str | None) -> PrelanderConfig:
        """Resolve a page key or an offer id."""
        cleaned = (identifier or "").strip()
        if not cleaned:
            raise ConfigNotFoundError("empty prelander identifier")
        offer_id = parse_offer_id(cleaned)
        if offer_id is not None:
            return self.resolve_by_offer(offer_id)
        return self.resolve_by_key(cleaned)

    def resolve_by_key(self, page_key: str) -> PrelanderConfig:
        """Return the active config stored under a page key."""
        try:
            row = self.repository.get_active_config(page_key)
        except Exception as exc:
            _logger.exception("Prelander lookup failed for key %s", page_key)
            raise ConfigNotFoundError(page_key) from exc
        if row is None:
            raise ConfigNotFoundError(page_key)
        return parse_config(row)

    def resolve_by_offer(self, offer_id: UUID) -> PrelanderConfig:
        """Follow an offer's linked page key to its config."""
        offer = self.get_offer(offer_id)
        if offer is None or not offer.pre_landing_page_key:
            raise ConfigNotFoundError(str(offer_id))
        return self.resolve_by_key(offer.pre_landing_page_key)

    def get_offer(self, offer_id: UUID) -> OfferRecord | None:
        """Return the offer, treating lookup failures as absence."""
        try:
            return self.repository.get_offer(offer_id)
        except Exception:
            _logger.exception("Offer lookup failed for %s", offer_id)
            return None


@dataclass
class PrelanderPageService:
    """Builds the visitor-facing prelander, falling back to a default layout."""

    resolver: PrelanderResolver

    def render(self, identifier: str | None) -> PrelanderPage:
        """Return the page for an identifier or raise if nothing resolves."""
        offer_id = parse_offer_id((identifier or "").strip())
        if offer_id is None:
            config = self.resolver.resolve_config(identifier)
            return PrelanderPage(
                config=config,
                destination_url=config.target_url,
                offer_id=None,
                is_default=False,
            )
        offer = self.resolver.get_offer(offer_id)
        if offer is None:
            raise ConfigNotFoundError(str(offer_id))
        try:
            if not offer.pre_landing_page_key:
                raise ConfigNotFoundError(str(offer_id))
            config = self.resolver.resolve_by_key(offer.pre_landing_page_key)
        except ConfigNotFoundError:
            _logger.info("No prelander config for offer %s, using default", offer.id)
            return PrelanderPage(
                config=default_config_for_offer(offer),
                destination_url=offer.original_link,
                offer_id=offer.id,
                is_default=True,
            )
        return PrelanderPage(
            config=config,
            destination_url=offer.original_link or config.target_url,
            offer_id=offer.id,
            is_default=False,
        )


def parse_offer_id(identifier: str) -> UUID | None:
    """Return the identifier as a UUID when it is shaped like one."""
    try:
        return UUID(identifier)
    except ValueError:
        return None


def parse_config(row: dict[str, object]) -> PrelanderConfig:
    """Normalize a raw config row into a fully typed config."""
    fallback = default_config()
    return PrelanderConfig(
        page_key=_optional_str(row.get("page_key")),
        headline=_optional_str(row.get("headline")) or fallback.headline,
        description=_optional_str(row.get("description")) or "",
        cta_text=_optional_str(row.get("cta_text")) or fallback.cta_text,
        headline_color=_optional_str(row.get("headline_color"))
        or fallback.headline_color,
        description_color=_optional_str(row.get("description_color"))
        or fallback.description_color,
        cta_color=_optional_str(row.get("cta_color")) or fallback.cta_color,
        headline_font_size=_as_int(
            row.get("headline_font_size"), fallback.headline_font_size
        ),
        description_font_size=_as_int(
            row.get("description_font_size"), fallback.description_font_size
        ),
        headline_align=_choice(
            row.get("headline_align"), TEXT_ALIGNMENTS, fallback.headline_align
        ),
        background_color=_optional_str(row.get("background_color"))
        or fallback.background_color,
        background_image_url=_optional_str(row.get("background_image_url")),
        logo_url=_optional_str(row.get("logo_url")),
        logo_position=_choice(
            row.get("logo_position"), LOGO_POSITIONS, fallback.logo_position
        ),
        logo_size=_as_int(row.get("logo_size"), fallback.logo_size),
        main_image_url=_optional_str(row.get("main_image_url")),
        image_ratio=_choice(row.get("image_ratio"), IMAGE_RATIOS, fallback.image_ratio),
        target_url=_optional_str(row.get("target_url")),
    )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
    if not isinstance(value, int | float | str):
        return default
    try:
        # float() accepts "inf" and "nan", which int() then rejects.
        return int(float(value))
    except (OverflowError, ValueError):
        return default


def _choice(value: object, allowed: tuple[str, ...], default: str) -> str:
    text = _optional_str(value)
    return text if text in allowed else default

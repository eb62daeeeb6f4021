"""Domain models for prelander pages."""

from dataclasses import dataclass
from uuid import UUID

LOGO_POSITIONS = ("top-left", "top-center")
IMAGE_RATIOS = ("16:9", "1:1", "4:3")
TEXT_ALIGNMENTS = ("left", "center", "right")


@dataclass(frozen=True)
class PrelanderConfig:
    """Fully typed layout and copy for a prelander page."""

    page_key: str | None
    headline: str
    description: str
    cta_text: str
    headline_color: str
    description_color: str
    cta_color: str
    headline_font_size: int
    description_font_size: int
    headline_align: str
    background_color: str
    background_image_url: str | None
    logo_url: str | None
    logo_position: str
    logo_size: int
    main_image_url: str | None
    image_ratio: str
    target_url: str | None = None

    @property
    def background_mode(self) -> str:
        """Return ``image`` when a background image is set, else ``color``."""
        return "image" if self.background_image_url else "color"


@dataclass(frozen=True)
class OfferRecord:
    """Web result row as seen by the prelander."""

    id: UUID
    title: str
    description: str
    original_link: str
    offer_name: str | None
    logo_url: str | None
    pre_landing_page_key: str | None


@dataclass(frozen=True)
class PrelanderPage:
    """What the renderer needs to draw a prelander."""

    config: PrelanderConfig
    destination_url: str | None
    offer_id: UUID | None
    is_default: bool


DEFAULT_HEADLINE = "Your Headline Here"
DEFAULT_DESCRIPTION = (
    "Your description goes here. Tell your visitors what makes your offer special."
)


def default_config(
    headline: str = DEFAULT_HEADLINE,
    description: str = DEFAULT_DESCRIPTION,
    logo_url: str | None = None,
) -> PrelanderConfig:
    """Return the builder's default layout with the given copy."""
    return PrelanderConfig(
        page_key=None,
        headline=headline,
        description=description,
        cta_text="Continue to Offer",
        headline_color="#ffffff",
        description_color="#e5e5e5",
        cta_color="#00ffff",
        headline_font_size=48,
        description_font_size=18,
        headline_align="center",
        background_color="#0a0a0a",
        background_image_url=None,
        logo_url=logo_url,
        logo_position="top-center",
        logo_size=120,
        main_image_url=None,
        image_ratio="16:9",
    )


def default_config_for_offer(offer: OfferRecord) -> PrelanderConfig:
    """Build the fallback layout from the offer's own fields."""
    return default_config(
        headline=offer.offer_name or offer.title,
        description=offer.description,
        logo_url=offer.logo_url or None,
    )

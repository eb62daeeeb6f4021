"""Pydantic models for tracking and prelander payloads."""

from pydantic import BaseModel, Field

from prelander_funnel.domain.analytics import ClickType
from prelander_funnel.services.time_spent import LifecycleEvent


class PageViewRequest(BaseModel):
    """Page view payload."""

    source: str
    session_id: str | None = None


class ClickRequest(BaseModel):
    """Click payload sent before the browser navigates away."""

    type: ClickType
    label: str | None = None
    destination_url: str | None = None
    session_id: str | None = None


class TimeSpentRequest(BaseModel):
    """Lifecycle signal from the page."""

    event: LifecycleEvent = LifecycleEvent.HEARTBEAT
    session_id: str | None = None


class EmailCaptureRequest(BaseModel):
    """Email submitted on a prelander."""

    email: str
    session_id: str | None = None


class PrelanderConfigPayload(BaseModel):
    """Builder payload for a prelander config."""

    headline: str = Field(min_length=1)
    description: str | None = None
    cta_text: str = "Visit Now"
    target_url: str = Field(min_length=1)
    headline_color: str | None = None
    description_color: str | None = None
    cta_color: str | None = None
    headline_font_size: int | None = None
    description_font_size: int | None = None
    headline_align: str | None = None
    background_color: str = "#ffffff"
    background_image_url: str | None = None
    logo_url: str | None = None
    logo_position: str = "top-center"
    logo_size: int | None = None
    main_image_url: str | None = None
    image_ratio: str | None = None

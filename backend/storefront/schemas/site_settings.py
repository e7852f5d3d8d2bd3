"""Pydantic schemas for the editable home/about content."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HomeSettings(BaseModel):
    hero_image: str = ""
    hero_title: str = ""
    hero_subtitle: str = ""
    featured_product_ids: list[str] = []
    collage_images: list[str] = []  # the home collage expects 9 images


class HomeSettingsUpdate(BaseModel):
    hero_image: Optional[str] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    featured_product_ids: Optional[list[str]] = None
    collage_images: Optional[list[str]] = None


class AboutSettings(BaseModel):
    founder_image: str = ""
    founder_quote: str = ""
    collage_images: list[str] = []  # the about collage expects 4 images
    flagship_image: str = ""


class AboutSettingsUpdate(BaseModel):
    founder_image: Optional[str] = None
    founder_quote: Optional[str] = None
    collage_images: Optional[list[str]] = None
    flagship_image: Optional[str] = None


class HomeSettingsResponse(HomeSettings):
    updated_at: Optional[datetime] = None


class AboutSettingsResponse(AboutSettings):
    updated_at: Optional[datetime] = None


class HomeSettingsEnvelope(BaseModel):
    settings: HomeSettingsResponse


class AboutSettingsEnvelope(BaseModel):
    settings: AboutSettingsResponse


class HomeSettingsUpdateResponse(BaseModel):
    message: str
    settings: HomeSettingsResponse


class AboutSettingsUpdateResponse(BaseModel):
    message: str
    settings: AboutSettingsResponse

"""Mobile app configuration documents: ads, RSS schedule and app version."""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

HH_MM_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"


class AdProviderEnum(str, Enum):
    """Who serves an ad slot."""
    ADMOB = "admob"
    CUSTOM = "custom"
    NONE = "none"


class AdPositionConfig(BaseModel):
    """One ad slot in the app."""
    model_config = ConfigDict(use_enum_values=True)

    enabled: bool = False
    provider: AdProviderEnum = AdProviderEnum.NONE
    unit_id: Optional[str] = None
    custom_image_url: Optional[str] = None
    custom_link_url: Optional[str] = None


class AppAdConfig(BaseModel):
    """Ad switches for every slot, stored as ``system_ads/config``."""
    global_enabled: bool = False
    banner: AdPositionConfig = Field(default_factory=AdPositionConfig)
    native: AdPositionConfig = Field(default_factory=AdPositionConfig)
    interstitial: AdPositionConfig = Field(default_factory=AdPositionConfig)
    last_updated: Optional[datetime] = None


class RssSettingsModel(BaseModel):
    """RSS ingestion schedule and counters, stored as ``system_stats/rss_settings``."""
    update_interval_minutes: int = Field(default=30, ge=1, le=1440)
    start_time: str = Field(default="06:00", pattern=HH_MM_PATTERN)
    total_posts_today: int = 0
    cron_requests_count: int = 0


class AppVersionConfig(BaseModel):
    """Latest published app build, stored as ``app_config/version``."""
    latest_version: str = Field(..., min_length=1)
    force_update: bool = False
    update_message: str = ""
    play_store_url: str = ""
    last_updated: Optional[datetime] = None

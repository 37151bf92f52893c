# Models module
from .article import NewsArticleModel, SummaryStatusEnum
from .category import CategoryModel
from .app_config import (
    AdProviderEnum,
    AdPositionConfig,
    AppAdConfig,
    RssSettingsModel,
    AppVersionConfig
)
from .provider import (
    AiProviderModel,
    ProviderKindEnum,
    ProviderCategoryEnum,
    ProviderStatusEnum,
    HealthStatusEnum
)

__all__ = [
    "NewsArticleModel",
    "SummaryStatusEnum",
    "CategoryModel",
    "AdProviderEnum",
    "AdPositionConfig",
    "AppAdConfig",
    "RssSettingsModel",
    "AppVersionConfig",
    "AiProviderModel",
    "ProviderKindEnum",
    "ProviderCategoryEnum",
    "ProviderStatusEnum",
    "HealthStatusEnum"
]

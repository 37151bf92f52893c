# Routes module
from .news import router as news_router
from .cron import router as cron_router
from .categories import router as categories_router
from .providers import router as providers_router
from .app_config import router as app_config_router

__all__ = ["news_router", "cron_router", "categories_router", "providers_router", "app_config_router"]

"""Mobile app configuration routes: ad slots, RSS schedule and app version."""
import logging
from typing import Any, Dict
from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.auth import AdminPrincipal
from api.dependencies import require_admin
from api.models.app_config import AppAdConfig, AppVersionConfig, RssSettingsModel
from api.schemas.requests import RssScheduleRequest
from database.connection import get_db
from database.repositories.app_config_repo import AppConfigRepository
from shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/app-config", tags=["app-config"])

NO_STORE = {"Cache-Control": "no-store, max-age=0"}


@router.get("/ads")
async def get_ads(response: Response, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Ad config for the app. Any failure still answers with ads switched off."""
    try:
        stored = await AppConfigRepository(db).get_ads()
        config = AppAdConfig.model_validate(stored) if stored else AppAdConfig()
    except Exception:
        logger.exception("Failed to load ad config")
        return JSONResponse(status_code=500, content=AppAdConfig().model_dump(mode="json"), headers=NO_STORE)

    response.headers["Cache-Control"] = NO_STORE["Cache-Control"]
    return config.model_dump(mode="json")


@router.put("/ads")
async def save_ads(
    config: AppAdConfig,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Dict[str, Any]:
    saved = await AppConfigRepository(db).save_ads(config.model_dump(exclude={"last_updated"}))
    logger.info(f"Ad config updated by {admin.email} (global_enabled={config.global_enabled})")
    return AppAdConfig.model_validate(saved).model_dump(mode="json")


@router.get("/rss")
async def get_rss_settings(response: Response, db: AsyncIOMotorDatabase = Depends(get_db)):
    """RSS schedule and today's counters, with defaults for anything unset."""
    try:
        stored = await AppConfigRepository(db).get_rss_settings() or {}
        rss = RssSettingsModel.model_validate({k: v for k, v in stored.items() if v is not None})
    except Exception:
        logger.exception("Failed to load RSS settings")
        return JSONResponse(status_code=500, content=RssSettingsModel().model_dump(), headers=NO_STORE)

    response.headers["Cache-Control"] = NO_STORE["Cache-Control"]
    return rss.model_dump()


@router.post("/rss")
async def update_rss_schedule(
    request: RssScheduleRequest,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Dict[str, Any]:
    """Change how often RSS ingestion runs and when the first run of the day starts."""
    start_time = request.start_time or RssSettingsModel().start_time
    await AppConfigRepository(db).update_rss_schedule(request.update_interval_minutes, start_time)
    logger.info(f"RSS schedule set to every {request.update_interval_minutes} minutes from {start_time}")
    return {
        "success": True,
        "update_interval_minutes": request.update_interval_minutes,
        "start_time": start_time,
        "message": "RSS update interval updated successfully"
    }


@router.get("/version")
async def get_version(response: Response, db: AsyncIOMotorDatabase = Depends(get_db)) -> Dict[str, Any]:
    stored = await AppConfigRepository(db).get_version()
    if stored is None:
        raise NotFoundError("App version not configured")

    response.headers["Cache-Control"] = NO_STORE["Cache-Control"]
    return AppVersionConfig.model_validate(stored).model_dump(mode="json")


@router.put("/version")
async def save_version(
    config: AppVersionConfig,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Dict[str, Any]:
    """Publish a new app version; ``force_update`` blocks older builds."""
    saved = await AppConfigRepository(db).save_version(config.model_dump(exclude={"last_updated"}))
    logger.info(f"App version set to {config.latest_version} (force_update={config.force_update}) by {admin.email}")
    return AppVersionConfig.model_validate(saved).model_dump(mode="json")

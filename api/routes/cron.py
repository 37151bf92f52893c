"""Scheduled-job routes."""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_provider_health_service, get_summary_service, require_cron_secret
from api.services.provider_health import ProviderHealthService
from api.services.summarizer import SummaryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/ai-health")
async def ai_health(
    service: ProviderHealthService = Depends(get_provider_health_service)
):
    """
    AI provider health check.

    1. Tests all in-rotation providers and records their status
    2. Re-tests paused/offline providers whose cool-down has elapsed
    3. Invalidates the provider cache
    """
    logger.info("AI health check: starting")
    try:
        return await service.run_health_check()
    except Exception as e:
        logger.exception("AI health check failed")
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@router.get("/ai-summary", dependencies=[Depends(require_cron_secret)])
async def ai_summary(
    service: SummaryService = Depends(get_summary_service)
):
    """Summarize the oldest article still waiting for one."""
    try:
        result = await service.summarize_next()
    except Exception as e:
        logger.exception("AI summary run failed")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return result.to_dict()

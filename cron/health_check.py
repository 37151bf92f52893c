"""Run one AI provider health check outside the API process."""
import asyncio
import json
import logging
import sys

from api.services.provider_health import ProviderHealthService
from api.services.publisher import ProviderEventPublisher
from database.connection import DatabaseConnection
from shared.config import settings

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main() -> int:
    """Main entry point for the scheduled health check."""
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    service = ProviderHealthService(db, ProviderEventPublisher(redis_client))

    try:
        report = await asyncio.wait_for(
            service.run_health_check(),
            timeout=settings.health_check_max_duration_seconds + 5
        )
    except asyncio.TimeoutError:
        logger.error("Health check exceeded its time budget")
        return 1
    finally:
        await DatabaseConnection.close_connections()

    print(json.dumps(report, indent=2, default=str))
    failed = [row for row in report["activeProviders"] if row["status"] != "online"]
    logger.info(
        f"Health check complete: {len(report['activeProviders']) - len(failed)} online, "
        f"{len(failed)} not online, {len(report['recovery']['recovered'])} recovered"
    )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

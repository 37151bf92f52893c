"""Process-wide cache of the active provider list.

The cache is keyed by a monotonic generation counter. A fetch captures the
generation before it reads the store and keeps its snapshot only if no
invalidation happened in the meantime.
"""
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional
from pydantic import ValidationError

from api.models.provider import AiProviderModel
from database.repositories.provider_repo import ProviderRepository
from shared.config import settings
from shared.utils import ensure_utc, get_utc_now

logger = logging.getLogger(__name__)


def is_paused(provider: AiProviderModel, now: datetime) -> bool:
    paused_until = ensure_utc(provider.paused_until)
    return paused_until is not None and paused_until > now


def select_active(
    providers: List[AiProviderModel],
    now: Optional[datetime] = None,
    min_health_score: Optional[int] = None
) -> List[AiProviderModel]:
    """Enabled, unpaused, healthy-enough providers in failover order."""
    now = now or get_utc_now()
    if min_health_score is None:
        min_health_score = settings.provider_min_health_score

    active = [
        p for p in providers
        if p.enabled and not is_paused(p, now) and p.health_score >= min_health_score
    ]
    return sorted(active, key=lambda p: (p.priority, -p.health_score))


class ProviderCache:
    """Snapshot of enabled providers, dropped on invalidation or TTL expiry."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = settings.provider_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._generation = 0
        self._snapshot: Optional[List[AiProviderModel]] = None
        self._snapshot_generation = -1
        self._expires_at = 0.0

    @property
    def generation(self) -> int:
        return self._generation

    def invalidate(self):
        """Drop the snapshot; in-flight fetches will not repopulate it."""
        self._generation += 1
        self._snapshot = None
        logger.debug(f"Provider cache invalidated (generation {self._generation})")

    def _fresh_snapshot(self) -> Optional[List[AiProviderModel]]:
        if (
            self._snapshot is not None
            and self._snapshot_generation == self._generation
            and self._clock() < self._expires_at
        ):
            return self._snapshot
        return None

    async def get_providers(self, repo: ProviderRepository) -> List[AiProviderModel]:
        """All enabled providers, from the snapshot when it is fresh."""
        snapshot = self._fresh_snapshot()
        if snapshot is not None:
            return snapshot

        generation = self._generation
        providers = []
        for doc in await repo.list_enabled():
            try:
                providers.append(AiProviderModel.model_validate(doc))
            except ValidationError as e:
                logger.warning(f"Skipping malformed provider {doc.get('_id')}: {e}")

        if generation == self._generation:
            self._snapshot = providers
            self._snapshot_generation = generation
            self._expires_at = self._clock() + self.ttl_seconds
        return providers

    async def get_active(
        self,
        repo: ProviderRepository,
        now: Optional[datetime] = None
    ) -> List[AiProviderModel]:
        """Providers eligible for selection right now, in failover order."""
        # Pause gates are checked on every read, not at snapshot time
        return select_active(await self.get_providers(repo), now)


provider_cache = ProviderCache()

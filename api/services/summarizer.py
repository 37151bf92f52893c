"""Background summaries for ingested news, one article per run."""
import json
import logging
import re
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple

from api.models.article import SummaryStatusEnum
from database.repositories.news_repo import NEWS, NewsRepository
from database.transaction import DocumentStore, TransactionHandle
from engine.gateway import ProviderGateway
from shared.utils import get_utc_now

logger = logging.getLogger(__name__)

BANGLA_PATTERN = re.compile("[ঀ-৿]")
FENCE_PATTERN = re.compile(r"```(?:json)?")

BANGLA_SYSTEM_PROMPT = (
    "You are a professional Bangla news editor. Summarize this news in Bangla (max 100 words). "
    'Neutral tone. JSON output: { "summary": "...", "category": "..." }'
)
ENGLISH_SYSTEM_PROMPT = (
    "Translate and summarize this English news to Bangla (max 100 words). "
    'Neutral tone. JSON output: { "summary": "...", "category": "..." }'
)

MAX_SOURCE_CHARS = 6000
MAX_FALLBACK_CHARS = 500


@dataclass
class SummaryRunResult:
    """Outcome of one summary run."""
    status: str
    message: Optional[str] = None
    article_id: Optional[str] = None
    provider: Optional[str] = None
    duration: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def is_bangla(text: str) -> bool:
    return bool(BANGLA_PATTERN.search(text or ""))


def build_prompts(article: Dict[str, Any]) -> Tuple[str, str]:
    """System and user prompt for an article, picked by the article's language."""
    source = article.get("content") or article.get("summary") or ""
    system_prompt = BANGLA_SYSTEM_PROMPT if is_bangla(source) else ENGLISH_SYSTEM_PROMPT
    return system_prompt, "News:\n" + source[:MAX_SOURCE_CHARS]


def parse_summary(content: str) -> Tuple[str, Optional[str]]:
    """
    Read ``{"summary", "category"}`` out of a model reply.

    Code fences are stripped first. A reply that is not that JSON object is
    kept as the summary itself, truncated.
    """
    cleaned = FENCE_PATTERN.sub("", content).strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        parsed = None

    if isinstance(parsed, dict) and isinstance(parsed.get("summary"), str) and parsed["summary"].strip():
        category = parsed.get("category")
        return parsed["summary"].strip(), category.strip() if isinstance(category, str) and category.strip() else None

    return content.strip()[:MAX_FALLBACK_CHARS], None


class SummaryService:
    """Summarizes the oldest pending article through the provider gateway."""

    def __init__(self, store: DocumentStore, gateway: ProviderGateway):
        self.store = store
        self.gateway = gateway
        self.news_repo = NewsRepository(store.db)

    async def summarize_next(self) -> SummaryRunResult:
        article = await self.news_repo.get_oldest_pending_summary()
        if article is None:
            return SummaryRunResult(status="idle", message="No pending summaries")

        article_id = article["_id"]
        system_prompt, prompt = build_prompts(article)
        start = time.monotonic()
        result = await self.gateway.generate(prompt, system_prompt, feature="async_summary")
        duration_ms = int((time.monotonic() - start) * 1000)

        if result is None:
            await self._write(article_id, {
                "summary_status": SummaryStatusEnum.FAILED.value,
                "ai_generated_at": get_utc_now()
            })
            logger.warning(f"Summary for article {article_id} failed on every provider")
            return SummaryRunResult(status="failed", message="AI generation failed", article_id=article_id)

        summary, category = parse_summary(result.content)
        fields = {
            "summary": summary,
            "summary_status": SummaryStatusEnum.COMPLETED.value,
            "ai_category": category,
            "ai_provider_id": result.provider_id,
            "ai_model": result.model_used,
            "ai_generated_at": get_utc_now()
        }
        await self._write(article_id, fields, category)
        logger.info(f"Summary for article {article_id} written by {result.provider_used} in {duration_ms}ms")
        return SummaryRunResult(
            status="success",
            article_id=article_id,
            provider=result.provider_used,
            duration=duration_ms
        )

    async def _write(self, article_id: str, fields: Dict[str, Any], category: Optional[str] = None) -> bool:
        """Apply the run's fields unless the article left the pending queue meanwhile."""

        async def write(txn: TransactionHandle) -> bool:
            article = await txn.get(NEWS, article_id)
            if article is None or article.get("summary_status") != SummaryStatusEnum.PENDING.value:
                return False

            update = dict(fields)
            # Category counters follow published articles, so only an
            # unpublished, uncategorized article takes the suggested name
            if category and article.get("published_at") is None and not article.get("categoryId"):
                update["category"] = category
            txn.update(NEWS, article_id, update)
            return True

        written = await self.store.run_transaction(write)
        if not written:
            logger.info(f"Article {article_id} left the summary queue before its result was stored")
        return written

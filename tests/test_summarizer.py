"""Background summary service tests."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from api.services.summarizer import (
    BANGLA_SYSTEM_PROMPT,
    ENGLISH_SYSTEM_PROMPT,
    SummaryService,
    build_prompts,
    parse_summary
)
from engine.gateway import GenerationResult


def generated(content: str) -> GenerationResult:
    return GenerationResult(
        content=content,
        provider_used="Provider P1",
        model_used="test-model",
        execution_time_ms=850,
        estimated_tokens=120,
        provider_id="P1"
    )


def pending_article(article_id: str, hour: int, **overrides):
    article = {
        "_id": article_id,
        "title": "Feed item",
        "summary": "Short teaser",
        "content": "Dhaka traffic eased on Sunday after the new flyover opened.",
        "source_url": f"https://example.com/{article_id}",
        "category": None,
        "categoryId": None,
        "published_at": None,
        "summary_status": "pending",
        "created_at": datetime(2024, 2, 4, hour, tzinfo=timezone.utc)
    }
    article.update(overrides)
    return article


@pytest.fixture
def gateway():
    gateway = AsyncMock()
    gateway.generate = AsyncMock(return_value=generated('{"summary": "সংক্ষিপ্ত খবর", "category": "জাতীয়"}'))
    return gateway


class TestPromptsAndParsing:
    """Tests for build_prompts and parse_summary."""

    def test_english_source_is_translated(self):
        system_prompt, prompt = build_prompts(pending_article("A1", 1))

        assert system_prompt == ENGLISH_SYSTEM_PROMPT
        assert prompt == "News:\nDhaka traffic eased on Sunday after the new flyover opened."

    def test_bangla_source_and_summary_fallback(self):
        article = pending_article("A1", 1, content="", summary="ঢাকায় যানজট কমেছে")

        system_prompt, prompt = build_prompts(article)

        assert system_prompt == BANGLA_SYSTEM_PROMPT
        assert prompt.endswith("ঢাকায় যানজট কমেছে")

    def test_source_truncated(self):
        _, prompt = build_prompts(pending_article("A1", 1, content="x" * 7000))

        assert len(prompt) == len("News:\n") + 6000

    def test_fenced_json(self):
        content = '```json\n{"summary": "খবর", "category": "খেলা"}\n```'

        assert parse_summary(content) == ("খবর", "খেলা")

    def test_plain_text_kept_truncated(self):
        summary, category = parse_summary("  " + "ক" * 600)

        assert summary == "ক" * 500
        assert category is None

    def test_json_without_summary_kept_as_text(self):
        assert parse_summary('{"category": "খেলা"}') == ('{"category": "খেলা"}', None)


class TestSummaryService:
    """Tests for SummaryService.summarize_next."""

    @pytest.mark.asyncio
    async def test_idle_when_queue_empty(self, store, gateway):
        result = await SummaryService(store, gateway).summarize_next()

        assert result.to_dict() == {"status": "idle", "message": "No pending summaries"}
        gateway.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oldest_pending_summarized(self, store, fake_db, gateway):
        fake_db.news.seed(pending_article("A2", 9))
        fake_db.news.seed(pending_article("A1", 8))
        fake_db.news.seed(pending_article("DONE", 7, summary_status="completed"))

        result = await SummaryService(store, gateway).summarize_next()

        assert result.status == "success"
        assert result.article_id == "A1"
        assert result.provider == "Provider P1"
        assert gateway.generate.await_args.kwargs["feature"] == "async_summary"

        article = fake_db.news.raw("A1")
        assert article["summary"] == "সংক্ষিপ্ত খবর"
        assert article["summary_status"] == "completed"
        assert article["ai_provider_id"] == "P1"
        assert article["ai_model"] == "test-model"
        assert article["ai_category"] == "জাতীয়"
        assert article["category"] == "জাতীয়"
        assert fake_db.news.raw("A2")["summary_status"] == "pending"

    @pytest.mark.asyncio
    async def test_assigned_category_left_alone(self, store, fake_db, gateway, sample_category):
        fake_db.categories.seed(sample_category)
        fake_db.news.seed(pending_article("A1", 8, category="খেলাধুলা", categoryId="C1"))

        await SummaryService(store, gateway).summarize_next()

        article = fake_db.news.raw("A1")
        assert article["category"] == "খেলাধুলা"
        assert article["ai_category"] == "জাতীয়"
        assert fake_db.categories.raw("C1")["postCount"] == 3

    @pytest.mark.asyncio
    async def test_all_providers_failing_marks_failed(self, store, fake_db, gateway):
        fake_db.news.seed(pending_article("A1", 8))
        gateway.generate.return_value = None

        result = await SummaryService(store, gateway).summarize_next()

        assert result.to_dict() == {"status": "failed", "message": "AI generation failed", "article_id": "A1"}
        article = fake_db.news.raw("A1")
        assert article["summary_status"] == "failed"
        assert article["ai_generated_at"] is not None
        assert article["summary"] == "Short teaser"

    @pytest.mark.asyncio
    async def test_article_leaving_queue_not_overwritten(self, store, fake_db, gateway):
        """An article deleted while its summary was generating stays deleted."""
        fake_db.news.seed(pending_article("A1", 8))

        async def generate_then_delete(*args, **kwargs):
            del fake_db.news.docs["A1"]
            return generated('{"summary": "খবর"}')

        gateway.generate.side_effect = generate_then_delete

        result = await SummaryService(store, gateway).summarize_next()

        assert result.status == "success"
        assert fake_db.news.raw("A1") is None

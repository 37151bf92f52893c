"""Publish-state transitions for news articles.

A category's ``postCount`` equals the number of its articles with a non-null
``published_at``. Every change to ``published_at`` and the matching counter
change are written in the same transaction.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from database.repositories.category_repo import CategoryRepository, resolve_category_ref
from database.repositories.news_repo import NEWS, build_article
from database.transaction import DocumentStore, TransactionHandle
from shared.exceptions import ConflictError
from shared.utils import get_utc_now, url_hash

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    """What a publish-state call did."""
    found: bool
    changed: bool
    category_adjusted: bool = False


class PublishStateService:
    """Publishes, unpublishes, creates and deletes articles with their category counts."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.category_repo = CategoryRepository(store.db)

    async def set_publish_state(self, article_id: str, desired_published: bool) -> TransitionResult:
        """
        Move an article to the desired publish state.

        Repeating a call with the same desired state writes nothing. A missing
        article is a no-op, reported through ``found=False``.
        """

        async def transition(txn: TransactionHandle) -> TransitionResult:
            article = await txn.get(NEWS, article_id)
            if article is None:
                return TransitionResult(found=False, changed=False)

            currently_published = article.get("published_at") is not None
            if desired_published == currently_published:
                return TransitionResult(found=True, changed=False)

            delta = 1 if desired_published else -1
            adjusted = await self.category_repo.adjust_count(resolve_category_ref(article), delta, txn)
            txn.update(NEWS, article_id, {
                "published_at": get_utc_now() if desired_published else None
            })
            return TransitionResult(found=True, changed=True, category_adjusted=adjusted)

        result = await self.store.run_transaction(transition)

        if not result.found:
            logger.info(f"Publish state: article {article_id} not found, nothing to do")
        elif result.changed:
            action = "published" if desired_published else "unpublished"
            logger.info(f"Article {article_id} {action} (category adjusted: {result.category_adjusted})")
        return result

    async def delete_article(self, article_id: str) -> TransitionResult:
        """Delete an article, decrementing its category if it was published."""

        async def delete(txn: TransactionHandle) -> TransitionResult:
            article = await txn.get(NEWS, article_id)
            if article is None:
                return TransitionResult(found=False, changed=False)

            adjusted = False
            if article.get("published_at") is not None:
                adjusted = await self.category_repo.adjust_count(resolve_category_ref(article), -1, txn)
            txn.delete(NEWS, article_id)
            return TransitionResult(found=True, changed=True, category_adjusted=adjusted)

        result = await self.store.run_transaction(delete)

        if result.found:
            logger.info(f"Article {article_id} deleted (category adjusted: {result.category_adjusted})")
        return result

    async def create_article(
        self,
        title: str,
        summary: str,
        source_url: str,
        created_by: str,
        source_name: Optional[str] = None,
        category_name: Optional[str] = None,
        image: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create an already-published article and count it toward its category."""
        category = await self.category_repo.ensure_category(category_name) if category_name else None
        article = build_article(
            title=title,
            summary=summary,
            source_url=source_url,
            source_name=source_name,
            category=category,
            created_by=created_by,
            image=image
        )

        async def create(txn: TransactionHandle) -> Dict[str, Any]:
            duplicate = await txn.find_one(NEWS, {"normalized_url_hash": url_hash(source_url)})
            if duplicate is not None:
                raise ConflictError(f"News already exists for {article['normalized_url']}")

            if category is not None:
                await self.category_repo.adjust_count(category["_id"], 1, txn)
            txn.set(NEWS, article["_id"], article)
            return article

        created = await self.store.run_transaction(create)
        logger.info(f"News created with ID: {created['_id']} by {created_by}")
        return created

"""News routes: publish state, deletion and manual creation."""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.auth import AdminPrincipal
from api.dependencies import get_publish_state_service, require_admin
from api.services.publish_state import PublishStateService
from api.schemas.requests import CreateNewsRequest, DeleteNewsRequest, UpdateStatusRequest
from api.schemas.responses import DeleteNewsResponse, NewsArticleResponse, UpdateStatusResponse
from database.connection import get_db
from database.repositories.news_repo import NewsRepository


router = APIRouter(prefix="/news", tags=["news"])


@router.post("/update-status", response_model=UpdateStatusResponse)
async def update_status(
    request: UpdateStatusRequest,
    admin: AdminPrincipal = Depends(require_admin),
    service: PublishStateService = Depends(get_publish_state_service)
):
    """
    Publish or unpublish an article.

    - Sets or clears `published_at`
    - Adjusts the category count in the same transaction
    - Repeated calls with the same state change nothing
    """
    result = await service.set_publish_state(request.id, request.published)
    return UpdateStatusResponse(changed=result.changed)


@router.post("/delete", response_model=DeleteNewsResponse)
async def delete_news(
    request: DeleteNewsRequest,
    admin: AdminPrincipal = Depends(require_admin),
    service: PublishStateService = Depends(get_publish_state_service)
):
    """Delete an article and decrement its category if it was published."""
    result = await service.delete_article(request.id)
    return DeleteNewsResponse(deleted=result.changed)


@router.post("/create", response_model=NewsArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    request: CreateNewsRequest,
    admin: AdminPrincipal = Depends(require_admin),
    service: PublishStateService = Depends(get_publish_state_service)
):
    """Create a published article by hand."""
    article = await service.create_article(
        title=request.title,
        summary=request.summary,
        source_url=request.source_url,
        created_by=admin.email,
        source_name=request.source_name,
        category_name=request.category,
        image=request.image
    )
    return NewsArticleResponse.from_document(article)


@router.get("", response_model=List[NewsArticleResponse])
async def list_news(
    published: Optional[bool] = None,
    limit: int = 50,
    skip: int = 0,
    admin: AdminPrincipal = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """List articles, newest first."""
    articles = await NewsRepository(db).list_articles(published=published, limit=limit, skip=skip)
    return [NewsArticleResponse.from_document(article) for article in articles]

"""Category routes."""
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase

from api.auth import TokenVerifier, authorize_admin
from api.dependencies import bearer_scheme, get_token_verifier
from api.schemas.responses import CategoryListResponse, CategoryResponse
from database.connection import get_db
from database.repositories.category_repo import CategoryRepository


router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    admin: bool = False,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Active categories for the app, or every category for admins (`?admin=true`)."""
    repo = CategoryRepository(db)

    if admin:
        await authorize_admin(credentials.credentials if credentials else None, verifier, db)
        categories = await repo.get_all_categories()
    else:
        categories = await repo.get_active_categories()

    return CategoryListResponse(categories=[CategoryResponse.from_document(c) for c in categories])

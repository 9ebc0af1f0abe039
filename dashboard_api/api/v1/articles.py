"""Article management routes (admin only)"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dashboard_api.core.database import get_db
from dashboard_api.schemas.article import ArticleCreate, ArticleResponse, ArticleStatus, ArticleUpdate
from dashboard_api.schemas.response import APIResponse, PaginatedResponse
from dashboard_api.services.article_service import article_service
from dashboard_api.api.deps import RecordId, get_current_admin
from dashboard_api.models.admin import Admin

router = APIRouter()


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
def create_article(
    data: ArticleCreate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """
    Create an article authored by the current admin

    Without a slug one is generated from the title; a taken slug gets a
    numeric suffix.
    """
    article = article_service.create_article(db, data, current_admin.id)
    return ArticleResponse.model_validate(article)


@router.get("", response_model=PaginatedResponse[ArticleResponse])
def list_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    article_status: Optional[ArticleStatus] = Query(None, alias="status"),
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    articles, total = article_service.list_articles(
        db, page=page, limit=limit, search=search, status=article_status
    )
    return PaginatedResponse[ArticleResponse](
        items=[ArticleResponse.model_validate(a) for a in articles],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.get("/{article_id}", response_model=ArticleResponse)
def get_article(
    article_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return ArticleResponse.model_validate(article_service.get_article(db, article_id))


@router.put("/{article_id}", response_model=ArticleResponse)
def update_article(
    article_id: RecordId,
    update: ArticleUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Update an article; only its author may change it"""
    article = article_service.get_owned_article(db, article_id, current_admin.id)
    return ArticleResponse.model_validate(article_service.update_article(db, article, update))


@router.delete("/{article_id}", response_model=APIResponse)
def delete_article(
    article_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    article = article_service.get_owned_article(db, article_id, current_admin.id)
    article_service.delete_article(db, article)
    return APIResponse(message=f"Article {article_id} deleted successfully")


@router.post("/{article_id}/publish", response_model=ArticleResponse)
def publish_article(
    article_id: RecordId,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    article = article_service.get_owned_article(db, article_id, current_admin.id)
    return ArticleResponse.model_validate(article_service.publish_article(db, article))

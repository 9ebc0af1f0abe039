"""Article schemas"""

from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime

ArticleStatus = Literal["draft", "published", "archived"]

SLUG_PATTERN = r'^[a-z0-9]+(?:-[a-z0-9]+)*$'


class ArticleCreate(BaseModel):
    """Article creation; the slug is derived from the title when omitted"""
    title: str = Field(..., min_length=3, max_length=255)
    content: str = Field(..., min_length=10)
    slug: Optional[str] = Field(None, min_length=3, max_length=255, pattern=SLUG_PATTERN)
    summary: str = Field("", max_length=500)
    status: ArticleStatus = "draft"
    published_at: Optional[datetime] = None


class ArticleUpdate(BaseModel):
    """Partial article update; only provided fields change"""
    title: Optional[str] = Field(None, min_length=3, max_length=255)
    content: Optional[str] = Field(None, min_length=10)
    slug: Optional[str] = Field(None, min_length=3, max_length=255, pattern=SLUG_PATTERN)
    summary: Optional[str] = Field(None, max_length=500)
    status: Optional[ArticleStatus] = None
    published_at: Optional[datetime] = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    content: str
    slug: str
    summary: str
    status: str
    published_at: Optional[datetime] = None
    admin_id: int
    author_email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

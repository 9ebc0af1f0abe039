"""Article service - admin-authored content with unique slugs"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from dashboard_api.core.exceptions import AuthorizationError, ResourceAlreadyExistsError, ResourceNotFoundError
from dashboard_api.core.timeutils import to_naive_utc, utcnow
from dashboard_api.models.article import Article, ARTICLE_STATUS_PUBLISHED
from dashboard_api.schemas.article import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 255
GENERATED_SLUG_LENGTH = 100

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")


def generate_slug(title: str, max_length: int = GENERATED_SLUG_LENGTH) -> str:
    """
    URL-friendly slug from a title

    Lowercases, turns spaces into dashes, drops everything outside [a-z0-9-]
    and collapses dash runs. Falls back to "article" when nothing is left.
    """
    slug = title.lower().replace(" ", "-")
    slug = _NON_SLUG_CHARS.sub("", slug)
    slug = _DASH_RUNS.sub("-", slug).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or "article"


def ensure_unique_slug(db: Session, base_slug: str, exclude_id: Optional[int] = None) -> str:
    """Return base_slug, or base_slug-N with the smallest N not yet taken"""
    slug = base_slug
    suffix = 0
    while True:
        query = db.query(Article.id).filter(Article.slug == slug)
        if exclude_id is not None:
            query = query.filter(Article.id != exclude_id)
        if query.first() is None:
            return slug
        suffix += 1
        tail = f"-{suffix}"
        slug = base_slug[:SLUG_MAX_LENGTH - len(tail)] + tail


class ArticleService:
    """Service for article management"""

    @staticmethod
    def get_article(db: Session, article_id: int) -> Article:
        article = (
            db.query(Article)
            .options(joinedload(Article.admin))
            .filter(Article.id == article_id)
            .first()
        )
        if not article:
            raise ResourceNotFoundError("Article")
        return article

    @staticmethod
    def get_owned_article(db: Session, article_id: int, admin_id: int) -> Article:
        """Load an article the given admin wrote; other admins may only read it"""
        article = ArticleService.get_article(db, article_id)
        if article.admin_id != admin_id:
            logger.warning(f"Admin {admin_id} denied access to article {article_id} of admin {article.admin_id}")
            raise AuthorizationError("You can only manage articles you wrote")
        return article

    @staticmethod
    def _commit(db: Session, article: Article) -> Article:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ResourceAlreadyExistsError("Article with this slug")
        db.refresh(article)
        return article

    @staticmethod
    def create_article(db: Session, data: ArticleCreate, admin_id: int) -> Article:
        """
        Create an article owned by the admin

        A publish without published_at is stamped with the current time; a
        published_at on an unpublished article is ignored.
        """
        base_slug = data.slug or generate_slug(data.title)
        published_at = None
        if data.status == ARTICLE_STATUS_PUBLISHED:
            published_at = to_naive_utc(data.published_at) if data.published_at else utcnow()

        article = Article(
            title=data.title,
            content=data.content,
            slug=ensure_unique_slug(db, base_slug),
            summary=data.summary,
            status=data.status,
            published_at=published_at,
            admin_id=admin_id,
        )
        db.add(article)
        ArticleService._commit(db, article)
        logger.info(f"Admin {admin_id} created article {article.id} ({article.slug})")
        return article

    @staticmethod
    def list_articles(
        db: Session,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Article], int]:
        """
        Page through articles, newest first

        Args:
            search: Substring of title, content or slug
            status: Exact status filter

        Returns:
            (articles on the page, total matching)
        """
        query = db.query(Article)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(
                Article.title.ilike(pattern) | Article.content.ilike(pattern) | Article.slug.ilike(pattern)
            )
        if status:
            query = query.filter(Article.status == status)

        total = query.count()
        articles = (
            query.options(joinedload(Article.admin))
            .order_by(Article.created_at.desc(), Article.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return articles, total

    @staticmethod
    def update_article(db: Session, article: Article, update: ArticleUpdate) -> Article:
        """Apply a partial update; a changed slug is made unique"""
        data = update.model_dump(exclude_unset=True, exclude_none=True)
        published_at = data.pop("published_at", None)

        if "slug" in data and data["slug"] != article.slug:
            data["slug"] = ensure_unique_slug(db, data["slug"], exclude_id=article.id)

        was_published = article.status == ARTICLE_STATUS_PUBLISHED and article.published_at is not None
        for field, value in data.items():
            setattr(article, field, value)

        if article.status == ARTICLE_STATUS_PUBLISHED:
            if published_at is not None:
                article.published_at = to_naive_utc(published_at)
            elif not was_published:
                article.published_at = utcnow()

        ArticleService._commit(db, article)
        logger.info(f"Updated article {article.id}: {sorted(data)}")
        return article

    @staticmethod
    def publish_article(db: Session, article: Article) -> Article:
        """Set status to published, stamped now"""
        article.status = ARTICLE_STATUS_PUBLISHED
        article.published_at = utcnow()
        ArticleService._commit(db, article)
        logger.info(f"Published article {article.id}")
        return article

    @staticmethod
    def delete_article(db: Session, article: Article) -> None:
        article_id = article.id
        db.delete(article)
        db.commit()
        logger.info(f"Deleted article {article_id}")


article_service = ArticleService()

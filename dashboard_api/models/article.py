"""Article model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship

from dashboard_api.core.database import Base
from dashboard_api.core.timeutils import utcnow

ARTICLE_STATUS_DRAFT = "draft"
ARTICLE_STATUS_PUBLISHED = "published"
ARTICLE_STATUS_ARCHIVED = "archived"
ARTICLE_STATUSES = (ARTICLE_STATUS_DRAFT, ARTICLE_STATUS_PUBLISHED, ARTICLE_STATUS_ARCHIVED)


class Article(Base):
    """Content article authored by an admin"""

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    summary = Column(String(500), nullable=False, default="")
    status = Column(String(20), nullable=False, default=ARTICLE_STATUS_DRAFT)
    published_at = Column(DateTime)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    admin = relationship("Admin")

    __table_args__ = (
        Index('idx_articles_status', 'status'),
        Index('idx_articles_admin_id', 'admin_id'),
        CheckConstraint(
            "status IN ('draft', 'published', 'archived')",
            name='chk_article_status'
        ),
    )

    def __repr__(self):
        return f"<Article(id={self.id}, slug='{self.slug}', status='{self.status}')>"

    @property
    def author_email(self):
        return self.admin.email if self.admin else None

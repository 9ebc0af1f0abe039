"""Admin account seeding and dashboard summary"""

import logging

from sqlalchemy.orm import Session

from dashboard_api.config import settings
from dashboard_api.core.security import generate_password, get_password_hash
from dashboard_api.core.timeutils import utcnow
from dashboard_api.models.admin import Admin
from dashboard_api.models.article import Article, ARTICLE_STATUS_PUBLISHED
from dashboard_api.models.device import Device, DEVICE_STATUS_ACTIVE
from dashboard_api.models.security import RefreshToken
from dashboard_api.models.user import User

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> bool:
    """
    Create the configured default admin when no admin with that email exists.

    When ADMIN_PASSWORD is empty a random password is generated and logged
    once; change it after the first login.

    Returns:
        True when an account was created
    """
    if db.query(Admin).filter(Admin.email == settings.ADMIN_EMAIL).first():
        return False

    password = settings.ADMIN_PASSWORD or generate_password()
    admin = Admin(
        email=settings.ADMIN_EMAIL,
        password_hash=get_password_hash(password),
        token_version=1,
    )
    db.add(admin)
    db.commit()

    if settings.ADMIN_PASSWORD:
        logger.info(f"Default admin created: {settings.ADMIN_EMAIL}")
    else:
        logger.warning(
            f"Default admin created: {settings.ADMIN_EMAIL} with generated password {password} "
            "(change it after first login)"
        )
    return True


def dashboard_summary(db: Session) -> dict:
    return {
        "admins": db.query(Admin).count(),
        "users": db.query(User).count(),
        "devices": db.query(Device).count(),
        "active_devices": db.query(Device).filter(Device.status == DEVICE_STATUS_ACTIVE).count(),
        "articles": db.query(Article).count(),
        "published_articles": db.query(Article).filter(Article.status == ARTICLE_STATUS_PUBLISHED).count(),
        "active_refresh_tokens": (
            db.query(RefreshToken)
            .filter(RefreshToken.is_revoked == False, RefreshToken.expires_at > utcnow())  # noqa: E712
            .count()
        ),
    }

"""Database models"""

from dashboard_api.models.admin import Admin
from dashboard_api.models.user import User
from dashboard_api.models.device import Device
from dashboard_api.models.security import RefreshToken
from dashboard_api.models.article import Article

__all__ = ["Admin", "User", "Device", "RefreshToken", "Article"]

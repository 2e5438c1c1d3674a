"""
Models package — import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for `create_all` / Alembic).
"""

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.models.company import Company
from app.models.user import User
from app.models.role import Role, RoleName, user_roles, role_permissions
from app.models.permission import Permission, PermissionAction, permission_key
from app.models.article import Article

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Company",
    "User",
    "Role",
    "RoleName",
    "user_roles",
    "role_permissions",
    "Permission",
    "PermissionAction",
    "permission_key",
    "Article",
]

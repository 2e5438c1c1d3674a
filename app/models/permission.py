"""
Permission model.

A permission is an (action, subject) pair such as ("edit", "Article"),
written canonically as ``edit:Article``.  Permissions are seeded at
deploy time and attached to roles; endpoints only ever compare the
canonical strings carried in the access token.
"""

import enum

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class PermissionAction(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"


def permission_key(action: str, subject: str) -> str:
    return f"{action}:{subject}"


class Permission(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "permissions"

    action: Mapped[str] = mapped_column(String(32), nullable=False)
    subject: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)

    __table_args__ = (UniqueConstraint("action", "subject"),)

    @property
    def key(self) -> str:
        return permission_key(self.action, self.subject)

    def __repr__(self) -> str:
        return f"<Permission {self.key}>"

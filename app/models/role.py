from __future__ import annotations

"""
Role model & association tables.

Roles are globally defined, named bundles of permissions.  The
many-to-many tables `user_roles` and `role_permissions` are plain
association tables whose composite primary key doubles as the
(user_id, role_id) / (role_id, permission_id) uniqueness constraint.

The only ORM relationship is Role → Permission, used to list the
catalog.  Users reach their roles through `user_roles` in explicit
queries.
"""

import enum

from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from typing import TYPE_CHECKING

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from app.models.permission import Permission


class RoleName(str, enum.Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    USER = "USER"


# ── Association tables ───────────────────────────────────────────────
user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # ── Relationships ────────────────────────────────────────────────
    permissions: Mapped[list["Permission"]] = relationship(  # noqa: F821
        secondary=role_permissions,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Role {self.name}>"

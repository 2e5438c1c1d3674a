from __future__ import annotations

"""
User model.

Design decisions:
- A user always belongs to exactly one Company.  Usernames are unique
  per company (explicit composite constraint), e-mail addresses are
  unique across the whole directory.
- `password_hash` is never exposed: every read path maps users to
  `UserOut`, which has no password field.
- Roles are attached via the `user_roles` association table so new
  roles can be added without schema changes.  There is no ORM
  relationship to them: login reads roles and permissions through one
  joined projection query, and loading a User never pulls them in.
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"

    company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(512), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)

    __table_args__ = (UniqueConstraint("company_id", "username"),)

    def __repr__(self) -> str:
        return f"<User {self.username} company={self.company_id}>"

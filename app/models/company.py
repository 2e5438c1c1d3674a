"""
Company model — the tenant boundary.

Every User (and every tenant-owned row such as Article) carries a
`company_id`.  Companies are created together with their first admin
at registration and are never merged or deleted.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Company(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(256), nullable=False)

    def __repr__(self) -> str:
        return f"<Company {self.name}>"

"""
User service — tenant-scoped read helpers.

Every lookup filters on the caller's company, and callers map the
result to `UserOut`, which never carries the password hash.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.user import User


async def get_user_in_company(
    user_id: uuid.UUID,
    company_id: uuid.UUID,
    db: AsyncSession,
) -> User:
    stmt = select(User).where(User.id == user_id, User.company_id == company_id)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


async def list_users(
    company_id: uuid.UUID,
    db: AsyncSession,
    skip: int = 0,
    limit: int = 50,
) -> list[User]:
    stmt = (
        select(User)
        .where(User.company_id == company_id)
        .order_by(User.created_at)
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())

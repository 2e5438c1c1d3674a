"""
Role assignment service.

Adds and removes rows in `user_roles`.  Both operations resolve the
target user *inside the acting admin's company*: a user of another
company is reported as not found, exactly like a user that does not
exist, so one tenant cannot even probe another tenant's user ids.

Changes only affect tokens issued afterwards.
"""

import logging
import uuid

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.role import Role, user_roles
from app.models.user import User
from app.schemas import TokenClaims

logger = logging.getLogger(__name__)


async def _ensure_tenant_user(user_id: uuid.UUID, company_id: uuid.UUID, db: AsyncSession) -> None:
    stmt = select(User.id).where(User.id == user_id, User.company_id == company_id)
    if (await db.execute(stmt)).scalar_one_or_none() is None:
        raise NotFoundError(f"User {user_id} not found")


async def _ensure_role(role_id: uuid.UUID, db: AsyncSession) -> None:
    stmt = select(Role.id).where(Role.id == role_id)
    if (await db.execute(stmt)).scalar_one_or_none() is None:
        raise NotFoundError(f"Role {role_id} not found")


async def _has_role(user_id: uuid.UUID, role_id: uuid.UUID, db: AsyncSession) -> bool:
    stmt = select(user_roles.c.user_id).where(
        user_roles.c.user_id == user_id,
        user_roles.c.role_id == role_id,
    )
    return (await db.execute(stmt)).first() is not None


async def assign_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    acting_admin: TokenClaims,
    db: AsyncSession,
) -> None:
    await _ensure_tenant_user(user_id, acting_admin.company_id, db)
    await _ensure_role(role_id, db)

    if await _has_role(user_id, role_id, db):
        raise ConflictError(f"User {user_id} already has role {role_id}")

    try:
        await db.execute(insert(user_roles).values(user_id=user_id, role_id=role_id))
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent assignment of the same pair.
        await db.rollback()
        raise ConflictError(f"User {user_id} already has role {role_id}") from exc

    logger.info("Admin %s assigned role %s to user %s", acting_admin.sub, role_id, user_id)


async def remove_role(
    user_id: uuid.UUID,
    role_id: uuid.UUID,
    acting_admin: TokenClaims,
    db: AsyncSession,
) -> None:
    await _ensure_tenant_user(user_id, acting_admin.company_id, db)
    await _ensure_role(role_id, db)

    if not await _has_role(user_id, role_id, db):
        raise NotFoundError(f"User {user_id} does not have role {role_id}")

    await db.execute(
        delete(user_roles).where(
            user_roles.c.user_id == user_id,
            user_roles.c.role_id == role_id,
        )
    )
    await db.commit()

    logger.info("Admin %s removed role %s from user %s", acting_admin.sub, role_id, user_id)


async def list_roles(db: AsyncSession) -> list[Role]:
    """Catalog roles with their permissions (eager via selectin)."""
    result = await db.execute(select(Role).order_by(Role.name))
    return list(result.scalars().all())
